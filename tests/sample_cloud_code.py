"""
测试用 Cloud Code 模块，由 CLOUD_CODE_MODULES 加载。
"""


def register(cloud):
    @cloud.define("hello")
    def hello(request, response):
        response.success("hi")

    @cloud.after_save("Widget")
    def widget_saved(request, response):
        response.success()
