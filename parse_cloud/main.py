import importlib
import logging

from dotenv import load_dotenv
from fastapi import FastAPI

from parse_cloud.config import Settings, get_settings
from parse_cloud.core.cloud import CloudCode
from parse_cloud.services import http_request as http_request_module

load_dotenv()

logger = logging.getLogger(__name__)


def load_cloud_code(cloud: CloudCode, modules: list[str]) -> None:
    """
    导入用户的 Cloud Code 模块并调用 register(cloud) 完成注册。
    """
    for name in modules:
        module = importlib.import_module(name)
        register = getattr(module, "register", None)
        if not callable(register):
            raise RuntimeError(f"Cloud Code module {name} has no register(cloud) function")
        register(cloud)
        logger.info("Loaded Cloud Code module %s", name)


def create_app(cloud: CloudCode | None = None, settings: Settings | None = None) -> FastAPI:
    """
    宿主应用示例：挂载云函数与触发器两个子应用，并提供健康检查。
    """
    settings = settings or get_settings()
    cloud = cloud or CloudCode()

    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    http_request_module.DEFAULT_TIMEOUT_S = settings.HTTP_REQUEST_TIMEOUT_S

    load_cloud_code(cloud, settings.cloud_code_modules)

    app = FastAPI(
        title="Parse Cloud Webhooks",
        version="0.1.0",
    )

    # 两个子应用各自校验 webhook key；未配置密钥时这里直接抛错，拒绝启动
    app.mount(
        settings.FUNCTIONS_MOUNT_PATH,
        cloud.function_app(webhook_key=settings.PARSE_WEBHOOK_KEY),
    )
    app.mount(
        settings.TRIGGERS_MOUNT_PATH,
        cloud.trigger_app(webhook_key=settings.PARSE_WEBHOOK_KEY),
    )

    @app.get("/health", summary="健康检查")
    async def health_check():
        return {
            "status": "ok",
            "functions": sorted(cloud.registry.functions()),
            "triggers": {k: sorted(v) for k, v in cloud.registry.triggers().items()},
        }

    return app
