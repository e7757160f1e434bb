"""
Cloud Code 运行时异常定义
"""
from __future__ import annotations


class CloudCodeError(Exception):
    """
    统一的异常基类。
    """


class WebhookConfigError(CloudCodeError):
    """
    启动配置不完整（例如未设置 PARSE_WEBHOOK_KEY）。
    """


class HandlerNotRegisteredError(CloudCodeError, LookupError):
    """
    请求命中的 (className, trigger) 或函数名没有注册处理函数。
    属于配置错误，不做兜底，直接向上抛出。
    """


class InvalidWebhookPayload(CloudCodeError, ValueError):
    """
    Webhook 请求体缺少必要字段（triggerName / object 等）。
    """
