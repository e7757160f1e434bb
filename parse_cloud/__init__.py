"""
parse-cloud webhooks

把 Parse Cloud Code 风格的云函数与数据库触发器包装成两个可挂载的 FastAPI 子应用：
- function app：POST /<functionName>
- trigger app：POST /（按 triggerName + className 分发）
"""
from __future__ import annotations

from parse_cloud.core.cloud import CloudCode
from parse_cloud.core.context import CloudRequest, CloudResponse
from parse_cloud.core.envelope import error_response, success_response
from parse_cloud.core.errors import (
    CloudCodeError,
    HandlerNotRegisteredError,
    InvalidWebhookPayload,
    WebhookConfigError,
)
from parse_cloud.core.registry import TriggerKind, TriggerRegistry
from parse_cloud.services.codec import ParseObject
from parse_cloud.services.http_request import HTTPRequestError, HTTPResponse, http_request

__all__ = [
    "CloudCode",
    "CloudCodeError",
    "CloudRequest",
    "CloudResponse",
    "HTTPRequestError",
    "HTTPResponse",
    "HandlerNotRegisteredError",
    "InvalidWebhookPayload",
    "ParseObject",
    "TriggerKind",
    "TriggerRegistry",
    "WebhookConfigError",
    "error_response",
    "http_request",
    "success_response",
]
