from __future__ import annotations

import hmac
import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from parse_cloud.core.envelope import envelope_response, error_response
from parse_cloud.core.errors import WebhookConfigError

logger = logging.getLogger(__name__)

WEBHOOK_KEY_HEADER = "X-Parse-Webhook-Key"
UNAUTHORIZED_MESSAGE = "Unauthorized Request."


def require_webhook_key(webhook_key: str | None) -> str:
    """
    未配置密钥时拒绝启动，避免“未配置 + 未携带 header”被当成匹配放行。
    """
    if not webhook_key:
        raise WebhookConfigError("PARSE_WEBHOOK_KEY is not set")
    return webhook_key


class WebhookKeyMiddleware(BaseHTTPMiddleware):
    """
    校验 X-Parse-Webhook-Key，先于请求体解析执行。
    校验失败返回 {"error": "Unauthorized Request."}，HTTP 200。
    """

    def __init__(self, app: ASGIApp, *, webhook_key: str) -> None:
        super().__init__(app)
        self._key = require_webhook_key(webhook_key).encode("utf-8")

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        provided = request.headers.get(WEBHOOK_KEY_HEADER)
        if provided is None or not hmac.compare_digest(provided.encode("utf-8"), self._key):
            logger.warning(
                "Rejected webhook request path=%s (key %s)",
                request.url.path,
                "missing" if provided is None else "mismatch",
            )
            return envelope_response(error_response(UNAUTHORIZED_MESSAGE))
        return await call_next(request)
