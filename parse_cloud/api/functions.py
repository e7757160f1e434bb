from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse

from parse_cloud.api.auth import WebhookKeyMiddleware, require_webhook_key
from parse_cloud.core.envelope import envelope_response
from parse_cloud.core.payload import WebhookPayload
from parse_cloud.core.pipeline import (
    FUNCTION_PIPELINE,
    PipelineState,
    finalize_response,
    invoke_handler,
    run_pipeline,
)
from parse_cloud.core.registry import TriggerRegistry
from parse_cloud.services.codec import ObjectCodec, ParseObjectCodec

logger = logging.getLogger(__name__)


def build_function_app(
    *,
    registry: TriggerRegistry,
    webhook_key: str,
    codec: ObjectCodec | None = None,
) -> FastAPI:
    """
    云函数子应用：POST /<functionName>。
    路由在构建时一次性安装，按函数名查注册表，之后 define 的函数同样生效。
    """
    webhook_key = require_webhook_key(webhook_key)
    codec = codec or ParseObjectCodec()
    app = FastAPI(title="Cloud Code Functions", openapi_url=None)
    app.add_middleware(WebhookKeyMiddleware, webhook_key=webhook_key)

    @app.post("/{function_name}", summary="执行云函数")
    async def run_function(function_name: str, payload: WebhookPayload) -> JSONResponse:
        if not registry.has_function(function_name):
            raise HTTPException(status_code=404, detail=f"Unknown cloud function: {function_name}")
        handler = registry.get_function(function_name)

        state = run_pipeline(FUNCTION_PIPELINE, PipelineState(payload=payload, codec=codec))
        state.request.function_name = function_name
        result = await invoke_handler(handler, state.request, state.response)
        finalize_response(function_name, state.response, result)
        return envelope_response(state.response.envelope)

    return app
