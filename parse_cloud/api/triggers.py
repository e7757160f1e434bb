from __future__ import annotations

import logging

from fastapi import BackgroundTasks, FastAPI
from fastapi.responses import JSONResponse

from parse_cloud.api.auth import WebhookKeyMiddleware, require_webhook_key
from parse_cloud.core.context import CloudRequest, CloudResponse
from parse_cloud.core.envelope import envelope_response
from parse_cloud.core.errors import InvalidWebhookPayload
from parse_cloud.core.payload import WebhookPayload
from parse_cloud.core.pipeline import (
    AFTER_TRIGGER_PIPELINE,
    BEFORE_TRIGGER_PIPELINE,
    PipelineState,
    finalize_response,
    invoke_handler,
    run_pipeline,
)
from parse_cloud.core.registry import Handler, TriggerKind, TriggerRegistry
from parse_cloud.services.codec import ObjectCodec, ParseObjectCodec

logger = logging.getLogger(__name__)


async def _run_detached(
    label: str, handler: Handler, request: CloudRequest, response: CloudResponse
) -> None:
    # after* 触发器的回执已发出，这里的返回值与异常都只记录日志
    try:
        await invoke_handler(handler, request, response)
    except Exception:  # noqa: BLE001
        logger.exception("After trigger %s failed, result discarded", label)


def build_trigger_app(
    *,
    registry: TriggerRegistry,
    webhook_key: str,
    codec: ObjectCodec | None = None,
) -> FastAPI:
    """
    触发器子应用：所有 before/after save/delete 共用 POST /，
    在请求时按 body 中的 triggerName + className 分发。
    """
    webhook_key = require_webhook_key(webhook_key)
    codec = codec or ParseObjectCodec()
    app = FastAPI(title="Cloud Code Triggers", openapi_url=None)
    app.add_middleware(WebhookKeyMiddleware, webhook_key=webhook_key)

    @app.post("/", summary="执行数据库触发器")
    async def run_trigger(payload: WebhookPayload, background_tasks: BackgroundTasks) -> JSONResponse:
        if not payload.trigger_name:
            raise InvalidWebhookPayload("Trigger payload is missing triggerName")
        class_name = payload.class_name
        if not class_name:
            raise InvalidWebhookPayload("Trigger payload is missing object.className")

        handler = registry.get_trigger(class_name, payload.trigger_name)
        kind = TriggerKind(payload.trigger_name)
        label = f"{kind.value}:{class_name}"

        pipeline = AFTER_TRIGGER_PIPELINE if kind.is_after else BEFORE_TRIGGER_PIPELINE
        state = run_pipeline(pipeline, PipelineState(payload=payload, codec=codec))

        if kind.is_after:
            background_tasks.add_task(_run_detached, label, handler, state.request, state.response)
            return envelope_response(state.response.envelope)

        result = await invoke_handler(handler, state.request, state.response)
        finalize_response(label, state.response, result)
        return envelope_response(state.response.envelope)

    return app
