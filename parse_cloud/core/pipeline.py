"""
请求归一化流水线

把已通过鉴权、已解析 JSON 的 webhook 请求体，按固定顺序的步骤转换成
(CloudRequest, CloudResponse)。每个步骤只读写 PipelineState，可自由组合。
"""
from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence

from starlette.concurrency import run_in_threadpool

from parse_cloud.core.payload import WebhookPayload
from parse_cloud.core.context import CloudRequest, CloudResponse
from parse_cloud.core.errors import InvalidWebhookPayload
from parse_cloud.core.registry import Handler
from parse_cloud.services.codec import ObjectCodec, ParseObjectCodec

logger = logging.getLogger(__name__)

DEFAULT_USER_CLASS = "_User"


@dataclass
class PipelineState:
    payload: WebhookPayload
    request: CloudRequest = field(default_factory=CloudRequest)
    response: Optional[CloudResponse] = None
    codec: ObjectCodec = field(default_factory=ParseObjectCodec)


Step = Callable[[PipelineState], None]


def extract_installation_id(state: PipelineState) -> None:
    state.request.installation_id = state.payload.installation_id


def extract_params(state: PipelineState) -> None:
    state.request.params = state.payload.params


def attach_response(state: PipelineState) -> None:
    state.response = CloudResponse()


def decode_object(state: PipelineState) -> None:
    """
    有 original + update 时：还原 original 后按字段合并 update；
    否则直接还原 object。
    """
    payload = state.payload
    if payload.original is not None and payload.update is not None:
        obj = state.codec.from_json(payload.original)
        state.request.object = state.codec.apply_update(obj, payload.update)
    elif payload.object is not None:
        state.request.object = state.codec.from_json(payload.object)
    else:
        raise InvalidWebhookPayload("Trigger payload carries neither object nor original+update")


def decode_user(state: PipelineState) -> None:
    user = state.payload.user
    if user is not None:
        data = dict(user)
        if data.get("className") is None:
            data["className"] = DEFAULT_USER_CLASS
        state.request.user = state.codec.from_json(data)
    state.request.master = state.payload.master


def respond_empty_if_after(state: PipelineState) -> None:
    # after* 触发器立即回执空成功；处理函数之后照常执行，但结果不会再被调用方看到
    trigger_name = state.payload.trigger_name or ""
    if trigger_name.startswith("after") and state.response is not None:
        state.response.success({})


FUNCTION_PIPELINE: Sequence[Step] = (
    extract_installation_id,
    extract_params,
    attach_response,
    decode_user,
)

BEFORE_TRIGGER_PIPELINE: Sequence[Step] = (
    extract_installation_id,
    attach_response,
    decode_object,
    decode_user,
)

AFTER_TRIGGER_PIPELINE: Sequence[Step] = (*BEFORE_TRIGGER_PIPELINE, respond_empty_if_after)


def run_pipeline(steps: Sequence[Step], state: PipelineState) -> PipelineState:
    state.request.body = state.payload.model_dump(by_alias=True, exclude_none=True)
    state.request.trigger_name = state.payload.trigger_name
    for step in steps:
        step(state)
    return state


async def invoke_handler(handler: Handler, request: CloudRequest, response: CloudResponse) -> Any:
    """
    同步处理函数放到线程池执行，异步处理函数直接 await。
    """
    if inspect.iscoroutinefunction(handler):
        return await handler(request, response)
    result = await run_in_threadpool(handler, request, response)
    if inspect.isawaitable(result):
        result = await result
    return result


def finalize_response(name: str, response: CloudResponse, result: Any) -> CloudResponse:
    """
    处理函数没有调用 success()/error() 时：返回值非 None 作为 success，否则回 error。
    """
    if response.sent:
        return response
    if result is not None:
        response.success(result)
    else:
        logger.warning("Handler %s returned without sending a response", name)
        response.error(f"{name} did not send a response.")
    return response
