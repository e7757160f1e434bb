"""
响应信封：{"success": ...} / {"error": ...}

成功与失败都通过 payload 形状区分，HTTP 状态码固定为 200。
"""
from __future__ import annotations

import math
from typing import Any, Dict

from fastapi.responses import JSONResponse

from parse_cloud.services.codec import ParseObject, encode

Envelope = Dict[str, Any]


def _is_falsy(value: Any) -> bool:
    # 沿用 Cloud Code（JS）的假值语义：空 dict/list 视为有效值
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 0 or (isinstance(value, float) and math.isnan(value))
    return False


def success_response(data: Any = None) -> Envelope:
    return {"success": True if _is_falsy(data) else data}


def error_response(message: Any = None) -> Envelope:
    return {"error": True if _is_falsy(message) else message}


def _encode_payload(value: Any) -> Any:
    # 顶层对象按完整 JSON 输出（等同 toJSON），嵌套对象按 Pointer 输出
    if isinstance(value, ParseObject):
        return value.to_json()
    return encode(value)


def envelope_response(envelope: Envelope) -> JSONResponse:
    content = {key: _encode_payload(value) for key, value in envelope.items()}
    return JSONResponse(content=content, status_code=200)
