"""
Cloud Code 的 httpRequest 能力：原样暴露给处理函数，内部不使用。
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from json import JSONDecodeError
from typing import Any, Dict, Mapping, Optional

import httpx

from parse_cloud.core.errors import CloudCodeError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 30.0


@dataclass
class HTTPResponse:
    status: int
    headers: Dict[str, str]
    buffer: bytes
    text: str
    data: Any = None

    @classmethod
    def from_httpx(cls, resp: httpx.Response) -> "HTTPResponse":
        try:
            data = resp.json()
        except (JSONDecodeError, UnicodeDecodeError):
            data = None
        return cls(
            status=resp.status_code,
            headers=dict(resp.headers),
            buffer=resp.content,
            text=resp.text,
            data=data,
        )


class HTTPRequestError(CloudCodeError):
    """
    非 2xx 响应，response 中保留完整回包。
    """

    def __init__(self, message: str, *, response: HTTPResponse) -> None:
        super().__init__(message)
        self.response = response


def _is_json(headers: Mapping[str, str]) -> bool:
    for key, value in headers.items():
        if key.lower() == "content-type":
            return "json" in value.lower()
    return False


async def http_request(
    url: str,
    *,
    method: str = "GET",
    params: Optional[Mapping[str, Any]] = None,
    headers: Optional[Mapping[str, str]] = None,
    body: Any = None,
    follow_redirects: bool = False,
    timeout: Optional[float] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> HTTPResponse:
    """
    发起出站 HTTP 请求。

    - body 为 dict 时：Content-Type 含 json 则发 JSON，否则按表单编码
    - body 为 str/bytes 时原样发送
    - 非 2xx 抛出 HTTPRequestError
    """
    headers = dict(headers or {})
    kwargs: Dict[str, Any] = {"params": params, "headers": headers}
    if isinstance(body, (dict, list)):
        if _is_json(headers) or isinstance(body, list):
            kwargs["json"] = body
        else:
            kwargs["data"] = body
    elif body is not None:
        kwargs["content"] = body

    if client is None:
        async with httpx.AsyncClient(
            timeout=timeout or DEFAULT_TIMEOUT_S, follow_redirects=follow_redirects
        ) as owned:
            resp = await owned.request(method.upper(), url, **kwargs)
    else:
        resp = await client.request(
            method.upper(), url, follow_redirects=follow_redirects, **kwargs
        )

    result = HTTPResponse.from_httpx(resp)
    if not 200 <= resp.status_code < 300:
        logger.info("httpRequest %s %s failed: status=%s", method.upper(), url, resp.status_code)
        raise HTTPRequestError(
            f"Request failed with response code {resp.status_code}", response=result
        )
    return result
