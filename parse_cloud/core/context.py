from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from parse_cloud.core.envelope import Envelope, error_response, success_response

logger = logging.getLogger(__name__)


@dataclass
class CloudRequest:
    """
    交给 Cloud Code 处理函数的 request 视图，每个请求新建一份。
    """

    function_name: Optional[str] = None
    trigger_name: Optional[str] = None
    object: Any = None
    user: Any = None
    master: Optional[bool] = None
    installation_id: Optional[str] = None
    params: Any = None
    body: Dict[str, Any] = field(default_factory=dict)


class CloudResponse:
    """
    Cloud Code 风格的 response：success()/error() 各自生成一次信封。

    同一请求只会发送第一个信封，之后的发送只记录日志，不抛异常。
    """

    def __init__(self) -> None:
        self._envelope: Optional[Envelope] = None

    @property
    def sent(self) -> bool:
        return self._envelope is not None

    @property
    def envelope(self) -> Optional[Envelope]:
        return self._envelope

    def success(self, data: Any = None) -> None:
        self._send(success_response(data))

    def error(self, message: Any = None) -> None:
        self._send(error_response(message))

    def _send(self, envelope: Envelope) -> None:
        if self._envelope is not None:
            logger.error(
                "Response already sent, dropping envelope=%s (sent=%s)",
                envelope,
                self._envelope,
            )
            return
        self._envelope = envelope
