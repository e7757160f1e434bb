from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class WebhookPayload(BaseModel):
    """
    Parse Webhook 请求体（函数与触发器共用）。
    未声明的字段保留在 model_extra 中。
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    trigger_name: Optional[str] = Field(default=None, alias="triggerName", description="触发器类型")
    object: Optional[Dict[str, Any]] = Field(default=None, description="变更后的对象")
    original: Optional[Dict[str, Any]] = Field(default=None, description="变更前的对象")
    update: Optional[Dict[str, Any]] = Field(default=None, description="本次更新的字段")
    user: Optional[Dict[str, Any]] = Field(default=None, description="发起请求的用户")
    master: Optional[bool] = Field(default=None, description="是否使用 master key")
    installation_id: Optional[str] = Field(
        default=None, alias="installationId", description="客户端 installation id"
    )
    params: Any = Field(default=None, description="云函数参数")

    @property
    def class_name(self) -> Optional[str]:
        for source in (self.object, self.original):
            if source and source.get("className"):
                return source["className"]
        return None
