"""
Parse 对象编解码适配层

Webhook 请求体里的 object / original / update / user 都是 Parse REST 的 JSON 格式，
这里负责把它们还原成 ParseObject，供 Cloud Code 处理函数使用。
"""
from __future__ import annotations

import base64
import math
import re
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional, Protocol

_RESERVED_KEYS = ("className", "objectId", "createdAt", "updatedAt")
_FRACTION_RE = re.compile(r"\.(\d+)")


class _Delete:
    """
    {"__op": "Delete"} 解码后的标记值，set 时等同于 unset。
    """

    def __repr__(self) -> str:
        return "DELETE"


DELETE = _Delete()


def _parse_date(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, dict):
        value = value.get("iso")
    if not isinstance(value, str):
        return None
    # 3.10 的 fromisoformat 只接受 3 或 6 位小数秒
    value = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), value, count=1)
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _encode_date(value: datetime) -> str:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.isoformat(timespec="milliseconds") + "Z"


class ParseObject:
    """
    最小化的 Parse 对象句柄：className + objectId + 属性字典。
    """

    class_name: Optional[str] = None

    def __init__(
        self,
        class_name: Optional[str] = None,
        object_id: Optional[str] = None,
        **attributes: Any,
    ) -> None:
        if class_name is not None:
            self.class_name = class_name
        self.object_id = object_id
        self.created_at: Optional[datetime] = None
        self.updated_at: Optional[datetime] = None
        self._data: Dict[str, Any] = {}
        if attributes:
            self.set(attributes)

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "ParseObject":
        if not isinstance(data, dict):
            raise TypeError(f"Cannot build ParseObject from {type(data).__name__}")
        obj = cls(class_name=data.get("className"), object_id=data.get("objectId"))
        obj.created_at = _parse_date(data.get("createdAt"))
        obj.updated_at = _parse_date(data.get("updatedAt"))
        obj.set({k: v for k, v in data.items() if k not in _RESERVED_KEYS})
        return obj

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def has(self, key: str) -> bool:
        return key in self._data

    def set(self, key_or_fields: Any, value: Any = None) -> "ParseObject":
        """
        set("field", v) 或 set({"a": 1, "b": 2})；字段级合并，不替换整个对象。
        """
        if isinstance(key_or_fields, dict):
            fields = key_or_fields
        else:
            fields = {key_or_fields: value}

        for key, raw in fields.items():
            item = decode(raw)
            if item is DELETE:
                self._data.pop(key, None)
            else:
                self._data[key] = item
        return self

    def unset(self, key: str) -> "ParseObject":
        self._data.pop(key, None)
        return self

    @property
    def attributes(self) -> Dict[str, Any]:
        return dict(self._data)

    def keys(self) -> Iterator[str]:
        return iter(self._data)

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParseObject):
            return NotImplemented
        return (
            self.class_name == other.class_name
            and self.object_id == other.object_id
            and self._data == other._data
        )

    def __repr__(self) -> str:
        return f"<ParseObject {self.class_name}:{self.object_id} {self._data!r}>"

    def to_pointer(self) -> Dict[str, Any]:
        return {"__type": "Pointer", "className": self.class_name, "objectId": self.object_id}

    def to_json(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {k: encode(v) for k, v in self._data.items()}
        out["className"] = self.class_name
        if self.object_id is not None:
            out["objectId"] = self.object_id
        if self.created_at is not None:
            out["createdAt"] = _encode_date(self.created_at)
        if self.updated_at is not None:
            out["updatedAt"] = _encode_date(self.updated_at)
        return out


def decode(value: Any) -> Any:
    """
    Parse JSON -> Python 值。未识别的 __type（GeoPoint/File/Relation 等）原样保留。
    """
    if isinstance(value, list):
        return [decode(v) for v in value]
    if not isinstance(value, dict):
        return value

    if value.get("__op") == "Delete":
        return DELETE

    kind = value.get("__type")
    if kind == "Date":
        return _parse_date(value)
    if kind == "Pointer":
        return ParseObject(class_name=value.get("className"), object_id=value.get("objectId"))
    if kind == "Object":
        return ParseObject.from_json({k: v for k, v in value.items() if k != "__type"})
    if kind == "Bytes":
        return base64.b64decode(value.get("base64", ""))
    if kind is not None:
        return value
    return {k: decode(v) for k, v in value.items()}


def encode(value: Any) -> Any:
    if isinstance(value, ParseObject):
        return value.to_pointer()
    if isinstance(value, datetime):
        return {"__type": "Date", "iso": _encode_date(value)}
    if isinstance(value, bytes):
        return {"__type": "Bytes", "base64": base64.b64encode(value).decode("ascii")}
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, list):
        return [encode(v) for v in value]
    if isinstance(value, dict):
        return {k: encode(v) for k, v in value.items()}
    return value


class ObjectCodec(Protocol):
    def from_json(self, data: Dict[str, Any]) -> Any: ...

    def apply_update(self, obj: Any, update: Dict[str, Any]) -> Any: ...


class ParseObjectCodec:
    """
    默认编解码实现，基于 ParseObject。
    """

    def from_json(self, data: Dict[str, Any]) -> ParseObject:
        return ParseObject.from_json(data)

    def apply_update(self, obj: ParseObject, update: Dict[str, Any]) -> ParseObject:
        return obj.set(update)
