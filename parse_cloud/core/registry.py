from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Union

from parse_cloud.core.errors import HandlerNotRegisteredError

logger = logging.getLogger(__name__)

Handler = Callable[[Any, Any], Union[Any, Awaitable[Any]]]


class TriggerKind(str, Enum):
    BEFORE_SAVE = "beforeSave"
    AFTER_SAVE = "afterSave"
    BEFORE_DELETE = "beforeDelete"
    AFTER_DELETE = "afterDelete"

    @property
    def is_after(self) -> bool:
        return self.value.startswith("after")


class TriggerRegistry:
    """
    维护 (className, trigger) -> handler 与 functionName -> handler 的映射。

    - 启动阶段写入，请求阶段只读
    - 同一个 key 重复注册时后写覆盖前写
    """

    def __init__(self) -> None:
        self._triggers: Dict[str, Dict[TriggerKind, Handler]] = {}
        self._functions: Dict[str, Handler] = {}

    def register_trigger(self, class_name: str, kind: TriggerKind | str, handler: Handler) -> None:
        if not isinstance(class_name, str) or not class_name:
            raise ValueError(f"Invalid class name for trigger: {class_name!r}")
        kind = TriggerKind(kind)
        self._triggers.setdefault(class_name, {})[kind] = handler
        logger.debug("Registered trigger %s for class %s", kind.value, class_name)

    def get_trigger(self, class_name: str, kind: TriggerKind | str) -> Handler:
        try:
            return self._triggers[class_name][TriggerKind(kind)]
        except (KeyError, ValueError) as exc:
            raise HandlerNotRegisteredError(
                f"No {getattr(kind, 'value', kind)} trigger registered for class {class_name}"
            ) from exc

    def register_function(self, name: str, handler: Handler) -> None:
        if not isinstance(name, str) or not name or "/" in name:
            raise ValueError(f"Invalid cloud function name: {name!r}")
        self._functions[name] = handler
        logger.debug("Registered cloud function %s", name)

    def get_function(self, name: str) -> Handler:
        try:
            return self._functions[name]
        except KeyError as exc:  # noqa: B904
            raise HandlerNotRegisteredError(f"No cloud function registered as {name}") from exc

    def has_function(self, name: str) -> bool:
        return name in self._functions

    def triggers(self) -> Dict[str, Dict[str, Handler]]:
        return {
            class_name: {kind.value: handler for kind, handler in kinds.items()}
            for class_name, kinds in self._triggers.items()
        }

    def functions(self) -> Dict[str, Handler]:
        return dict(self._functions)
