from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Optional

from fastapi import FastAPI

from parse_cloud.api.functions import build_function_app
from parse_cloud.api.triggers import build_trigger_app
from parse_cloud.core.registry import Handler, TriggerKind, TriggerRegistry
from parse_cloud.services.codec import ObjectCodec, ParseObjectCodec
from parse_cloud.services.http_request import http_request

logger = logging.getLogger(__name__)


def class_name_of(target: Any) -> Any:
    """
    传入类名字符串、带 className 键的 dict，或带 class_name/className 的对象（包括 ParseObject 子类），
    返回类名；取不到时原样返回，由注册表校验。
    """
    if target is None or isinstance(target, str):
        return target
    if isinstance(target, Mapping):
        name = target.get("className")
    else:
        name = getattr(target, "class_name", None) or getattr(target, "className", None)
    if not name:
        return target
    return name


class CloudCode:
    """
    Parse.Cloud 风格的注册入口。

    每个方法既可直接调用 cloud.before_save("Widget", handler)，
    也可作为装饰器 @cloud.before_save("Widget")。
    """

    http_request = staticmethod(http_request)

    def __init__(
        self,
        *,
        registry: Optional[TriggerRegistry] = None,
        codec: Optional[ObjectCodec] = None,
    ) -> None:
        self.registry = registry or TriggerRegistry()
        self.codec = codec or ParseObjectCodec()

    def define(self, function_name: str, handler: Optional[Handler] = None) -> Any:
        def register(fn: Handler) -> Handler:
            self.registry.register_function(function_name, fn)
            return fn

        return register(handler) if handler is not None else register

    def _trigger(self, kind: TriggerKind, target: Any, handler: Optional[Handler]) -> Any:
        class_name = class_name_of(target)

        def register(fn: Handler) -> Handler:
            self.registry.register_trigger(class_name, kind, fn)
            return fn

        return register(handler) if handler is not None else register

    def before_save(self, target: Any, handler: Optional[Handler] = None) -> Any:
        return self._trigger(TriggerKind.BEFORE_SAVE, target, handler)

    def after_save(self, target: Any, handler: Optional[Handler] = None) -> Any:
        return self._trigger(TriggerKind.AFTER_SAVE, target, handler)

    def before_delete(self, target: Any, handler: Optional[Handler] = None) -> Any:
        return self._trigger(TriggerKind.BEFORE_DELETE, target, handler)

    def after_delete(self, target: Any, handler: Optional[Handler] = None) -> Any:
        return self._trigger(TriggerKind.AFTER_DELETE, target, handler)

    def job(self, name: str, handler: Optional[Handler] = None) -> Any:
        # 后台任务不在 webhook 模式下执行
        logger.warning("Running jobs is not supported by parse-cloud webhooks (job=%s)", name)
        if handler is not None:
            return handler

        def passthrough(fn: Callable[..., Any]) -> Callable[..., Any]:
            return fn

        return passthrough

    def function_app(self, *, webhook_key: str) -> FastAPI:
        return build_function_app(registry=self.registry, webhook_key=webhook_key, codec=self.codec)

    def trigger_app(self, *, webhook_key: str) -> FastAPI:
        return build_trigger_app(registry=self.registry, webhook_key=webhook_key, codec=self.codec)
