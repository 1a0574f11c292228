# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Lifecycle callbacks: aware setters, init/destroy protocols, and annotations."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol, TypeVar, runtime_checkable

import structlog

if TYPE_CHECKING:
    from flybeans.container.bean_factory import BeanFactory

F = TypeVar("F", bound=Callable)

logger = structlog.get_logger("flybeans.container.lifecycle")

POST_CONSTRUCT_MARKER = "__flybeans_post_construct__"
PRE_DESTROY_MARKER = "__flybeans_pre_destroy__"


@runtime_checkable
class BeanNameAware(Protocol):
    """Receives the canonical name it was registered under."""

    def set_bean_name(self, name: str) -> None: ...


@runtime_checkable
class BeanFactoryAware(Protocol):
    """Receives the factory that created it."""

    def set_bean_factory(self, bean_factory: BeanFactory) -> None: ...


@runtime_checkable
class InitializingBean(Protocol):
    """Called once all properties are set, before the declared init method."""

    def after_properties_set(self) -> None: ...


@runtime_checkable
class DisposableBean(Protocol):
    """Called when the owning factory destroys its singletons."""

    def destroy(self) -> None: ...


def post_construct(func: F) -> F:
    """Mark a method to be called after properties are set and ``before_init`` ran."""
    setattr(func, POST_CONSTRUCT_MARKER, True)
    return func


def pre_destroy(func: F) -> F:
    """Mark a method to be called before the bean is destroyed."""
    setattr(func, PRE_DESTROY_MARKER, True)
    return func


def marked_methods(instance: Any, marker: str) -> list[Callable[[], Any]]:
    """Bound methods of *instance* carrying *marker*, in name order."""
    cls = type(instance)
    methods: list[Callable[[], Any]] = []
    for attr_name in dir(cls):
        attr = getattr(cls, attr_name, None)
        if attr is not None and callable(attr) and getattr(attr, marker, False):
            methods.append(getattr(instance, attr_name))
    return methods


class DisposableBeanAdapter:
    """Runs every destruction callback of one singleton.

    Order: ``@pre_destroy`` methods, ``DisposableBean.destroy``, then the
    declared destroy method. Each failure is logged and the remaining
    callbacks still run.
    """

    def __init__(self, bean: Any, bean_name: str, destroy_method_name: str | None = None) -> None:
        self.bean = bean
        self.bean_name = bean_name
        self._pre_destroy = marked_methods(bean, PRE_DESTROY_MARKER)
        self._invoke_disposable = isinstance(bean, DisposableBean)
        if destroy_method_name == "destroy" and self._invoke_disposable:
            destroy_method_name = None
        self._destroy_method_name = destroy_method_name

    def has_callbacks(self) -> bool:
        return bool(self._pre_destroy or self._invoke_disposable or self._destroy_method_name)

    def __call__(self) -> None:
        for method in self._pre_destroy:
            self._invoke(method.__name__, method)
        if self._invoke_disposable:
            self._invoke("destroy", self.bean.destroy)
        if self._destroy_method_name:
            self._invoke(self._destroy_method_name, getattr(self.bean, self._destroy_method_name))

    def _invoke(self, method_name: str, method: Callable[[], Any]) -> None:
        try:
            method()
        except Exception as exc:
            logger.warning("destroy_method_failed", bean=self.bean_name, method=method_name, error=str(exc))
