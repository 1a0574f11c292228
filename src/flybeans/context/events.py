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
"""Application events and event bus for context lifecycle notifications."""

from __future__ import annotations

import inspect
import threading
import time
import typing
from collections.abc import Callable
from typing import Any, TypeVar

import structlog

from flybeans.container.ordering import LOWEST_PRECEDENCE, get_order, order

F = TypeVar("F", bound=Callable[..., Any])

logger = structlog.get_logger("flybeans.context.events")

APP_EVENT_LISTENER_MARKER = "__flybeans_app_event_listener__"


class ApplicationEvent:
    """Base class for all application lifecycle events."""

    def __init__(self, source: Any = None) -> None:
        self.source = source
        self.timestamp = time.time()


class ContextRefreshedEvent(ApplicationEvent):
    """Published when the ApplicationContext is fully initialized."""


class ContextClosedEvent(ApplicationEvent):
    """Published when the ApplicationContext is shutting down, before beans are destroyed."""


def app_event_listener(func: F) -> F:
    """Mark a bean method as a listener for application events.

    The event type is inferred from the method's type hint on the event parameter.
    """
    setattr(func, APP_EVENT_LISTENER_MARKER, True)
    return func


class ApplicationEventBus:
    """Synchronous in-process event bus for application lifecycle events."""

    def __init__(self) -> None:
        self._listeners: dict[
            type[ApplicationEvent],
            list[tuple[Callable[[Any], None], type | None]],
        ] = {}
        self._lock = threading.Lock()

    def subscribe(
        self,
        event_type: type[ApplicationEvent],
        listener: Callable[[Any], None],
        *,
        owner_cls: type | None = None,
    ) -> None:
        """Register a listener for a specific event type."""
        with self._lock:
            self._listeners.setdefault(event_type, []).append((listener, owner_cls))

    def unsubscribe_owner(self, owner_cls: type) -> None:
        with self._lock:
            for event_type, entries in self._listeners.items():
                self._listeners[event_type] = [e for e in entries if e[1] is not owner_cls]

    def publish(self, event: ApplicationEvent) -> None:
        """Publish an event to all matching listeners, sorted by @order."""
        with self._lock:
            matching = [
                entry
                for event_type, entries in self._listeners.items()
                if isinstance(event, event_type)
                for entry in entries
            ]
        # stable sort: equal orders keep subscription order
        matching.sort(key=lambda e: get_order(e[1]) if e[1] else 0)
        for listener, _owner in matching:
            listener(event)


def listener_event_type(method: Callable[..., Any]) -> type[ApplicationEvent] | None:
    """Event type a listener method accepts, from its first parameter's hint."""
    try:
        hints = typing.get_type_hints(method)
    except Exception:
        return None
    params = [p for p in inspect.signature(method).parameters.values() if p.name != "self"]
    if not params:
        return None
    event_type = hints.get(params[0].name)
    if isinstance(event_type, type) and issubclass(event_type, ApplicationEvent):
        return event_type
    return None


@order(LOWEST_PRECEDENCE)
class ApplicationListenerDetector:
    """Subscribe ``@app_event_listener`` methods of singleton beans to the event bus."""

    def __init__(self, event_bus: ApplicationEventBus, is_singleton: Callable[[str], bool]) -> None:
        self._event_bus = event_bus
        self._is_singleton = is_singleton

    def before_init(self, bean: Any, bean_name: str) -> Any:
        return bean

    def after_init(self, bean: Any, bean_name: str) -> Any:
        if not self._is_singleton(bean_name):
            return bean
        for attr_name in dir(type(bean)):
            raw = getattr(type(bean), attr_name, None)
            if not callable(raw) or not getattr(raw, APP_EVENT_LISTENER_MARKER, False):
                continue
            event_type = listener_event_type(raw)
            if event_type is None:
                logger.warning("listener_without_event_type", bean=bean_name, method=attr_name)
                continue
            self._event_bus.subscribe(event_type, getattr(bean, attr_name), owner_cls=type(bean))
            logger.debug("listener_registered", bean=bean_name, method=attr_name, event_type=event_type.__name__)
        return bean
