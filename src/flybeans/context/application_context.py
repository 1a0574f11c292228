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
"""ApplicationContext — bean factory plus configuration, lifecycle, and events."""

from __future__ import annotations

import threading
import time
from collections.abc import Mapping, Sequence
from typing import Any, TypeVar

import structlog

from flybeans.container.autowired import AutowiredAnnotationBeanPostProcessor
from flybeans.container.definition import BeanDefinition
from flybeans.container.factory import DefaultBeanFactory
from flybeans.container.post_processor import is_post_processor
from flybeans.container.registry import SimpleBeanDefinitionRegistry
from flybeans.container.scopes import Scope
from flybeans.context.events import (
    ApplicationEvent,
    ApplicationEventBus,
    ApplicationListenerDetector,
    ContextClosedEvent,
    ContextRefreshedEvent,
)
from flybeans.context.properties import ContextProperties
from flybeans.core.config import Config

T = TypeVar("T")

logger = structlog.get_logger("flybeans.context")

CONFIG_BEAN_NAME = "flybeans.config"


class ApplicationContext:
    """Central bean registry, lifecycle manager, and event publisher.

    Wraps a :class:`DefaultBeanFactory` and adds:
    - container settings bound from ``flybeans.context`` configuration
    - post-processor detection among registered bean definitions
    - field injection through ``Autowired`` markers
    - eager singleton creation on :meth:`refresh`
    - ``ContextRefreshedEvent`` / ``ContextClosedEvent`` publishing

    A context is refreshed once and closed once. Nested contexts pass
    ``parent=``; names not defined locally are resolved in the parent.
    """

    def __init__(self, config: Config | None = None, parent: ApplicationContext | None = None) -> None:
        self._config = config if config is not None else Config.with_defaults()
        self._parent = parent
        self._properties = self._config.bind(ContextProperties)
        self._bean_factory = DefaultBeanFactory(
            parent=parent.bean_factory if parent is not None else None,
            registry=SimpleBeanDefinitionRegistry(
                allow_overriding=self._properties.allow_bean_definition_overriding
            ),
            allow_circular_references=self._properties.allow_circular_references,
        )
        self._event_bus = ApplicationEventBus()
        self._startup_shutdown_lock = threading.RLock()
        self._active = False
        self._closed = False
        self._startup_time: float | None = None

        self._bean_factory.register_singleton(CONFIG_BEAN_NAME, self._config)

    # ------------------------------------------------------------------
    # Bean registration
    # ------------------------------------------------------------------

    def register_bean(
        self,
        name: str,
        bean_class: type | None = None,
        **definition_fields: Any,
    ) -> BeanDefinition:
        """Build a :class:`BeanDefinition` from keyword fields and register it.

        Usage:
            ctx.register_bean("orderService", OrderService, scope="prototype")
        """
        definition = BeanDefinition(bean_class=bean_class, **definition_fields)
        self._bean_factory.register_bean_definition(name, definition)
        return definition

    def register_bean_definition(self, name: str, definition: BeanDefinition) -> None:
        self._bean_factory.register_bean_definition(name, definition)

    def register_alias(self, name: str, alias: str) -> None:
        self._bean_factory.register_alias(name, alias)

    def register_singleton(self, name: str, singleton: Any) -> None:
        self._bean_factory.register_singleton(name, singleton)

    def add_post_processor(self, processor: Any) -> None:
        self._bean_factory.add_post_processor(processor)

    def register_scope(self, scope_name: str, scope: Scope) -> None:
        self._bean_factory.register_scope(scope_name, scope)

    # ------------------------------------------------------------------
    # Bean access
    # ------------------------------------------------------------------

    def get_bean(
        self,
        name: str | type[T],
        required_type: type[T] | None = None,
        *,
        args: Sequence[Any] | None = None,
        kwargs: Mapping[str, Any] | None = None,
    ) -> Any:
        """Resolve a bean by name or by type. See :meth:`DefaultBeanFactory.get_bean`."""
        return self._bean_factory.get_bean(name, required_type, args=args, kwargs=kwargs)

    def get_beans_of_type(self, bean_type: type[T]) -> dict[str, T]:
        return self._bean_factory.get_beans_of_type(bean_type)

    def get_bean_names_for_type(self, bean_type: type, include_ancestors: bool = False) -> list[str]:
        return self._bean_factory.get_bean_names_for_type(bean_type, include_ancestors)

    def contains_bean(self, name: str) -> bool:
        return self._bean_factory.contains_bean(name)

    def is_singleton(self, name: str) -> bool:
        return self._bean_factory.is_singleton(name)

    def is_prototype(self, name: str) -> bool:
        return self._bean_factory.is_prototype(name)

    def is_type_match(self, name: str, type_to_match: type) -> bool:
        return self._bean_factory.is_type_match(name, type_to_match)

    def get_type(self, name: str) -> type | None:
        return self._bean_factory.get_type(name)

    def get_aliases(self, name: str) -> list[str]:
        return self._bean_factory.get_aliases(name)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def bean_factory(self) -> DefaultBeanFactory:
        """Escape hatch: direct access to the underlying bean factory."""
        return self._bean_factory

    @property
    def parent(self) -> ApplicationContext | None:
        return self._parent

    @property
    def config(self) -> Config:
        """Application configuration."""
        return self._config

    @property
    def properties(self) -> ContextProperties:
        return self._properties

    @property
    def event_bus(self) -> ApplicationEventBus:
        """Application event bus."""
        return self._event_bus

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def startup_time(self) -> float | None:
        """Wall-clock time of the last successful refresh (``time.time()``)."""
        return self._startup_time

    @property
    def bean_count(self) -> int:
        """Number of bean definitions registered in this context."""
        return len(self._bean_factory.get_bean_definition_names())

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def refresh(self) -> None:
        """Start the context: register post-processors, create eager singletons, publish events.

        On failure every singleton created so far is destroyed and the
        error propagates.
        """
        with self._startup_shutdown_lock:
            if self._active or self._closed:
                raise RuntimeError("ApplicationContext does not support multiple refresh attempts")

            logger.info("refreshing_context", bean_definitions=self.bean_count)
            started = time.perf_counter()
            try:
                self._register_post_processors()
                if not self._properties.lazy_init:
                    self._bean_factory.pre_instantiate_singletons()
            except Exception as exc:
                logger.error("context_refresh_failed", error=str(exc), error_type=type(exc).__name__)
                self._bean_factory.destroy_singletons()
                self._closed = True
                raise

            self._active = True
            self._startup_time = time.time()

        self._event_bus.publish(ContextRefreshedEvent(self))
        logger.info(
            "context_refreshed",
            singletons=len(self._bean_factory.get_singleton_names()),
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )

    def initialize(self) -> None:
        """Host-facing alias of :meth:`refresh`."""
        self.refresh()

    def close(self) -> None:
        """Publish ``ContextClosedEvent`` and destroy all singletons. Idempotent."""
        with self._startup_shutdown_lock:
            if not self._active:
                return
            logger.info("closing_context")
            try:
                self._event_bus.publish(ContextClosedEvent(self))
            finally:
                self._bean_factory.destroy_singletons()
                self._active = False
                self._closed = True
            logger.info("context_closed")

    def publish_event(self, event: ApplicationEvent) -> None:
        self._event_bus.publish(event)

    def __enter__(self) -> ApplicationContext:
        self.refresh()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _register_post_processors(self) -> None:
        factory = self._bean_factory
        factory.add_post_processor(AutowiredAnnotationBeanPostProcessor(factory))

        for name in factory.get_bean_definition_names():
            definition = factory.get_bean_definition(name)
            if definition.abstract or not definition.is_singleton:
                continue
            bean_type = factory.get_type(name)
            if bean_type is not None and is_post_processor(bean_type):
                factory.add_post_processor(factory.get_bean(name))
                logger.debug("post_processor_registered", bean=name)

        factory.add_post_processor(ApplicationListenerDetector(self._event_bus, self._is_local_singleton))

    def _is_local_singleton(self, name: str) -> bool:
        factory = self._bean_factory
        return factory.contains_bean_definition(name) and factory.get_bean_definition(name).is_singleton
