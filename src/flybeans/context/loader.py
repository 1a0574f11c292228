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
"""Bootstrap a root ApplicationContext from a host's startup and shutdown hooks.

A host is anything with a startup/shutdown notification and an attribute map:
a servlet-like container, a worker process, or an ASGI application. The root
context is stored in that map under :data:`ROOT_CONTEXT_ATTRIBUTE`.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable, MutableMapping, Sequence
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from pathlib import Path
from typing import Any

import structlog
from starlette.applications import Starlette

from flybeans.context.application_context import ApplicationContext
from flybeans.core.config import Config
from flybeans.logging.port import LoggingPort
from flybeans.logging.structlog_adapter import StructlogAdapter

logger = structlog.get_logger("flybeans.context.loader")

ROOT_CONTEXT_ATTRIBUTE = "flybeans.context.ROOT"

ContextInitializer = Callable[[ApplicationContext], None]


def get_root_context(attributes: MutableMapping[str, Any]) -> ApplicationContext | None:
    """The root context stored in a host attribute map, or ``None``."""
    return attributes.get(ROOT_CONTEXT_ATTRIBUTE)


class ContextLoader:
    """Creates, refreshes, and closes the root application context.

    Either pass a ready ``context``, or let the loader build one from
    ``config_location`` (YAML or TOML, with ``active_profiles`` overlays).
    ``initializers`` run against a freshly built context before refresh and
    typically register bean definitions.
    """

    def __init__(
        self,
        context: ApplicationContext | None = None,
        *,
        config_location: str | Path | None = None,
        active_profiles: Sequence[str] = (),
        initializers: Sequence[ContextInitializer] = (),
        logging_port: LoggingPort | None = None,
    ) -> None:
        if context is not None and config_location is not None:
            raise ValueError("Pass either a context or a config_location, not both")
        self._context = context
        self._config_location = config_location
        self._active_profiles = list(active_profiles)
        self._initializers = list(initializers)
        self._logging_port = logging_port

    def init_context(self, attributes: MutableMapping[str, Any]) -> ApplicationContext:
        """Create and refresh the root context, then publish it in *attributes*."""
        if ROOT_CONTEXT_ATTRIBUTE in attributes:
            raise RuntimeError(
                "Cannot initialize context because there is already a root application context present"
            )
        context = self.create_context()
        try:
            context.refresh()
        except Exception:
            logger.error("root_context_initialization_failed")
            raise
        attributes[ROOT_CONTEXT_ATTRIBUTE] = context
        logger.info("root_context_initialized", beans=context.bean_count)
        return context

    def close_context(self, attributes: MutableMapping[str, Any]) -> None:
        """Close the root context and remove it from *attributes*."""
        context = attributes.pop(ROOT_CONTEXT_ATTRIBUTE, None)
        if context is not None:
            context.close()
            logger.info("root_context_closed")

    def create_context(self) -> ApplicationContext:
        if self._context is not None:
            return self._context

        if self._config_location is not None:
            config = Config.from_file(self._config_location, active_profiles=self._active_profiles)
        else:
            config = Config.with_defaults()
        logging_port = self._logging_port or StructlogAdapter()
        logging_port.configure(config)

        context = ApplicationContext(config)
        for initializer in self._initializers:
            initializer(context)
        return context


class ContextLoaderListener(ContextLoader):
    """Host lifecycle listener: refreshes on startup and closes on shutdown."""

    def context_initialized(self, attributes: MutableMapping[str, Any]) -> ApplicationContext:
        return self.init_context(attributes)

    def context_destroyed(self, attributes: MutableMapping[str, Any]) -> None:
        self.close_context(attributes)


def context_lifespan(
    context: ApplicationContext | ContextLoader,
) -> Callable[[Starlette], AbstractAsyncContextManager[dict[str, Any]]]:
    """Starlette lifespan that owns the root context for the app's lifetime.

    The context is available as ``app.state.application_context`` and, per
    request, as ``request.state.application_context``.

    Usage:
        app = Starlette(routes=routes, lifespan=context_lifespan(ctx))
    """
    listener = context if isinstance(context, ContextLoader) else ContextLoaderListener(context)

    @asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[dict[str, Any]]:
        attributes: dict[str, Any] = {}
        root = listener.init_context(attributes)
        app.state.application_context = root
        try:
            yield {"application_context": root}
        finally:
            listener.close_context(attributes)

    return lifespan
