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
"""Custom scopes — delegate instance sharing to a registered Scope object."""

from __future__ import annotations

from collections.abc import Callable
from contextvars import ContextVar
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Scope(Protocol):
    """Strategy for a custom bean scope.

    ``get`` returns the scoped instance for *name*, calling *object_factory*
    to build one if the scope does not hold it yet.
    """

    def get(self, name: str, object_factory: Callable[[], Any]) -> Any: ...

    def remove(self, name: str) -> Any | None: ...


_scope_context_var: ContextVar[ScopeContext | None] = ContextVar("flybeans_scope_context", default=None)


class ScopeContext:
    """Holds the instances of one unit of work (e.g. one request).

    Use ``ScopeContext.init()`` to start a new context for the current task
    or thread and ``ScopeContext.current()`` to retrieve it.
    """

    def __init__(self) -> None:
        self._attributes: dict[str, Any] = {}

    def get(self, key: str, default: Any = None) -> Any:
        return self._attributes.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._attributes[key] = value

    def remove(self, key: str) -> Any | None:
        return self._attributes.pop(key, None)

    @classmethod
    def init(cls) -> ScopeContext:
        """Create and set a new ScopeContext for the current context."""
        ctx = cls()
        _scope_context_var.set(ctx)
        return ctx

    @classmethod
    def current(cls) -> ScopeContext | None:
        return _scope_context_var.get()

    @classmethod
    def clear(cls) -> None:
        _scope_context_var.set(None)


class ContextVarScope:
    """Scope storing instances in the active :class:`ScopeContext`."""

    def __init__(self, name: str = "request") -> None:
        self.name = name

    def _key(self, bean_name: str) -> str:
        return f"__flybeans_{self.name}_{bean_name}"

    def get(self, name: str, object_factory: Callable[[], Any]) -> Any:
        ctx = ScopeContext.current()
        if ctx is None:
            raise RuntimeError(
                f"No active scope context for {self.name}-scoped bean '{name}'. "
                "Call ScopeContext.init() before resolving it."
            )
        key = self._key(name)
        existing = ctx.get(key)
        if existing is not None:
            return existing
        instance = object_factory()
        ctx.set(key, instance)
        return instance

    def remove(self, name: str) -> Any | None:
        ctx = ScopeContext.current()
        if ctx is None:
            return None
        return ctx.remove(self._key(name))
