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
"""The BeanFactory contract — the client view of a bean container."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Protocol, TypeVar, overload, runtime_checkable

T = TypeVar("T")


@runtime_checkable
class BeanFactory(Protocol):
    """Root interface for accessing a bean container.

    Name-based lookups accept aliases and the ``&`` prefix (the FactoryBean
    itself instead of its product). A lookup whose first argument is a type
    is a by-type lookup that must match exactly one bean.
    """

    @overload
    def get_bean(self, name: str) -> Any: ...

    @overload
    def get_bean(self, name: str, required_type: type[T]) -> T: ...

    @overload
    def get_bean(self, name: type[T]) -> T: ...

    @overload
    def get_bean(
        self,
        name: str | type[T],
        required_type: type[T] | None = None,
        *,
        args: Sequence[Any] | None = None,
        kwargs: Mapping[str, Any] | None = None,
    ) -> Any: ...

    def get_bean(
        self,
        name: str | type[T],
        required_type: type[T] | None = None,
        *,
        args: Sequence[Any] | None = None,
        kwargs: Mapping[str, Any] | None = None,
    ) -> Any: ...

    def contains_bean(self, name: str) -> bool: ...

    def is_singleton(self, name: str) -> bool: ...

    def is_prototype(self, name: str) -> bool: ...

    def is_type_match(self, name: str, type_to_match: type) -> bool: ...

    def get_type(self, name: str) -> type | None: ...

    def get_aliases(self, name: str) -> list[str]: ...


@runtime_checkable
class HierarchicalBeanFactory(BeanFactory, Protocol):
    """A factory that may delegate to a parent on local misses."""

    @property
    def parent(self) -> HierarchicalBeanFactory | None: ...

    def contains_local_bean(self, name: str) -> bool: ...

    def get_bean_names_for_type(self, bean_type: type, include_ancestors: bool = False) -> list[str]: ...

    def is_primary(self, name: str) -> bool: ...

    def is_factory_bean(self, name: str) -> bool: ...
