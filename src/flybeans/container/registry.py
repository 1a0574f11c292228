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
"""Bean definition registry — canonical names, aliases, and definitions."""

from __future__ import annotations

import difflib
from typing import Protocol, runtime_checkable

from flybeans.container.definition import BeanDefinition
from flybeans.container.exceptions import BeanDefinitionStoreException, NoSuchBeanDefinitionError


@runtime_checkable
class BeanDefinitionRegistry(Protocol):
    """Read side of a definition registry, as consumed by the bean factory."""

    def get_bean_definition(self, name: str) -> BeanDefinition: ...

    def contains_bean_definition(self, name: str) -> bool: ...

    def get_bean_definition_names(self) -> list[str]: ...

    def canonical_name(self, name: str) -> str: ...

    def is_alias(self, name: str) -> bool: ...

    def get_aliases(self, name: str) -> list[str]: ...


class SimpleBeanDefinitionRegistry:
    """In-memory registry keeping definitions in registration order.

    Definitions are expected to be registered before the factory starts
    serving concurrent lookups.
    """

    def __init__(self, *, allow_overriding: bool = True) -> None:
        self.allow_overriding = allow_overriding
        self._definitions: dict[str, BeanDefinition] = {}
        self._alias_map: dict[str, str] = {}  # alias -> name (may itself be an alias)

    # ------------------------------------------------------------------
    # Definitions
    # ------------------------------------------------------------------

    def register_bean_definition(self, name: str, definition: BeanDefinition) -> None:
        """Register *definition* under the canonical *name*."""
        if not name:
            raise BeanDefinitionStoreException("Bean name must not be empty")
        if definition.bean_class is None and definition.factory_method is None and not definition.abstract:
            raise BeanDefinitionStoreException(
                f"Bean definition '{name}' needs a bean_class or a factory_method", bean_name=name
            )
        if name in self._definitions and not self.allow_overriding:
            raise BeanDefinitionStoreException(
                f"Cannot register bean definition for bean '{name}': there is already a definition bound",
                bean_name=name,
            )
        if name in self._alias_map:
            raise BeanDefinitionStoreException(
                f"Cannot register bean definition '{name}': name is already used as an alias",
                bean_name=name,
            )
        self._definitions[name] = definition

    def remove_bean_definition(self, name: str) -> None:
        if name not in self._definitions:
            raise NoSuchBeanDefinitionError(bean_name=name)
        del self._definitions[name]

    def get_bean_definition(self, name: str) -> BeanDefinition:
        definition = self._definitions.get(name)
        if definition is None:
            raise NoSuchBeanDefinitionError(
                bean_name=name,
                suggestions=difflib.get_close_matches(name, list(self._definitions), n=5, cutoff=0.6),
            )
        return definition

    def contains_bean_definition(self, name: str) -> bool:
        return name in self._definitions

    def get_bean_definition_names(self) -> list[str]:
        return list(self._definitions)

    def get_bean_definition_count(self) -> int:
        return len(self._definitions)

    # ------------------------------------------------------------------
    # Aliases
    # ------------------------------------------------------------------

    def register_alias(self, name: str, alias: str) -> None:
        """Register *alias* for *name*; rejects aliases that would form a cycle."""
        if not name or not alias:
            raise BeanDefinitionStoreException("Name and alias must not be empty")
        if alias == name:
            self._alias_map.pop(alias, None)
            return
        registered = self._alias_map.get(alias)
        if registered == name:
            return
        if registered is not None and not self.allow_overriding:
            raise BeanDefinitionStoreException(
                f"Cannot define alias '{alias}' for name '{name}': "
                f"it is already registered for name '{registered}'",
                bean_name=name,
            )
        if self._has_alias(alias, name):
            raise BeanDefinitionStoreException(
                f"Cannot register alias '{alias}' for name '{name}': "
                f"circular reference - '{name}' is a direct or indirect alias for '{alias}' already",
                bean_name=name,
            )
        self._alias_map[alias] = name

    def remove_alias(self, alias: str) -> None:
        if self._alias_map.pop(alias, None) is None:
            raise BeanDefinitionStoreException(f"No alias '{alias}' registered")

    def is_alias(self, name: str) -> bool:
        return name in self._alias_map

    def canonical_name(self, name: str) -> str:
        """Follow alias links until a non-alias name is reached."""
        canonical = name
        while canonical in self._alias_map:
            canonical = self._alias_map[canonical]
        return canonical

    def get_aliases(self, name: str) -> list[str]:
        """Return every alias that resolves (directly or transitively) to *name*."""
        result: list[str] = []
        self._collect_aliases(name, result)
        return result

    def _collect_aliases(self, name: str, result: list[str]) -> None:
        for alias, target in self._alias_map.items():
            if target == name and alias not in result:
                result.append(alias)
                self._collect_aliases(alias, result)

    def _has_alias(self, name: str, alias: str) -> bool:
        """True if *alias* resolves (directly or transitively) to *name*."""
        for registered_alias, target in self._alias_map.items():
            if target == name:
                if registered_alias == alias or self._has_alias(registered_alias, alias):
                    return True
        return False
