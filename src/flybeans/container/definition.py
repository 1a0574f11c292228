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
"""Bean definitions — the metadata template a bean is built from."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from flybeans.container.types import BeanScope


@dataclass(frozen=True)
class BeanReference:
    """Placeholder for another bean, resolved via ``get_bean`` at wiring time."""

    bean_name: str


@dataclass(frozen=True)
class PropertyValue:
    """A single named property to set on a bean after instantiation."""

    name: str
    value: Any


class PropertyValues:
    """Ordered set of property values, keyed by property name.

    Adding a value for a name that is already present replaces it in place.
    """

    def __init__(
        self,
        values: PropertyValues | Mapping[str, Any] | Iterable[PropertyValue] | None = None,
    ) -> None:
        self._values: dict[str, PropertyValue] = {}
        if values is None:
            return
        if isinstance(values, PropertyValues):
            self._values = dict(values._values)
        elif isinstance(values, Mapping):
            for name, value in values.items():
                self.add(name, value)
        else:
            for pv in values:
                self._values[pv.name] = pv

    def add(self, name: str, value: Any) -> PropertyValues:
        self._values[name] = PropertyValue(name, value)
        return self

    def remove(self, name: str) -> None:
        self._values.pop(name, None)

    def get(self, name: str, default: Any = None) -> Any:
        pv = self._values.get(name)
        return pv.value if pv is not None else default

    def contains(self, name: str) -> bool:
        return name in self._values

    def names(self) -> list[str]:
        return list(self._values)

    def is_empty(self) -> bool:
        return not self._values

    def __iter__(self) -> Iterator[PropertyValue]:
        return iter(list(self._values.values()))

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PropertyValues):
            return NotImplemented
        return self._values == other._values

    def __repr__(self) -> str:
        inner = ", ".join(f"{pv.name}={pv.value!r}" for pv in self._values.values())
        return f"PropertyValues({inner})"


@dataclass(frozen=True)
class BeanDefinition:
    """Immutable description of how to build one bean.

    Either ``bean_class`` or ``factory_method`` must be given. When both are
    present the factory method builds the instance and ``bean_class`` is only
    used for type matching.

    Attributes:
        bean_class: Class to instantiate.
        factory_method: Callable producing the instance instead of the class.
        scope: ``"singleton"``, ``"prototype"`` or a registered custom scope.
        constructor_args: Positional constructor arguments (may hold
            ``BeanReference`` values).
        constructor_kwargs: Keyword constructor arguments.
        property_values: Properties set via ``setattr`` after instantiation.
        init_method_name: Method called after properties are set.
        destroy_method_name: Method called when the factory closes.
        lazy_init: Skip eager creation on context refresh.
        depends_on: Beans that must be created before this one.
        primary: Preferred candidate when a by-type lookup is ambiguous.
        abstract: Template-only definition; cannot be instantiated.
        autowire: Resolve unset constructor parameters from type hints.
    """

    bean_class: type | None = None
    factory_method: Callable[..., Any] | None = None
    scope: str = BeanScope.SINGLETON
    constructor_args: tuple[Any, ...] = ()
    constructor_kwargs: Mapping[str, Any] = field(default_factory=dict)
    property_values: PropertyValues = field(default_factory=PropertyValues)
    init_method_name: str | None = None
    destroy_method_name: str | None = None
    lazy_init: bool = False
    depends_on: tuple[str, ...] = ()
    primary: bool = False
    abstract: bool = False
    autowire: bool = False
    description: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.property_values, PropertyValues):
            object.__setattr__(self, "property_values", PropertyValues(self.property_values))
        object.__setattr__(self, "constructor_args", tuple(self.constructor_args))
        object.__setattr__(self, "depends_on", tuple(self.depends_on))

    @property
    def is_singleton(self) -> bool:
        return self.scope == BeanScope.SINGLETON

    @property
    def is_prototype(self) -> bool:
        return self.scope == BeanScope.PROTOTYPE

    @property
    def has_constructor_arguments(self) -> bool:
        return bool(self.constructor_args or self.constructor_kwargs)

    def with_changes(self, **changes: Any) -> BeanDefinition:
        """Return a copy of this definition with the given fields replaced."""
        return replace(self, **changes)
