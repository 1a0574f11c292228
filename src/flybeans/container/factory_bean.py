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
"""FactoryBean indirection and the ``&`` dereference convention."""

from __future__ import annotations

import abc
import typing
from typing import Any

from flybeans.container.types import FACTORY_BEAN_PREFIX


class FactoryBean(abc.ABC):
    """A bean that is itself a factory for the object ``get_bean`` returns.

    ``get_bean("name")`` returns the product of :meth:`get_object`;
    ``get_bean("&name")`` returns the factory itself.

    Usage::

        class ConnectionFactoryBean(FactoryBean):
            url = "sqlite://"

            def get_object(self) -> Connection:
                return Connection(self.url)

            def get_object_type(self) -> type | None:
                return Connection
    """

    @abc.abstractmethod
    def get_object(self) -> Any:
        """Return the product instance (may be shared or fresh)."""
        ...

    def get_object_type(self) -> type | None:
        """Return the product type, or ``None`` if unknown in advance.

        Defaults to the return annotation of :meth:`get_object`.
        """
        return declared_object_type(type(self))

    def is_singleton(self) -> bool:
        """Whether the product is shared; the container caches shared products."""
        return True


def is_factory_dereference(name: str) -> bool:
    """True if *name* asks for the factory itself rather than its product."""
    return name.startswith(FACTORY_BEAN_PREFIX)


def strip_factory_prefix(name: str) -> str:
    """Remove every leading ``&`` from *name*."""
    while name.startswith(FACTORY_BEAN_PREFIX):
        name = name[len(FACTORY_BEAN_PREFIX):]
    return name


def is_factory_bean_class(cls: type | None) -> bool:
    return isinstance(cls, type) and issubclass(cls, FactoryBean)


def declared_object_type(factory_class: type) -> type | None:
    """Product type declared by ``get_object``'s return annotation, if it is a class."""
    try:
        hints = typing.get_type_hints(factory_class.get_object)
    except Exception:
        return None
    declared = hints.get("return")
    if isinstance(declared, type) and declared is not Any:
        return declared
    return None
