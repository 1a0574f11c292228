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
"""Instantiation strategies — turn a definition and arguments into a raw instance."""

from __future__ import annotations

import inspect
from collections.abc import Callable, Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

from flybeans.container.definition import BeanDefinition
from flybeans.container.exceptions import BeanCreationException


@runtime_checkable
class InstantiationStrategy(Protocol):
    """Produces a raw, unpopulated bean instance."""

    def instantiate(
        self,
        definition: BeanDefinition,
        bean_name: str,
        constructor: Callable[..., Any] | None = None,
        args: Sequence[Any] = (),
        kwargs: Mapping[str, Any] | None = None,
    ) -> Any: ...


class SimpleInstantiationStrategy:
    """Calls the chosen constructor, the factory method, or the bean class."""

    def instantiate(
        self,
        definition: BeanDefinition,
        bean_name: str,
        constructor: Callable[..., Any] | None = None,
        args: Sequence[Any] = (),
        kwargs: Mapping[str, Any] | None = None,
    ) -> Any:
        target = constructor or definition.factory_method or definition.bean_class
        if target is None:
            raise BeanCreationException(bean_name, "No bean class or factory method specified")
        if isinstance(target, type) and inspect.isabstract(target):
            raise BeanCreationException(bean_name, f"Cannot instantiate abstract class {target.__qualname__}")
        return target(*args, **dict(kwargs or {}))
