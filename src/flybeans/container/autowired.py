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
"""Autowired field injection and Qualifier-based disambiguation."""

from __future__ import annotations

import typing
from typing import TYPE_CHECKING, Any

from flybeans.container.definition import PropertyValues
from flybeans.container.exceptions import BeanCreationException, NoSuchBeanDefinitionError
from flybeans.container.ordering import HIGHEST_PRECEDENCE, order
from flybeans.container.post_processor import InstantiationAwareBeanPostProcessorAdapter

if TYPE_CHECKING:
    from flybeans.container.factory import DefaultBeanFactory


class Qualifier:
    """Used with typing.Annotated to select a specific named bean.

    Usage::

        def __init__(self, db: Annotated[DataSource, Qualifier("primary_db")]):
            ...
    """

    __slots__ = ("name",)

    def __init__(self, name: str) -> None:
        self.name = name

    def __repr__(self) -> str:
        return f"Qualifier({self.name!r})"


class Autowired:
    """Marks a class attribute for field injection.

    Usage::

        class OrderService:
            repo: OrderRepository = Autowired()
            cache: Cache = Autowired(qualifier="redis_cache")
            metrics: MetricsCollector = Autowired(required=False)

    After instantiation, :class:`AutowiredAnnotationBeanPostProcessor`
    inspects class annotations for ``Autowired`` sentinels and injects the
    resolved dependency via ``setattr``.

    Args:
        qualifier: If set, resolve by bean name instead of type.
        required: If ``False``, unresolvable dependencies are set to ``None``
            instead of failing bean creation. Defaults to ``True``.
    """

    __slots__ = ("qualifier", "required")

    def __init__(self, *, qualifier: str | None = None, required: bool = True) -> None:
        self.qualifier = qualifier
        self.required = required

    def __repr__(self) -> str:
        parts: list[str] = []
        if self.qualifier:
            parts.append(f"qualifier={self.qualifier!r}")
        if not self.required:
            parts.append("required=False")
        return f"Autowired({', '.join(parts)})"


@order(HIGHEST_PRECEDENCE)
class AutowiredAnnotationBeanPostProcessor(InstantiationAwareBeanPostProcessorAdapter):
    """Injects ``Autowired()`` fields during the property-values phase."""

    def __init__(self, bean_factory: DefaultBeanFactory) -> None:
        self._bean_factory = bean_factory

    def post_process_properties(
        self, pvs: PropertyValues, bean: Any, bean_name: str
    ) -> PropertyValues | None:
        for attr_name, attr_type in self._autowired_fields(type(bean)):
            if pvs.contains(attr_name):
                continue  # explicit property values win
            marker: Autowired = getattr(type(bean), attr_name)
            setattr(bean, attr_name, self._resolve(bean, bean_name, attr_name, attr_type, marker))
        return pvs

    def _resolve(self, bean: Any, bean_name: str, attr_name: str, attr_type: Any, marker: Autowired) -> Any:
        try:
            if marker.qualifier:
                return self._bean_factory.resolve_dependency(
                    typing.Annotated[attr_type, Qualifier(marker.qualifier)], requesting_bean=bean_name
                )
            return self._bean_factory.resolve_dependency(attr_type, requesting_bean=bean_name)
        except NoSuchBeanDefinitionError as exc:
            if not marker.required:
                return None
            raise BeanCreationException(
                bean_name,
                f"Unsatisfied dependency expressed through field "
                f"'{type(bean).__qualname__}.{attr_name}': {exc.headline}",
            ) from exc

    @staticmethod
    def _autowired_fields(cls: type) -> list[tuple[str, Any]]:
        try:
            hints = typing.get_type_hints(cls, include_extras=True)
        except Exception:
            return []
        return [
            (attr_name, attr_type)
            for attr_name, attr_type in hints.items()
            if isinstance(getattr(cls, attr_name, None), Autowired)
        ]
