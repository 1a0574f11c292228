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
"""Post-processor chain — interceptors around instantiation and initialization.

A post-processor is any object offering a subset of the hook methods below,
or a :class:`ProcessorHooks` record built from plain functions. The chain
normalises every processor into a ``ProcessorHooks`` record; hooks a
processor does not provide behave as no-ops.

Hooks:
- ``predict_bean_type(bean_class, bean_name)``: final type, or ``None``
- ``determine_candidate_constructors(bean_class, bean_name)``: callables to
  try for instantiation, or ``None``
- ``get_early_bean_reference(bean, bean_name)``: reference exposed to a
  cyclic dependant
- ``before_instantiation(bean_class, bean_name)``: surrogate bean, or ``None``
- ``after_instantiation(bean, bean_name)``: ``False`` skips population
- ``post_process_properties(pvs, bean, bean_name)``: property values to apply
- ``before_init(bean, bean_name)``: called before init methods
- ``after_init(bean, bean_name)``: called after init methods
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, fields
from typing import Any, Protocol, runtime_checkable

from flybeans.container.definition import PropertyValues
from flybeans.container.ordering import get_order

HOOK_NAMES: tuple[str, ...] = (
    "predict_bean_type",
    "determine_candidate_constructors",
    "get_early_bean_reference",
    "before_instantiation",
    "after_instantiation",
    "post_process_properties",
    "before_init",
    "after_init",
)


@runtime_checkable
class BeanPostProcessor(Protocol):
    """Hook into bean initialization.

    - ``before_init``: called before init methods (``@post_construct``,
      ``after_properties_set``, the declared init method)
    - ``after_init``: called after init methods
    """

    def before_init(self, bean: Any, bean_name: str) -> Any:
        """May return a replacement bean."""
        ...

    def after_init(self, bean: Any, bean_name: str) -> Any:
        """May return a replacement bean."""
        ...


class InstantiationAwareBeanPostProcessorAdapter:
    """Implements every hook as a no-op so subclasses override only what they need."""

    def predict_bean_type(self, bean_class: type, bean_name: str) -> type | None:
        return None

    def determine_candidate_constructors(
        self, bean_class: type, bean_name: str
    ) -> Sequence[Callable[..., Any]] | None:
        return None

    def get_early_bean_reference(self, bean: Any, bean_name: str) -> Any:
        return bean

    def before_instantiation(self, bean_class: type, bean_name: str) -> Any:
        return None

    def after_instantiation(self, bean: Any, bean_name: str) -> bool:
        return True

    def post_process_properties(
        self, pvs: PropertyValues, bean: Any, bean_name: str
    ) -> PropertyValues | None:
        return pvs

    def before_init(self, bean: Any, bean_name: str) -> Any:
        return bean

    def after_init(self, bean: Any, bean_name: str) -> Any:
        return bean


@dataclass(frozen=True)
class ProcessorHooks:
    """A post-processor as a record of optional hook functions."""

    predict_bean_type: Callable[[type, str], type | None] | None = None
    determine_candidate_constructors: Callable[[type, str], Sequence[Callable[..., Any]] | None] | None = None
    get_early_bean_reference: Callable[[Any, str], Any] | None = None
    before_instantiation: Callable[[type, str], Any] | None = None
    after_instantiation: Callable[[Any, str], bool] | None = None
    post_process_properties: Callable[[PropertyValues, Any, str], PropertyValues | None] | None = None
    before_init: Callable[[Any, str], Any] | None = None
    after_init: Callable[[Any, str], Any] | None = None
    order: int = 0
    source: Any = None

    @classmethod
    def of(cls, processor: Any) -> ProcessorHooks:
        """Build a hooks record from an object exposing some of the hook methods."""
        if isinstance(processor, ProcessorHooks):
            return processor
        found = {}
        for name in HOOK_NAMES:
            hook = getattr(processor, name, None)
            if callable(hook):
                found[name] = hook
        if not found:
            raise TypeError(f"{type(processor).__qualname__} implements no post-processor hooks")
        return cls(**found, order=get_order(processor), source=processor)

    def provided(self) -> list[str]:
        """Names of the hooks this record actually provides."""
        return [f.name for f in fields(self) if f.name in HOOK_NAMES and getattr(self, f.name) is not None]


def is_post_processor(obj: Any) -> bool:
    """True if *obj* (an instance or a class) is a post-processor the context should register."""
    if isinstance(obj, ProcessorHooks):
        return True
    target = obj if isinstance(obj, type) else type(obj)
    if issubclass(target, InstantiationAwareBeanPostProcessorAdapter):
        return True
    return issubclass(target, BeanPostProcessor)


class PostProcessorChain:
    """Ordered sequence of post-processors.

    Processors run in ``@order`` order; processors with equal order keep
    their registration order. Re-adding a processor moves it to the end of
    its order group. A hook that raises aborts the chain.
    """

    def __init__(self) -> None:
        self._entries: tuple[ProcessorHooks, ...] = ()

    def add(self, processor: Any) -> ProcessorHooks:
        hooks = ProcessorHooks.of(processor)
        source = hooks.source if hooks.source is not None else hooks
        remaining = [e for e in self._entries if (e.source if e.source is not None else e) is not source]
        remaining.append(hooks)
        self._entries = tuple(sorted(remaining, key=lambda e: e.order))
        return hooks

    @property
    def processors(self) -> list[Any]:
        return [e.source if e.source is not None else e for e in self._entries]

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

    def _hooks(self, name: str) -> list[Callable[..., Any]]:
        return [hook for hook in (getattr(e, name) for e in self._entries) if hook is not None]

    # -- first non-None wins -------------------------------------------

    def predict_bean_type(self, bean_class: type, bean_name: str) -> type | None:
        for hook in self._hooks("predict_bean_type"):
            predicted = hook(bean_class, bean_name)
            if predicted is not None:
                return predicted
        return None

    def determine_candidate_constructors(
        self, bean_class: type, bean_name: str
    ) -> Sequence[Callable[..., Any]] | None:
        for hook in self._hooks("determine_candidate_constructors"):
            candidates = hook(bean_class, bean_name)
            if candidates:
                return candidates
        return None

    def before_instantiation(self, bean_class: type, bean_name: str) -> Any:
        for hook in self._hooks("before_instantiation"):
            surrogate = hook(bean_class, bean_name)
            if surrogate is not None:
                return surrogate
        return None

    # -- veto ---------------------------------------------------------------

    def after_instantiation(self, bean: Any, bean_name: str) -> bool:
        for hook in self._hooks("after_instantiation"):
            if not hook(bean, bean_name):
                return False
        return True

    # -- left-to-right composition ---------------------------------------

    def post_process_properties(
        self, pvs: PropertyValues, bean: Any, bean_name: str
    ) -> PropertyValues | None:
        current: PropertyValues | None = pvs
        for hook in self._hooks("post_process_properties"):
            current = hook(current, bean, bean_name)
            if current is None:
                return None
        return current

    def get_early_bean_reference(self, bean: Any, bean_name: str) -> Any:
        return self._compose("get_early_bean_reference", bean, bean_name)

    def before_init(self, bean: Any, bean_name: str) -> Any:
        return self._compose("before_init", bean, bean_name)

    def after_init(self, bean: Any, bean_name: str) -> Any:
        return self._compose("after_init", bean, bean_name)

    def _compose(self, name: str, bean: Any, bean_name: str) -> Any:
        current = bean
        for hook in self._hooks(name):
            result = hook(current, bean_name)
            if result is None:
                return current
            current = result
        return current
