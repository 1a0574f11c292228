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
"""DefaultBeanFactory — resolution, creation and wiring of beans."""

from __future__ import annotations

import difflib
import inspect
import threading
import time
import types
import typing
from collections.abc import Callable, Mapping, Sequence
from typing import Annotated, Any, TypeVar, Union, get_args, get_origin

import structlog

from flybeans.container.autowired import Qualifier
from flybeans.container.definition import BeanDefinition, BeanReference, PropertyValues
from flybeans.container.exceptions import (
    BeanCreationException,
    BeanCurrentlyInCreationError,
    BeanDefinitionStoreException,
    BeanIsAbstractError,
    BeanIsNotAFactoryError,
    BeanNotOfRequiredTypeError,
    BeansException,
    NoSuchBeanDefinitionError,
    NoUniqueBeanDefinitionError,
)
from flybeans.container.factory_bean import (
    FactoryBean,
    declared_object_type,
    is_factory_bean_class,
    is_factory_dereference,
    strip_factory_prefix,
)
from flybeans.container.instantiation import InstantiationStrategy, SimpleInstantiationStrategy
from flybeans.container.lifecycle import (
    POST_CONSTRUCT_MARKER,
    BeanFactoryAware,
    BeanNameAware,
    DisposableBeanAdapter,
    InitializingBean,
    marked_methods,
)
from flybeans.container.metrics import BeanMetrics
from flybeans.container.post_processor import PostProcessorChain, ProcessorHooks
from flybeans.container.registry import SimpleBeanDefinitionRegistry
from flybeans.container.scopes import Scope
from flybeans.container.singleton_registry import DefaultSingletonBeanRegistry
from flybeans.container.types import FACTORY_BEAN_PREFIX, BeanScope

T = TypeVar("T")

logger = structlog.get_logger("flybeans.container.factory")


class DefaultBeanFactory:
    """Bean factory over a definition registry, with an optional parent.

    Singletons are created at most once per canonical name (also under
    concurrent first access) and cached until :meth:`destroy_singletons`.
    Prototypes are built on every request and not tracked. Names that are
    not defined locally are looked up in the parent factory; local
    definitions shadow parent definitions of the same name.

    Creation pipeline: before-instantiation hooks → instantiate →
    after-instantiation hooks → property-values hooks → apply properties →
    aware setters → before-init hooks → init methods → after-init hooks.
    """

    def __init__(
        self,
        parent: DefaultBeanFactory | None = None,
        *,
        registry: SimpleBeanDefinitionRegistry | None = None,
        instantiation_strategy: InstantiationStrategy | None = None,
        allow_circular_references: bool = True,
    ) -> None:
        self._parent = parent
        self._registry = registry if registry is not None else SimpleBeanDefinitionRegistry()
        self._instantiation_strategy = instantiation_strategy or SimpleInstantiationStrategy()
        self.allow_circular_references = allow_circular_references
        self._singletons = DefaultSingletonBeanRegistry()
        self._post_processors = PostProcessorChain()
        self._scopes: dict[str, Scope] = {}
        self._factory_bean_objects: dict[str, Any] = {}
        self._prototypes_in_creation = threading.local()
        self._metrics: dict[str, BeanMetrics] = {}
        self._metrics_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @property
    def parent(self) -> DefaultBeanFactory | None:
        return self._parent

    @property
    def registry(self) -> SimpleBeanDefinitionRegistry:
        return self._registry

    def register_bean_definition(self, name: str, definition: BeanDefinition) -> None:
        self._registry.register_bean_definition(name, definition)

    def register_alias(self, name: str, alias: str) -> None:
        self._registry.register_alias(name, alias)

    def register_singleton(self, name: str, singleton: Any) -> None:
        """Register an already initialized object as a singleton under *name*."""
        self._singletons.register_singleton(name, singleton)

    def add_post_processor(self, processor: Any) -> ProcessorHooks:
        """Add a post-processor object or a ``ProcessorHooks`` record to the chain."""
        return self._post_processors.add(processor)

    @property
    def post_processors(self) -> list[Any]:
        return self._post_processors.processors

    def register_scope(self, scope_name: str, scope: Scope) -> None:
        if scope_name in (BeanScope.SINGLETON, BeanScope.PROTOTYPE):
            raise ValueError(f"Cannot replace existing scopes 'singleton' and 'prototype' ({scope_name!r})")
        self._scopes[scope_name] = scope

    def get_registered_scope(self, scope_name: str) -> Scope | None:
        return self._scopes.get(scope_name)

    # ------------------------------------------------------------------
    # BeanFactory contract
    # ------------------------------------------------------------------

    def get_bean(
        self,
        name: str | type[T],
        required_type: type[T] | None = None,
        *,
        args: Sequence[Any] | None = None,
        kwargs: Mapping[str, Any] | None = None,
    ) -> Any:
        """Return the bean for *name*, or the single bean matching a type.

        Args:
            name: Bean name (aliases and the ``&`` prefix accepted), or a type
                for a by-type lookup.
            required_type: Type the bean must be an instance of.
            args: Explicit positional constructor arguments, honoured only
                on fresh construction.
            kwargs: Explicit keyword constructor arguments.
        """
        if isinstance(name, type):
            return self._resolve_bean_by_type(name, required_type, args, kwargs)
        return self._do_get_bean(name, required_type, args, kwargs)

    def contains_bean(self, name: str) -> bool:
        bean_name = self._transformed_bean_name(name)
        if self._singletons.contains_singleton(bean_name) or self._registry.contains_bean_definition(bean_name):
            return not is_factory_dereference(name) or self.is_factory_bean(name)
        if self._parent is not None:
            return self._parent.contains_bean(self._original_bean_name(name))
        return False

    def contains_local_bean(self, name: str) -> bool:
        bean_name = self._transformed_bean_name(name)
        return (
            self._singletons.contains_singleton(bean_name) or self._registry.contains_bean_definition(bean_name)
        ) and (not is_factory_dereference(name) or self.is_factory_bean(bean_name))

    def is_singleton(self, name: str) -> bool:
        bean_name = self._transformed_bean_name(name)
        instance = self._singletons.get_singleton(bean_name, allow_early_reference=False)
        if instance is not None:
            if isinstance(instance, FactoryBean):
                return is_factory_dereference(name) or instance.is_singleton()
            return not is_factory_dereference(name)

        if self._delegates_to_parent(bean_name):
            return self._parent.is_singleton(self._original_bean_name(name))  # type: ignore[union-attr]

        mbd = self.get_bean_definition(bean_name)
        if not mbd.is_singleton:
            return False
        if is_factory_bean_class(self._predict_bean_type(bean_name, mbd)):
            if is_factory_dereference(name):
                return True
            factory: FactoryBean = self.get_bean(FACTORY_BEAN_PREFIX + bean_name)
            return factory.is_singleton()
        return not is_factory_dereference(name)

    def is_prototype(self, name: str) -> bool:
        bean_name = self._transformed_bean_name(name)
        if self._delegates_to_parent(bean_name):
            return self._parent.is_prototype(self._original_bean_name(name))  # type: ignore[union-attr]
        if not self._registry.contains_bean_definition(bean_name) and self._singletons.contains_singleton(bean_name):
            return False

        mbd = self.get_bean_definition(bean_name)
        is_factory = is_factory_bean_class(self._predict_bean_type(bean_name, mbd))
        if mbd.is_prototype:
            return not is_factory_dereference(name) or is_factory
        if is_factory_dereference(name) or not is_factory:
            return False
        if not mbd.is_singleton:
            return False
        factory: FactoryBean = self.get_bean(FACTORY_BEAN_PREFIX + bean_name)
        return not factory.is_singleton()

    def is_type_match(self, name: str, type_to_match: type) -> bool:
        """Whether *name* resolves to an instance of *type_to_match*.

        Answered from cached instances and metadata without creating the
        bean; ``False`` when the type cannot be determined up front.
        """
        bean_type = self.get_type(name)
        if bean_type is None:
            return False
        try:
            return issubclass(bean_type, type_to_match)
        except TypeError:
            return False

    def get_type(self, name: str) -> type | None:
        """The type ``get_bean(name)`` would return, or ``None`` if undeterminable."""
        bean_name = self._transformed_bean_name(name)
        instance = self._singletons.get_singleton(bean_name, allow_early_reference=False)
        if instance is not None:
            if isinstance(instance, FactoryBean) and not is_factory_dereference(name):
                return self._get_type_for_factory_bean_instance(instance)
            if is_factory_dereference(name) and not isinstance(instance, FactoryBean):
                return None
            return type(instance)

        if self._delegates_to_parent(bean_name):
            return self._parent.get_type(self._original_bean_name(name))  # type: ignore[union-attr]

        mbd = self.get_bean_definition(bean_name)
        bean_type = self._predict_bean_type(bean_name, mbd)
        if bean_type is None:
            return None
        if is_factory_bean_class(bean_type):
            if is_factory_dereference(name):
                return bean_type
            return declared_object_type(bean_type)
        if is_factory_dereference(name):
            return None
        return bean_type

    def get_aliases(self, name: str) -> list[str]:
        """Aliases of *name*; when *name* is an alias, the canonical name comes first."""
        bean_name = self._transformed_bean_name(name)
        prefix = FACTORY_BEAN_PREFIX if is_factory_dereference(name) else ""
        full_bean_name = prefix + bean_name
        aliases: list[str] = []
        if full_bean_name != name:
            aliases.append(full_bean_name)
        for alias in self._registry.get_aliases(bean_name):
            if prefix + alias != name:
                aliases.append(prefix + alias)
        if (
            not self._singletons.contains_singleton(bean_name)
            and not self._registry.contains_bean_definition(bean_name)
            and self._parent is not None
        ):
            aliases.extend(self._parent.get_aliases(full_bean_name))
        return aliases

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def get_bean_definition(self, name: str) -> BeanDefinition:
        """Local definition for the canonical *name*, with similar-name suggestions on a miss."""
        return self._registry.get_bean_definition(self._transformed_bean_name(name))

    def contains_bean_definition(self, name: str) -> bool:
        return self._registry.contains_bean_definition(name)

    def get_bean_definition_names(self) -> list[str]:
        return self._registry.get_bean_definition_names()

    def contains_singleton(self, name: str) -> bool:
        return self._singletons.contains_singleton(name)

    def get_singleton_names(self) -> list[str]:
        return self._singletons.get_singleton_names()

    def is_factory_bean(self, name: str) -> bool:
        bean_name = self._transformed_bean_name(name)
        instance = self._singletons.get_singleton(bean_name, allow_early_reference=False)
        if instance is not None:
            return isinstance(instance, FactoryBean)
        if self._delegates_to_parent(bean_name):
            return self._parent.is_factory_bean(bean_name)  # type: ignore[union-attr]
        if not self._registry.contains_bean_definition(bean_name):
            return False
        return is_factory_bean_class(self._predict_bean_type(bean_name, self._registry.get_bean_definition(bean_name)))

    def is_primary(self, name: str) -> bool:
        bean_name = self._transformed_bean_name(name)
        if self._registry.contains_bean_definition(bean_name):
            return self._registry.get_bean_definition(bean_name).primary
        if self._parent is not None and not self._singletons.contains_singleton(bean_name):
            return self._parent.is_primary(bean_name)
        return False

    def get_bean_names_for_type(self, bean_type: type, include_ancestors: bool = False) -> list[str]:
        """Names of beans whose product matches *bean_type*, determined without creating them.

        With *include_ancestors*, parent names that are not shadowed by a
        local name are appended.
        """
        result: list[str] = []
        for name in self._registry.get_bean_definition_names():
            mbd = self._registry.get_bean_definition(name)
            if mbd.abstract:
                continue
            if self._matches_type(name, bean_type):
                result.append(name)
            elif is_factory_bean_class(self._predict_bean_type(name, mbd)) and self.is_type_match(
                FACTORY_BEAN_PREFIX + name, bean_type
            ):
                result.append(FACTORY_BEAN_PREFIX + name)

        for name in self._singletons.get_singleton_names():
            if name in result or self._registry.contains_bean_definition(name):
                continue
            if self._matches_type(name, bean_type):
                result.append(name)

        if include_ancestors and self._parent is not None:
            for name in self._parent.get_bean_names_for_type(bean_type, include_ancestors=True):
                if not self.contains_local_bean(strip_factory_prefix(name)) and name not in result:
                    result.append(name)
        return result

    def get_beans_of_type(self, bean_type: type[T]) -> dict[str, T]:
        """All local beans matching *bean_type*, keyed by name, in registration order."""
        return {name: self.get_bean(name, bean_type) for name in self.get_bean_names_for_type(bean_type)}

    def get_bean_metrics(self, name: str) -> BeanMetrics | None:
        return self._metrics.get(self._transformed_bean_name(name))

    def _matches_type(self, name: str, bean_type: type) -> bool:
        try:
            return self.is_type_match(name, bean_type)
        except NoSuchBeanDefinitionError:
            return False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def pre_instantiate_singletons(self) -> None:
        """Create every non-lazy singleton, in registration order."""
        for name in list(self._registry.get_bean_definition_names()):
            mbd = self._registry.get_bean_definition(name)
            if mbd.abstract or not mbd.is_singleton or mbd.lazy_init:
                continue
            if is_factory_bean_class(self._predict_bean_type(name, mbd)):
                self.get_bean(FACTORY_BEAN_PREFIX + name)
            else:
                self.get_bean(name)

    def destroy_singletons(self) -> None:
        """Destroy all cached singletons, dependants before their dependencies."""
        self._singletons.destroy_singletons()
        self._factory_bean_objects.clear()

    def destroy_singleton(self, name: str) -> None:
        self._singletons.destroy_singleton(name)
        self._factory_bean_objects.pop(name, None)

    def destroy_scoped_bean(self, name: str) -> None:
        """Remove and destroy the instance of a custom-scoped bean from its scope."""
        bean_name = self._transformed_bean_name(name)
        mbd = self.get_bean_definition(bean_name)
        scope = self._scopes.get(mbd.scope)
        if scope is None:
            raise ValueError(f"No scope registered for scope name '{mbd.scope}'")
        instance = scope.remove(bean_name)
        if instance is not None:
            DisposableBeanAdapter(instance, bean_name, mbd.destroy_method_name)()

    # ------------------------------------------------------------------
    # Dependency resolution
    # ------------------------------------------------------------------

    def resolve_dependency(self, dependency_type: Any, requesting_bean: str | None = None) -> Any:
        """Resolve a type-hinted dependency.

        Handles ``Annotated[T, Qualifier("name")]``, ``Optional[T]``
        (``None`` when no bean matches) and ``list[T]`` (all local matches).
        """
        if get_origin(dependency_type) is Annotated:
            base_type, *metadata = get_args(dependency_type)
            for item in metadata:
                if isinstance(item, Qualifier):
                    return self._get_dependency_bean(item.name, base_type, requesting_bean)
            return self.resolve_dependency(base_type, requesting_bean)

        if get_origin(dependency_type) is Union or isinstance(dependency_type, types.UnionType):
            non_none = [arg for arg in get_args(dependency_type) if arg is not type(None)]
            if len(non_none) == 1:
                try:
                    return self.resolve_dependency(non_none[0], requesting_bean)
                except NoSuchBeanDefinitionError:
                    return None

        if get_origin(dependency_type) is list:
            element_args = get_args(dependency_type)
            if element_args:
                beans = self.get_beans_of_type(element_args[0])
                for name in beans:
                    self._register_dependency(name, requesting_bean)
                return list(beans.values())

        if not isinstance(dependency_type, type):
            raise NoSuchBeanDefinitionError(reason=f"cannot resolve dependency of type {dependency_type!r}")

        name = self._resolve_candidate_name(dependency_type)
        return self._get_dependency_bean(name, dependency_type, requesting_bean)

    def _get_dependency_bean(self, name: str, required_type: type, requesting_bean: str | None) -> Any:
        bean = self.get_bean(name, required_type)
        self._register_dependency(name, requesting_bean)
        return bean

    def _register_dependency(self, name: str, requesting_bean: str | None) -> None:
        if requesting_bean is not None:
            self._singletons.register_dependent_bean(self._transformed_bean_name(name), requesting_bean)

    def _resolve_bean_by_type(
        self,
        bean_type: type[T],
        required_type: type | None,
        args: Sequence[Any] | None,
        kwargs: Mapping[str, Any] | None,
    ) -> T:
        name = self._resolve_candidate_name(bean_type)
        return self._do_get_bean(name, required_type or bean_type, args, kwargs)

    def _resolve_candidate_name(self, required_type: type) -> str:
        """The single bean name matching *required_type* across this factory and its ancestors."""
        candidates = self.get_bean_names_for_type(required_type, include_ancestors=True)
        if len(candidates) == 1:
            return candidates[0]
        if not candidates:
            raise NoSuchBeanDefinitionError(
                bean_type=required_type,
                suggestions=self._similar_type_names(getattr(required_type, "__name__", "")),
            )
        primaries = [name for name in candidates if self.is_primary(strip_factory_prefix(name))]
        if len(primaries) == 1:
            return primaries[0]
        raise NoUniqueBeanDefinitionError(bean_type=required_type, candidates=candidates)

    def _similar_type_names(self, type_name: str) -> list[str]:
        if not type_name:
            return []
        names = []
        for name in self._registry.get_bean_definition_names():
            bean_class = self._registry.get_bean_definition(name).bean_class
            if bean_class is not None:
                names.append(bean_class.__name__)
        return difflib.get_close_matches(type_name, names, n=5, cutoff=0.4)

    # ------------------------------------------------------------------
    # Resolution core
    # ------------------------------------------------------------------

    def _transformed_bean_name(self, name: str) -> str:
        return self._registry.canonical_name(strip_factory_prefix(name))

    def _original_bean_name(self, name: str) -> str:
        bean_name = self._transformed_bean_name(name)
        return FACTORY_BEAN_PREFIX + bean_name if is_factory_dereference(name) else bean_name

    def _delegates_to_parent(self, bean_name: str) -> bool:
        return self._parent is not None and not self._registry.contains_bean_definition(bean_name)

    def _do_get_bean(
        self,
        name: str,
        required_type: type | None,
        args: Sequence[Any] | None,
        kwargs: Mapping[str, Any] | None,
    ) -> Any:
        bean_name = self._transformed_bean_name(name)
        explicit_args = args is not None or kwargs is not None

        shared = self._singletons.get_singleton(bean_name)
        if shared is not None:
            if explicit_args:
                raise BeanDefinitionStoreException(
                    f"Cannot apply explicit constructor arguments to bean '{bean_name}': "
                    "a shared instance already exists",
                    bean_name=bean_name,
                )
            bean = self._get_object_for_bean_instance(shared, name, bean_name)
        else:
            if self._is_prototype_currently_in_creation(bean_name):
                raise BeanCurrentlyInCreationError(bean_name)

            if self._delegates_to_parent(bean_name):
                return self._parent.get_bean(  # type: ignore[union-attr]
                    self._original_bean_name(name), required_type, args=args, kwargs=kwargs
                )

            mbd = self._registry.get_bean_definition(bean_name)
            if mbd.abstract:
                raise BeanIsAbstractError(bean_name)
            self._create_depends_on(bean_name, mbd)

            if mbd.is_singleton:
                shared = self._singletons.get_or_create_singleton(
                    bean_name, lambda: self._create_bean(bean_name, mbd, args, kwargs)
                )
                bean = self._get_object_for_bean_instance(shared, name, bean_name)
            elif mbd.is_prototype:
                prototype = self._create_prototype(bean_name, mbd, args, kwargs)
                bean = self._get_object_for_bean_instance(prototype, name, bean_name)
            else:
                scope = self._scopes.get(mbd.scope)
                if scope is None:
                    raise BeanCreationException(bean_name, f"No scope registered for scope name '{mbd.scope}'")
                scoped = scope.get(bean_name, lambda: self._create_prototype(bean_name, mbd, args, kwargs))
                bean = self._get_object_for_bean_instance(scoped, name, bean_name)

        if required_type is not None:
            try:
                matches = isinstance(bean, required_type)
            except TypeError:
                matches = False
            if not matches:
                raise BeanNotOfRequiredTypeError(name, required_type, type(bean))
        return bean

    def _create_depends_on(self, bean_name: str, mbd: BeanDefinition) -> None:
        for dependency in mbd.depends_on:
            dep = self._transformed_bean_name(dependency)
            if self._singletons.is_dependent(bean_name, dep):
                raise BeanCreationException(
                    bean_name, f"Circular depends-on relationship between '{bean_name}' and '{dep}'"
                )
            self._singletons.register_dependent_bean(dep, bean_name)
            try:
                self.get_bean(dep)
            except NoSuchBeanDefinitionError as exc:
                raise BeanCreationException(bean_name, f"'{bean_name}' depends on missing bean '{dep}'") from exc

    def _create_prototype(
        self,
        bean_name: str,
        mbd: BeanDefinition,
        args: Sequence[Any] | None,
        kwargs: Mapping[str, Any] | None,
    ) -> Any:
        in_creation = self._prototype_names_in_creation()
        in_creation.add(bean_name)
        try:
            return self._create_bean(bean_name, mbd, args, kwargs)
        finally:
            in_creation.discard(bean_name)

    def _prototype_names_in_creation(self) -> set[str]:
        names = getattr(self._prototypes_in_creation, "names", None)
        if names is None:
            names = self._prototypes_in_creation.names = set()
        return names

    def _is_prototype_currently_in_creation(self, bean_name: str) -> bool:
        return bean_name in self._prototype_names_in_creation()

    # ------------------------------------------------------------------
    # FactoryBean indirection
    # ------------------------------------------------------------------

    def _get_object_for_bean_instance(self, bean_instance: Any, name: str, bean_name: str) -> Any:
        if is_factory_dereference(name):
            if not isinstance(bean_instance, FactoryBean):
                raise BeanIsNotAFactoryError(bean_name, type(bean_instance))
            return bean_instance
        if not isinstance(bean_instance, FactoryBean):
            return bean_instance

        factory = bean_instance
        if not (factory.is_singleton() and self._singletons.contains_singleton(bean_name)):
            return self._get_object_from_factory_bean(factory, bean_name)

        product = self._factory_bean_objects.get(bean_name)
        if product is None:
            with self._singletons.creation_lock(bean_name):
                product = self._factory_bean_objects.get(bean_name)
                if product is None:
                    product = self._get_object_from_factory_bean(factory, bean_name)
                    if self._singletons.contains_singleton(bean_name):
                        self._factory_bean_objects[bean_name] = product
        return product

    def _get_object_from_factory_bean(self, factory: FactoryBean, bean_name: str) -> Any:
        try:
            product = factory.get_object()
            if product is None:
                raise BeanCreationException(bean_name, "FactoryBean returned None from get_object()")
            return self._post_processors.after_init(product, bean_name)
        except BeanCreationException:
            raise
        except Exception as exc:
            raise BeanCreationException(
                bean_name, f"FactoryBean threw exception on object creation: {exc}"
            ) from exc

    def _get_type_for_factory_bean_instance(self, factory: FactoryBean) -> type | None:
        try:
            return factory.get_object_type()
        except Exception as exc:
            logger.debug("factory_bean_type_undeterminable", factory=type(factory).__qualname__, error=str(exc))
            return None

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def _create_bean(
        self,
        bean_name: str,
        mbd: BeanDefinition,
        args: Sequence[Any] | None,
        kwargs: Mapping[str, Any] | None,
    ) -> Any:
        """Run the full creation pipeline; every failure surfaces as BeanCreationException."""
        logger.debug("creating_bean", bean=bean_name, scope=str(mbd.scope))
        started = time.perf_counter_ns()
        try:
            target_type = self._predict_bean_type(bean_name, mbd, use_hooks=False)
            if target_type is not None:
                surrogate = self._post_processors.before_instantiation(target_type, bean_name)
                if surrogate is not None:
                    bean = self._post_processors.after_init(surrogate, bean_name)
                    self._record_creation(bean_name, started)
                    return bean
            bean = self._do_create_bean(bean_name, mbd, args, kwargs)
        except BeanCreationException as exc:
            if exc.bean_name == bean_name:
                raise
            raise BeanCreationException(
                bean_name, f"Could not create dependency '{exc.bean_name}': {exc.reason}"
            ) from exc
        except BeansException as exc:
            raise BeanCreationException(bean_name, str(exc)) from exc
        except Exception as exc:
            raise BeanCreationException(bean_name, f"{type(exc).__name__}: {exc}") from exc
        self._record_creation(bean_name, started)
        return bean

    def _do_create_bean(
        self,
        bean_name: str,
        mbd: BeanDefinition,
        args: Sequence[Any] | None,
        kwargs: Mapping[str, Any] | None,
    ) -> Any:
        instance = self._create_bean_instance(bean_name, mbd, args, kwargs)
        if instance is None:
            raise BeanCreationException(bean_name, "Instantiation returned None")

        early_exposure = (
            mbd.is_singleton
            and self.allow_circular_references
            and self._singletons.is_singleton_currently_in_creation(bean_name)
        )
        if early_exposure:
            self._singletons.add_singleton_factory(
                bean_name, lambda: self._post_processors.get_early_bean_reference(instance, bean_name)
            )

        self._populate_bean(bean_name, mbd, instance)
        exposed = self._initialize_bean(bean_name, instance, mbd)

        if early_exposure:
            early_reference = self._singletons.get_singleton(bean_name, allow_early_reference=False)
            if early_reference is not None:
                if exposed is instance:
                    exposed = early_reference
                else:
                    raise BeanCurrentlyInCreationError(
                        bean_name,
                        "Bean has been injected into other beans in its raw version as part of a "
                        "circular reference, but has eventually been wrapped",
                    )

        if mbd.is_singleton:
            self._register_disposable_bean_if_necessary(bean_name, instance, mbd)
        return exposed

    def _create_bean_instance(
        self,
        bean_name: str,
        mbd: BeanDefinition,
        args: Sequence[Any] | None,
        kwargs: Mapping[str, Any] | None,
    ) -> Any:
        explicit = args is not None or kwargs is not None
        if explicit:
            ctor_args = list(args or ())
            ctor_kwargs = dict(kwargs or {})
        else:
            ctor_args = [self._resolve_value(bean_name, value) for value in mbd.constructor_args]
            ctor_kwargs = {key: self._resolve_value(bean_name, value) for key, value in mbd.constructor_kwargs.items()}

        constructor: Callable[..., Any] | None = None
        if mbd.factory_method is None and mbd.bean_class is not None:
            candidates = self._post_processors.determine_candidate_constructors(mbd.bean_class, bean_name)
            if candidates:
                constructor = self._select_constructor(bean_name, candidates, ctor_args, ctor_kwargs, mbd.autowire)

        if mbd.autowire and not explicit:
            target = constructor or mbd.factory_method or mbd.bean_class
            ctor_kwargs = self._autowire_arguments(bean_name, target, ctor_args, ctor_kwargs)

        return self._instantiation_strategy.instantiate(mbd, bean_name, constructor, ctor_args, ctor_kwargs)

    @staticmethod
    def _select_constructor(
        bean_name: str,
        candidates: Sequence[Callable[..., Any]],
        args: Sequence[Any],
        kwargs: Mapping[str, Any],
        partial: bool,
    ) -> Callable[..., Any]:
        for candidate in candidates:
            try:
                signature = inspect.signature(candidate)
                if partial:
                    signature.bind_partial(*args, **kwargs)
                else:
                    signature.bind(*args, **kwargs)
            except (TypeError, ValueError):
                continue
            return candidate
        raise BeanCreationException(
            bean_name, f"None of the {len(candidates)} candidate constructors accepts the given arguments"
        )

    def _autowire_arguments(
        self,
        bean_name: str,
        target: Callable[..., Any] | None,
        args: Sequence[Any],
        kwargs: dict[str, Any],
    ) -> dict[str, Any]:
        """Fill constructor parameters not given explicitly from their type hints."""
        if target is None:
            return kwargs
        hint_source = target.__init__ if isinstance(target, type) else target  # type: ignore[misc]
        if hint_source is object.__init__:
            return kwargs

        hints = typing.get_type_hints(hint_source, include_extras=True)
        hints.pop("return", None)
        signature = inspect.signature(target)
        bound = signature.bind_partial(*args, **kwargs).arguments

        resolved = dict(kwargs)
        for param_name, param in signature.parameters.items():
            if param_name in bound or param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
                continue
            param_type = hints.get(param_name)
            if param_type is None:
                continue
            try:
                resolved[param_name] = self.resolve_dependency(param_type, requesting_bean=bean_name)
            except NoSuchBeanDefinitionError as exc:
                if param.default is not inspect.Parameter.empty:
                    continue
                raise BeanCreationException(
                    bean_name,
                    f"Unsatisfied dependency expressed through parameter '{param_name}': {exc.headline}",
                ) from exc
        return resolved

    def _populate_bean(self, bean_name: str, mbd: BeanDefinition, instance: Any) -> None:
        if not self._post_processors.after_instantiation(instance, bean_name):
            return
        pvs = self._post_processors.post_process_properties(PropertyValues(mbd.property_values), instance, bean_name)
        if pvs is None:
            return
        for pv in pvs:
            setattr(instance, pv.name, self._resolve_value(bean_name, pv.value))

    def _resolve_value(self, bean_name: str, value: Any) -> Any:
        """Resolve bean references, recursing into collections; other values are opaque."""
        if isinstance(value, BeanReference):
            try:
                resolved = self.get_bean(value.bean_name)
            except NoSuchBeanDefinitionError as exc:
                raise BeanCreationException(
                    bean_name, f"Cannot resolve reference to bean '{value.bean_name}': {exc.headline}"
                ) from exc
            self._register_dependency(value.bean_name, bean_name)
            return resolved
        if isinstance(value, list):
            return [self._resolve_value(bean_name, item) for item in value]
        if isinstance(value, tuple):
            return tuple(self._resolve_value(bean_name, item) for item in value)
        if isinstance(value, (set, frozenset)):
            return type(value)(self._resolve_value(bean_name, item) for item in value)
        if isinstance(value, dict):
            return {
                self._resolve_value(bean_name, key): self._resolve_value(bean_name, item)
                for key, item in value.items()
            }
        return value

    def _initialize_bean(self, bean_name: str, bean: Any, mbd: BeanDefinition) -> Any:
        if isinstance(bean, BeanNameAware):
            bean.set_bean_name(bean_name)
        if isinstance(bean, BeanFactoryAware):
            bean.set_bean_factory(self)

        wrapped = self._post_processors.before_init(bean, bean_name)
        self._invoke_init_methods(bean_name, wrapped, mbd)
        return self._post_processors.after_init(wrapped, bean_name)

    def _invoke_init_methods(self, bean_name: str, bean: Any, mbd: BeanDefinition) -> None:
        for method in marked_methods(bean, POST_CONSTRUCT_MARKER):
            self._call_lifecycle_method(bean_name, method.__name__, method)

        is_initializing = isinstance(bean, InitializingBean)
        if is_initializing:
            self._call_lifecycle_method(bean_name, "after_properties_set", bean.after_properties_set)

        init_name = mbd.init_method_name
        if init_name and not (is_initializing and init_name == "after_properties_set"):
            method = getattr(bean, init_name, None)
            if method is None or not callable(method):
                raise BeanCreationException(bean_name, f"Could not find an init method named '{init_name}'")
            self._call_lifecycle_method(bean_name, init_name, method)

    @staticmethod
    def _call_lifecycle_method(bean_name: str, method_name: str, method: Callable[[], Any]) -> None:
        result = method()
        if inspect.isawaitable(result):
            close = getattr(result, "close", None)
            if close is not None:
                close()
            raise BeanCreationException(
                bean_name, f"Lifecycle method '{method_name}' returned an awaitable; init methods must be synchronous"
            )

    def _register_disposable_bean_if_necessary(self, bean_name: str, bean: Any, mbd: BeanDefinition) -> None:
        if mbd.destroy_method_name and not callable(getattr(bean, mbd.destroy_method_name, None)):
            raise BeanCreationException(
                bean_name, f"Could not find a destroy method named '{mbd.destroy_method_name}'"
            )
        adapter = DisposableBeanAdapter(bean, bean_name, mbd.destroy_method_name)
        if adapter.has_callbacks():
            self._singletons.register_disposable_bean(bean_name, adapter)

    def _record_creation(self, bean_name: str, started_ns: int) -> None:
        with self._metrics_lock:
            metrics = self._metrics.setdefault(bean_name, BeanMetrics())
            metrics.creation_time_ns = time.perf_counter_ns() - started_ns
            metrics.creation_count += 1
            metrics.created_at = time.time()

    # ------------------------------------------------------------------
    # Type prediction
    # ------------------------------------------------------------------

    def _predict_bean_type(self, bean_name: str, mbd: BeanDefinition, use_hooks: bool = True) -> type | None:
        """Best-effort type of the raw bean for *mbd*; ``None`` if unknown."""
        target = mbd.bean_class
        if target is None and mbd.factory_method is not None:
            try:
                declared = typing.get_type_hints(mbd.factory_method).get("return")
            except Exception:
                declared = None
            if isinstance(declared, type):
                target = declared
        if use_hooks and target is not None:
            predicted = self._post_processors.predict_bean_type(target, bean_name)
            if predicted is not None:
                return predicted
        return target
