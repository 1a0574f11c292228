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
"""Singleton cache with early-reference support and per-name creation locks."""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

import structlog

from flybeans.container.exceptions import (
    BeanCreationNotAllowedError,
    BeanCurrentlyInCreationError,
    BeanDefinitionStoreException,
)

logger = structlog.get_logger("flybeans.container.singletons")

LOCK_WAIT_INTERVAL = 0.05  # seconds between lock-cycle checks while blocked


class DefaultSingletonBeanRegistry:
    """Process-local store of shared bean instances, keyed by canonical name.

    Creation of a singleton is serialised per name: the first caller builds
    the instance while holding that name's lock, concurrent callers for the
    same name block and then observe the cached instance. Different names
    are built in parallel. A thread that would join a cross-thread lock
    cycle (each thread building one bean of a circular pair) is detected
    while it waits, and one thread of the cycle backs out with
    :class:`BeanCurrentlyInCreationError` so the others can finish.

    While a singleton is being built its creating thread may publish an
    early reference (via :meth:`add_singleton_factory`) so that a cyclic
    dependant can be wired. Early references are only visible to that
    thread and are dropped as soon as the singleton is cached.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._singleton_objects: dict[str, Any] = {}
        self._early_singleton_objects: dict[str, Any] = {}
        self._singleton_factories: dict[str, Callable[[], Any]] = {}
        self._registered_singletons: dict[str, None] = {}  # insertion-ordered set
        self._in_creation: dict[str, int] = {}  # name -> creating thread ident
        self._creation_locks: dict[str, threading.RLock] = {}
        self._lock_owners: dict[str, int] = {}  # name -> thread ident holding its creation lock
        self._waiting_for: dict[int, str] = {}  # thread ident -> name whose lock it waits on
        self._disposable_beans: dict[str, Callable[[], None]] = {}
        self._dependent_beans: dict[str, dict[str, None]] = {}
        self._dependencies_for_bean: dict[str, dict[str, None]] = {}
        self._in_destruction = False

    # ------------------------------------------------------------------
    # Registration and lookup
    # ------------------------------------------------------------------

    def register_singleton(self, name: str, singleton: Any) -> None:
        """Register an externally created, fully initialized singleton."""
        if singleton is None:
            raise BeanDefinitionStoreException(f"Singleton object for '{name}' must not be None", bean_name=name)
        with self._lock:
            if name in self._singleton_objects:
                raise BeanDefinitionStoreException(
                    f"Could not register object under bean name '{name}': there is already an object bound",
                    bean_name=name,
                )
            self._add_singleton(name, singleton)

    def _add_singleton(self, name: str, singleton: Any) -> None:
        self._singleton_objects[name] = singleton
        self._singleton_factories.pop(name, None)
        self._early_singleton_objects.pop(name, None)
        self._registered_singletons[name] = None

    def add_singleton_factory(self, name: str, factory: Callable[[], Any]) -> None:
        """Publish a factory for the early reference of a singleton under construction."""
        with self._lock:
            if name not in self._singleton_objects:
                self._singleton_factories[name] = factory
                self._early_singleton_objects.pop(name, None)

    def get_singleton(self, name: str, allow_early_reference: bool = True) -> Any:
        """Return the cached instance, or an early reference for the creating thread.

        Returns ``None`` if neither is available.
        """
        singleton = self._singleton_objects.get(name)
        if singleton is not None or not self._is_created_by_current_thread(name):
            return singleton

        singleton = self._early_singleton_objects.get(name)
        if singleton is None and allow_early_reference:
            with self._lock:
                factory = self._singleton_factories.pop(name, None)
            if factory is not None:
                singleton = factory()
                with self._lock:
                    self._early_singleton_objects[name] = singleton
        return singleton

    def get_or_create_singleton(self, name: str, singleton_factory: Callable[[], Any]) -> Any:
        """Return the cached singleton, creating it via *singleton_factory* at most once."""
        singleton = self._singleton_objects.get(name)
        if singleton is not None:
            return singleton

        with self.creation_lock(name):
            singleton = self._singleton_objects.get(name)
            if singleton is not None:
                return singleton
            if self._in_destruction:
                raise BeanCreationNotAllowedError(name)

            self._before_singleton_creation(name)
            logger.debug("creating_singleton", bean=name)
            try:
                singleton = singleton_factory()
                with self._lock:
                    self._add_singleton(name, singleton)
            except Exception:
                self.destroy_singleton(name)
                raise
            finally:
                self._after_singleton_creation(name)
        return singleton

    def contains_singleton(self, name: str) -> bool:
        return name in self._singleton_objects

    def get_singleton_names(self) -> list[str]:
        with self._lock:
            return list(self._registered_singletons)

    def get_singleton_count(self) -> int:
        return len(self._registered_singletons)

    def remove_singleton(self, name: str) -> None:
        with self._lock:
            self._singleton_objects.pop(name, None)
            self._singleton_factories.pop(name, None)
            self._early_singleton_objects.pop(name, None)
            self._registered_singletons.pop(name, None)

    # ------------------------------------------------------------------
    # Creation tracking
    # ------------------------------------------------------------------

    @contextmanager
    def creation_lock(self, name: str) -> Iterator[None]:
        """Hold the creation lock of *name*, re-entrant for the owning thread.

        While blocked, the waiting thread checks whether the owner is itself
        waiting, directly or through other threads, on a lock this thread
        holds. In such a cycle the thread with the highest ident raises
        :class:`BeanCurrentlyInCreationError`; the others keep waiting.
        """
        me = threading.get_ident()
        reentrant = self._lock_owners.get(name) == me
        lock = self._lock_for(name)
        if not lock.acquire(blocking=False):
            with self._lock:
                self._waiting_for[me] = name
            try:
                while not lock.acquire(timeout=LOCK_WAIT_INTERVAL):
                    if self._is_lock_cycle_victim(name, me):
                        logger.warning("singleton_lock_cycle", bean=name, thread=me)
                        raise BeanCurrentlyInCreationError(
                            name,
                            "Requested bean is being created by another thread that is waiting "
                            "on a bean this thread is creating: circular reference across threads",
                        )
            finally:
                with self._lock:
                    self._waiting_for.pop(me, None)
        if not reentrant:
            with self._lock:
                self._lock_owners[name] = me
        try:
            yield
        finally:
            if not reentrant:
                with self._lock:
                    self._lock_owners.pop(name, None)
            lock.release()

    def _lock_for(self, name: str) -> threading.RLock:
        with self._lock:
            lock = self._creation_locks.get(name)
            if lock is None:
                lock = self._creation_locks[name] = threading.RLock()
            return lock

    def _is_lock_cycle_victim(self, name: str, me: int) -> bool:
        with self._lock:
            cycle = [me]
            owner = self._lock_owners.get(name)
            while owner is not None and owner != me:
                if owner in cycle:
                    return False
                cycle.append(owner)
                waited = self._waiting_for.get(owner)
                if waited is None:
                    return False
                owner = self._lock_owners.get(waited)
            return owner == me and me == max(cycle)

    def _before_singleton_creation(self, name: str) -> None:
        # Other threads are held back by the per-name lock, so a hit here is a cycle.
        with self._lock:
            if name in self._in_creation:
                raise BeanCurrentlyInCreationError(name)
            self._in_creation[name] = threading.get_ident()

    def _after_singleton_creation(self, name: str) -> None:
        with self._lock:
            self._in_creation.pop(name, None)

    def is_singleton_currently_in_creation(self, name: str) -> bool:
        return name in self._in_creation

    def _is_created_by_current_thread(self, name: str) -> bool:
        return self._in_creation.get(name) == threading.get_ident()

    # ------------------------------------------------------------------
    # Dependencies
    # ------------------------------------------------------------------

    def register_dependent_bean(self, name: str, dependent_name: str) -> None:
        """Record that *dependent_name* depends on *name* (destroyed before it)."""
        with self._lock:
            self._dependent_beans.setdefault(name, {})[dependent_name] = None
            self._dependencies_for_bean.setdefault(dependent_name, {})[name] = None

    def is_dependent(self, name: str, dependent_name: str, _seen: set[str] | None = None) -> bool:
        """True if *dependent_name* depends on *name*, directly or transitively."""
        seen = _seen if _seen is not None else set()
        if name in seen:
            return False
        seen.add(name)
        dependents = self._dependent_beans.get(name, {})
        if dependent_name in dependents:
            return True
        return any(self.is_dependent(transitive, dependent_name, seen) for transitive in list(dependents))

    def get_dependent_beans(self, name: str) -> list[str]:
        with self._lock:
            return list(self._dependent_beans.get(name, {}))

    def get_dependencies_for_bean(self, name: str) -> list[str]:
        with self._lock:
            return list(self._dependencies_for_bean.get(name, {}))

    # ------------------------------------------------------------------
    # Destruction
    # ------------------------------------------------------------------

    def register_disposable_bean(self, name: str, callback: Callable[[], None]) -> None:
        with self._lock:
            self._disposable_beans[name] = callback

    def destroy_singletons(self) -> None:
        """Destroy every singleton in reverse registration order, then clear the cache."""
        with self._lock:
            self._in_destruction = True
            names = list(reversed(list(self._disposable_beans)))
        logger.debug("destroying_singletons", count=len(names))
        try:
            for name in names:
                self.destroy_singleton(name)
            with self._lock:
                self._singleton_objects.clear()
                self._singleton_factories.clear()
                self._early_singleton_objects.clear()
                self._registered_singletons.clear()
                self._dependent_beans.clear()
                self._dependencies_for_bean.clear()
        finally:
            with self._lock:
                self._in_destruction = False

    def destroy_singleton(self, name: str) -> None:
        """Remove *name* from the cache and destroy it, dependants first."""
        self.remove_singleton(name)
        with self._lock:
            disposable = self._disposable_beans.pop(name, None)
        self._destroy_bean(name, disposable)

    def _destroy_bean(self, name: str, disposable: Callable[[], None] | None) -> None:
        with self._lock:
            dependents = list(self._dependent_beans.pop(name, {}))
        for dependent in dependents:
            self.destroy_singleton(dependent)

        if disposable is not None:
            try:
                disposable()
            except Exception as exc:
                logger.warning("destroy_failed", bean=name, error=str(exc))

        with self._lock:
            for remaining in self._dependent_beans.values():
                remaining.pop(name, None)
            self._dependencies_for_bean.pop(name, None)
