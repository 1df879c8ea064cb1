"""Store containers — scopes that own store instances and their cleanups.

A store is whatever a zero-argument factory returns, typically an object
exposing signals, deriveds and effects. A StoreContainer instantiates each
provided factory lazily on first resolve() and keeps the instance for the
container's lifetime. Effects and other resources created while a factory
runs register their teardown with cleanup(); dispose() runs them.

Containers nest: resolve() walks up to the nearest container that provides
the factory.
"""

from __future__ import annotations

import contextvars
import logging
from typing import Callable, TypeVar

from sigtrack._tracking import ContextType, current_context
from sigtrack.errors import StoreNotProvidedError, raise_collected

S = TypeVar("S")

logger = logging.getLogger("sigtrack.store")

_UNSET = object()

# The container whose factory is currently running.
active_container: contextvars.ContextVar[StoreContainer | None] = contextvars.ContextVar(
    "active_container", default=None
)


def get_active_container() -> StoreContainer | None:
    return active_container.get()


def cleanup(fn: Callable[[], None]) -> Callable[[], None]:
    """Register fn with the active container, if any. Returns fn.

    Usage:
        def CounterStore():
            count = Signal(0)
            cleanup(lambda: print("counter disposed"))
            ...
    """
    container = active_container.get()
    if container is not None:
        container.add_cleanup(fn)
    return fn


class StoreContainer:
    """Owning scope for store instances and their cleanups."""

    def __init__(self, parent: StoreContainer | None = None) -> None:
        self.parent = parent
        self._stores: dict[Callable[[], object], object] = {}
        self._cleanups: list[Callable[[], None]] = []
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def provide(self, factory: Callable[[], S]) -> None:
        """Make this container the owner of factory's instance."""
        self._stores.setdefault(factory, _UNSET)

    def resolve(self, factory: Callable[[], S]) -> S:
        """Return the instance from the nearest container providing factory."""
        container: StoreContainer | None = self
        while container is not None and factory not in container._stores:
            container = container.parent
        if container is None:
            raise StoreNotProvidedError(factory)
        return container._instantiate(factory)

    def _instantiate(self, factory: Callable[[], S]) -> S:
        instance = self._stores[factory]
        if instance is not _UNSET:
            return instance

        context = current_context.get()
        token = active_container.set(self)
        try:
            # A component resolving a store does not subscribe to what the
            # factory reads; the store's own deriveds and effects do.
            if context is not None and context.type is ContextType.COMPONENT:
                with context.resolving():
                    instance = factory()
            else:
                instance = factory()
        finally:
            active_container.reset(token)

        self._stores[factory] = instance
        return instance

    def add_cleanup(self, fn: Callable[[], None]) -> None:
        if self._disposed:
            raise RuntimeError("StoreContainer is already disposed")
        self._cleanups.append(fn)

    def dispose(self) -> None:
        """Run cleanups in reverse registration order. Safe to call twice."""
        if self._disposed:
            return
        self._disposed = True
        cleanups = self._cleanups[::-1]
        self._cleanups.clear()
        self._stores.clear()

        errors: list[Exception] = []
        for fn in cleanups:
            try:
                fn()
            except Exception as exc:
                errors.append(exc)
        logger.debug("Disposed container: %d cleanups, %d failed", len(cleanups), len(errors))
        raise_collected(errors, "cleanups failed while disposing container")

    def __enter__(self) -> StoreContainer:
        return self

    def __exit__(self, *exc_info) -> None:
        self.dispose()
