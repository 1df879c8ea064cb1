"""Signals — mutable value cells that track their readers.

When a Signal is read inside a derived, effect or component render, the
running ObserverContext records the read and subscribes once it finishes.
When the Signal is written with a different value, every subscribed context
is notified.

Writing an awaitable stores a pending AsyncValue that settles on a later
turn of the event loop. Only the most recent operation may settle the
signal; earlier ones are cancelled and their results dropped.

Thread safety: call set_scheduler() once from the main thread. After that,
any write from a background thread is auto-marshaled. Main-thread writes
remain synchronous.
"""

from __future__ import annotations

import asyncio
import contextvars
import copy
import functools
import inspect
import logging
import threading
from typing import Callable, Generic, TypeVar

from sigtrack import debug
from sigtrack._tracking import SignalTracker, current_context, track_read
from sigtrack.asyncvalue import AsyncStatus, AsyncValue
from sigtrack.config import settings

T = TypeVar("T")

logger = logging.getLogger("sigtrack.signal")

_PRIMITIVES = (int, float, complex, str, bytes, bool, type(None))
_IMMUTABLE = _PRIMITIVES + (tuple, frozenset)

# ─── Auto-marshal ────────────────────────────────────────────────────────────
_scheduler = None
_scheduler_thread = None


def set_scheduler(scheduler) -> None:
    """Set the global thread scheduler for cross-thread Signal writes.

    Call once from the main/UI thread:
        sigtrack.set_scheduler(app.call_from_thread)

    After this, any write from a background thread is handed to the
    scheduler. Main-thread writes remain synchronous. Pass None to reset.
    """
    global _scheduler, _scheduler_thread
    _scheduler = scheduler
    _scheduler_thread = threading.current_thread() if scheduler is not None else None


def is_same(a: object, b: object) -> bool:
    """Identity, or equal values of the same primitive type."""
    if a is b:
        return True
    return type(a) is type(b) and isinstance(a, _PRIMITIVES) and a == b


def produce(current: T, recipe: Callable[[T], T | None]) -> T:
    """Compute a new value from a scratch copy of the current one.

    The recipe may return a new value, or mutate the draft and return None.
    A draft left equal to the current value yields the current value itself.
    Equality is the draft's own __eq__: containers and dataclasses compare by
    contents, but objects without __eq__ compare by identity, so a copied draft
    of one always counts as a change and notifies.
    """
    draft = copy.deepcopy(current)
    result = recipe(draft)
    if result is not None:
        return result
    if draft == current:
        return current
    return draft


def _is_async(value: object) -> bool:
    return isinstance(value, AsyncValue) or inspect.isawaitable(value)


def _is_recipe(value: object) -> bool:
    return callable(value) and not isinstance(value, type) and not _is_async(value)


class _AsyncOperation:
    """Cancellation token for the in-flight operation of a signal."""

    __slots__ = ("future", "owned", "cancelled")

    def __init__(self, future: asyncio.Future, owned: bool) -> None:
        self.future = future
        self.owned = owned
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True
        # Only tasks the signal created itself are cancelled; futures handed
        # in by the caller may be shared.
        if self.owned and not self.future.done():
            self.future.cancel()


class Signal(Generic[T]):
    """A single mutable value with automatic dependency tracking."""

    __slots__ = ("_value", "_tracker", "_operation", "_listeners", "__weakref__")

    def __init__(self, value: T) -> None:
        self._operation: _AsyncOperation | None = None
        self._listeners: list[Callable[[T, T], None]] = []
        self._tracker = SignalTracker(lambda: self._value)
        self._value = self._install(value) if _is_async(value) else value

    @property
    def tracker(self) -> SignalTracker:
        return self._tracker

    @property
    def value(self) -> T:
        """Read the value. If inside a tracked computation, registers the dependency."""
        track_read(self._tracker)
        return self._value

    @value.setter
    def value(self, value: T) -> None:
        """Write a new value, or a recipe computing it. Auto-marshals from background threads."""
        if _scheduler is not None and threading.current_thread() != _scheduler_thread:
            _scheduler(lambda v=value: self._set_direct(v))
        else:
            self._set_direct(value)

    def on_change(self, listener: Callable[[T, T], None]) -> Callable[[], None]:
        """Call listener(new, previous) after every notifying change. Returns an unsubscribe."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass  # already removed

        return _unsubscribe

    def _set_direct(self, value) -> None:
        old = self._value
        if _is_recipe(value):
            value = produce(old, value)

        if is_same(old, value):
            if settings.development and not isinstance(value, _IMMUTABLE):
                logger.warning(
                    "Setting the same object in a signal does not notify observers. "
                    "Did you mutate it? %r",
                    value,
                )
            return

        if _is_async(value):
            value = self._install(value)
        elif self._operation is not None:
            self._operation.cancel()
            self._operation = None

        self._value = value
        context = current_context.get()
        if context is not None:
            context.register_write(self._tracker)
        debug.emit_set(self._tracker, value)

        if isinstance(value, AsyncValue) and value.pending:
            # The operation may already be done, in which case its settlement
            # notifies first and this deferred check finds nothing pending.
            value.future.get_loop().call_soon(
                self._notify_if_pending, value, old, context=contextvars.Context()
            )
        else:
            self._notify(value, old)

    def _install(self, awaitable) -> AsyncValue:
        """Start tracking a new async operation, superseding the previous one.

        The previous operation is only cancelled once the new one exists, so
        a failed install leaves the signal untouched.
        """
        if isinstance(awaitable, AsyncValue):
            future, owned = awaitable.future, False
        elif asyncio.iscoroutine(awaitable):
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                awaitable.close()
                raise
            future, owned = loop.create_task(awaitable, context=contextvars.Context()), True
        else:
            future = asyncio.ensure_future(awaitable)
            owned = future is not awaitable

        if self._operation is not None:
            self._operation.cancel()
        operation = self._operation = _AsyncOperation(future, owned)
        future.add_done_callback(
            functools.partial(self._settle, operation), context=contextvars.Context()
        )
        return AsyncValue(future)

    def _settle(self, operation: _AsyncOperation, future: asyncio.Future) -> None:
        if operation.cancelled:
            logger.debug("Discarding superseded async result for %r", self)
            return
        self._operation = None

        if future.cancelled():
            settled = AsyncValue.rejected(future, asyncio.CancelledError())
        elif future.exception() is not None:
            settled = AsyncValue.rejected(future, future.exception())
        else:
            settled = AsyncValue.fulfilled(future, future.result())

        previous = self._value
        self._value = settled
        debug.emit_set(self._tracker, settled)
        self._notify(settled, previous)

    def _notify_if_pending(self, value: AsyncValue, previous) -> None:
        if self._value is value and value.status is AsyncStatus.PENDING:
            self._notify(value, previous)

    def _notify(self, value, previous) -> None:
        try:
            self._tracker.notify()
        finally:
            for listener in list(self._listeners):
                listener(value, previous)

    def __repr__(self) -> str:
        return f"Signal({self._value!r})"
