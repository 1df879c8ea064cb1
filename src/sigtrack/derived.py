"""Derived values — memoized state with automatic dependency tracking.

A Derived wraps a zero-argument function. When evaluated, it records which
signals the function reads and caches the result. When any of them changes,
the cached value is marked dirty and the derived's own readers are notified.
On next read, it re-evaluates.

Derived values are lazy — they only recompute when read. Each recompute
drops the previous subscriptions first, so a branch not taken on the last
run is not a dependency.
"""

from __future__ import annotations

from typing import Callable, Generic, TypeVar

from sigtrack import debug
from sigtrack._tracking import ContextType, ObserverContext, SignalTracker, track_read
from sigtrack.signal import is_same

T = TypeVar("T")

_UNSET = object()


class Derived(Generic[T]):
    """A derived value that auto-tracks dependencies and caches the result."""

    __slots__ = ("_fn", "_value", "_dirty", "_tracker", "_disposer", "_listeners", "__weakref__")

    def __init__(self, fn: Callable[[], T]) -> None:
        self._fn = fn
        self._value = _UNSET
        self._dirty = True
        self._tracker = SignalTracker(lambda: None if self._value is _UNSET else self._value)
        self._disposer: Callable[[], None] | None = None
        self._listeners: list[Callable[[T, T], None]] = []

    @property
    def tracker(self) -> SignalTracker:
        return self._tracker

    @property
    def dirty(self) -> bool:
        return self._dirty

    @property
    def value(self) -> T:
        """Read the derived value. Recomputes if dirty."""
        track_read(self._tracker)
        if self._dirty:
            self._recompute()
        return self._value

    def on_change(self, listener: Callable[[T, T], None]) -> Callable[[], None]:
        """Call listener(new, previous) when the value changes.

        While listeners are attached the derived recomputes eagerly on
        notification instead of waiting for the next read.
        """
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

        return _unsubscribe

    def _drop_subscription(self) -> None:
        if self._disposer is not None:
            self._disposer()
            self._disposer = None

    def _recompute(self) -> None:
        """Re-evaluate the function inside a fresh context."""
        self._drop_subscription()
        context = ObserverContext(ContextType.DERIVED, self._invalidate)
        try:
            self._value = self._fn()
        finally:
            self._disposer = context.dispose()
        self._dirty = False
        debug.emit_set(self._tracker, self._value, True)

    def _invalidate(self, version: int) -> None:
        """Called when a dependency changed.

        Marks dirty and propagates to our own readers. We don't recompute
        here unless on_change listeners need the new value.
        """
        self._dirty = True
        if not self._listeners:
            self._tracker.notify()
            return

        previous = self._value
        try:
            self._recompute()
        except Exception:
            # Readers still learn we are stale; they recompute on their next read.
            self._tracker.notify()
            raise
        try:
            self._tracker.notify()
        finally:
            if not is_same(previous, self._value):
                for listener in list(self._listeners):
                    listener(self._value, previous)

    def dispose(self) -> None:
        """Disconnect from all dependencies. The next read evaluates from scratch."""
        self._drop_subscription()
        self._dirty = True
        self._value = _UNSET

    def __repr__(self) -> str:
        name = getattr(self._fn, "__name__", repr(self._fn))
        state = "dirty" if self._dirty else f"cached={self._value!r}"
        return f"Derived({name}, {state})"


def derived(fn: Callable[[], T]) -> Derived[T]:
    """Decorator/factory to create a Derived from a function.

    Usage:
        count = Signal(0)

        @derived
        def double():
            return count.value * 2

        double.value  # 0
        count.value = 5
        double.value  # 10
    """
    return Derived(fn)
