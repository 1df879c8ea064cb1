"""Dependency tracking engine — the heart of sigtrack.

An ObserverContext is opened when a tracked computation (derived, effect or
component render) starts. Uses contextvars to hold the context on top of the
stack: every tracker read while it is on top is recorded, and disposing the
context pops it and turns the recorded reads into live subscriptions.

A SignalTracker is the fan-out endpoint owned by each signal and derived.
Notification walks a snapshot of its dependents, so contexts that subscribe
during the pass are only visited by the next one.
"""

from __future__ import annotations

import contextvars
import enum
import traceback
from contextlib import contextmanager
from typing import Callable, Iterator

from sigtrack import debug
from sigtrack.errors import ContextStackError, raise_collected


class ContextType(enum.Enum):
    COMPONENT = "component"
    DERIVED = "derived"
    EFFECT = "effect"


# The ObserverContext on top of the stack. Each context keeps the token that
# restores the one below it.
current_context: contextvars.ContextVar[ObserverContext | None] = contextvars.ContextVar(
    "current_context", default=None
)


def get_current_context() -> ObserverContext | None:
    return current_context.get()


class ObserverContext:
    """Records the trackers read (and written) by one run of a computation.

    Pushed on construction, popped by dispose(). Strictly nested: a context
    must be disposed before the one below it.
    """

    # Bumped on every notify(). Ordering and debugging only.
    version: int = 0

    __slots__ = ("type", "creation_stack", "_on_update", "_reads", "_writes", "_token", "_resolving")

    def __init__(self, context_type: ContextType, on_update: Callable[[int], None]) -> None:
        self.type = context_type
        self._on_update = on_update
        # dict as an insertion-ordered set
        self._reads: dict[SignalTracker, None] = {}
        self._writes: set[SignalTracker] = set()
        self._resolving = False
        self.creation_stack = (
            "".join(traceback.format_stack()[:-1]) if debug.hooks.on_get_value is not None else ""
        )
        self._token: contextvars.Token | None = current_context.set(self)

    @property
    def disposed(self) -> bool:
        return self._token is None

    @property
    def reads(self) -> tuple[SignalTracker, ...]:
        return tuple(self._reads)

    @property
    def writes(self) -> frozenset[SignalTracker]:
        return frozenset(self._writes)

    @property
    def tracks_reads(self) -> bool:
        """False while a component context resolves a store."""
        return not (self.type is ContextType.COMPONENT and self._resolving)

    @contextmanager
    def resolving(self) -> Iterator[ObserverContext]:
        """Suspend read tracking of a component context while a store resolves."""
        previous = self._resolving
        self._resolving = True
        try:
            yield self
        finally:
            self._resolving = previous

    def register_read(self, tracker: SignalTracker) -> None:
        # A tracker this context wrote is never also a read: the write would
        # otherwise notify the context that caused it.
        if tracker in self._writes:
            return
        self._reads[tracker] = None

    def register_write(self, tracker: SignalTracker) -> None:
        self._reads.pop(tracker, None)
        self._writes.add(tracker)

    def notify(self) -> None:
        version = ObserverContext.version
        ObserverContext.version += 1
        self._on_update(version)

    def dispose(self) -> Callable[[], None]:
        """Pop this context and subscribe it to every tracker it read.

        Returns an unsubscribe function; calling it more than once is safe.
        """
        if self._token is None:
            raise ContextStackError("ObserverContext is already disposed")
        if current_context.get() is not self:
            raise ContextStackError("ObserverContext disposed out of nesting order")
        current_context.reset(self._token)
        self._token = None

        trackers = tuple(self._reads)
        for tracker in trackers:
            tracker.add_context(self)

        def _unsubscribe() -> None:
            for tracker in trackers:
                tracker.remove_context(self)

        return _unsubscribe

    def __repr__(self) -> str:
        state = "disposed" if self.disposed else "active"
        return f"ObserverContext({self.type.value}, {state}, reads={len(self._reads)})"


class SignalTracker:
    """Subscription endpoint of a signal or derived."""

    __slots__ = ("get_value", "_contexts")

    def __init__(self, get_value: Callable[[], object]) -> None:
        self.get_value = get_value
        self._contexts: dict[ObserverContext, None] = {}

    @property
    def dependents(self) -> tuple[ObserverContext, ...]:
        return tuple(self._contexts)

    def add_context(self, context: ObserverContext) -> None:
        self._contexts[context] = None

    def remove_context(self, context: ObserverContext) -> None:
        self._contexts.pop(context, None)

    def notify(self) -> None:
        """Notify every dependent subscribed when the pass starts.

        A failing dependent does not stop the pass. Failures are re-raised
        once every dependent has been notified.
        """
        errors: list[Exception] = []
        for context in list(self._contexts):
            try:
                context.notify()
            except Exception as exc:
                errors.append(exc)
        raise_collected(errors, "dependents failed during notification")

    def __repr__(self) -> str:
        return f"SignalTracker(dependents={len(self._contexts)})"


def track_read(tracker: SignalTracker) -> None:
    """Register tracker with the current context, if one is tracking."""
    context = current_context.get()
    if context is None or not context.tracks_reads:
        return
    context.register_read(tracker)
    debug.emit_get(context, tracker)
