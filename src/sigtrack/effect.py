"""Effects — side effects triggered by signal changes.

Unlike Derived (which is lazy and only evaluates on read), an Effect
eagerly re-runs whenever any signal it read on its last run changes. Every
run drops the previous subscriptions and records a fresh set, so
conditional reads are followed.

An effect created while a store factory runs is disposed together with its
StoreContainer.

A scheduler may sit between a change and the re-run. It receives the run
callable and decides when, where or whether to call it. A run it drops leaves
the previous subscription in place, so the next change fires again.
"""

from __future__ import annotations

from typing import Callable

from sigtrack import debug
from sigtrack._tracking import ContextType, ObserverContext
from sigtrack.store import cleanup


class Effect:
    """A reactive side effect that re-runs when its dependencies change."""

    __slots__ = ("_fn", "_scheduler", "_disposer", "_disposed", "runs")

    def __init__(
        self,
        fn: Callable[[], None],
        scheduler: Callable[[Callable[[], None]], None] | None = None,
    ) -> None:
        self._fn = fn
        self._scheduler = scheduler
        self._disposer: Callable[[], None] | None = None
        self._disposed = False
        self.runs = 0

    @property
    def disposed(self) -> bool:
        return self._disposed

    def run(self) -> None:
        """Run the body in a fresh context, replacing the previous subscription."""
        if self._disposed:
            return
        if self._disposer is not None:
            self._disposer()
            self._disposer = None

        context = ObserverContext(ContextType.EFFECT, self._on_update)
        try:
            self.runs += 1
            self._fn()
        finally:
            self._disposer = context.dispose()
        debug.emit_effect_run(self._fn)

    def _on_update(self, version: int) -> None:
        if self._scheduler is None:
            self.run()
        else:
            self._scheduler(self.run)

    def dispose(self) -> None:
        """Stop this effect. Disconnects from all dependencies."""
        self._disposed = True
        if self._disposer is not None:
            self._disposer()
            self._disposer = None

    def __repr__(self) -> str:
        name = getattr(self._fn, "__name__", repr(self._fn))
        state = "disposed" if self._disposed else "active"
        return f"Effect({name}, {state})"


def effect(fn: Callable[[], None]) -> Effect:
    """Run fn immediately, then re-run whenever any signal it reads changes.

    Returns the Effect (call .dispose() to stop). Inside a store factory the
    effect is also disposed with the owning container.

    Usage:
        count = Signal(0)
        log = []

        e = effect(lambda: log.append(count.value))
        # log == [0]: ran immediately

        count.value = 1
        # log == [0, 1]: re-ran because count changed

        e.dispose()
        count.value = 2
        # log == [0, 1]: stopped
    """
    e = Effect(fn)
    cleanup(e.dispose)
    e.run()
    return e
