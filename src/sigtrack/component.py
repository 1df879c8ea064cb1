"""Component observers — the bridge to a host rendering framework.

A component render is tracked like any other computation, but its update
callback asks the host to re-render instead of recomputing a value. The
render's context stays open until the render body finishes, since only
then is the full set of signals it read known.

RenderObserver speaks the "external store" protocol most hosts understand:
subscribe(update) -> unsubscribe, and get_snapshot() returning an object
whose identity changes exactly when a tracked signal notifies.
"""

from __future__ import annotations

import functools
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator, TypeVar

from sigtrack._tracking import ContextType, ObserverContext

R = TypeVar("R")


def observer(request_render: Callable[[int], None]) -> ObserverContext:
    """Open a component context whose update requests a host re-render.

    The context is left open; the caller disposes it when the render ends
    and keeps the returned unsubscribe for unmount.
    """
    return ObserverContext(ContextType.COMPONENT, request_render)


@dataclass(frozen=True, eq=False)
class RenderSnapshot:
    version: int


class RenderObserver:
    """Tracks one component's renders and tells the host when to re-render."""

    def __init__(self) -> None:
        self._snapshot = RenderSnapshot(-1)
        self._updates: list[Callable[[], None]] = []
        self._unsubscribe: Callable[[], None] | None = None

    def subscribe(self, update: Callable[[], None]) -> Callable[[], None]:
        """Register a host update callback. Returns a function that removes it."""
        self._updates.append(update)

        def _unsubscribe() -> None:
            try:
                self._updates.remove(update)
            except ValueError:
                pass  # already removed

        return _unsubscribe

    def get_snapshot(self) -> RenderSnapshot:
        return self._snapshot

    @property
    def subscribed(self) -> bool:
        return self._unsubscribe is not None

    @contextmanager
    def rendering(self) -> Iterator[ObserverContext]:
        """Track the reads of the enclosed render body.

        Subscriptions from the previous render are dropped first. The new
        ones take effect when the block exits, on every exit path.
        """
        self._drop_subscription()
        context = observer(self._on_update)
        try:
            yield context
        finally:
            self._unsubscribe = context.dispose()

    def render(self, fn: Callable[..., R], *args, **kwargs) -> R:
        with self.rendering():
            return fn(*args, **kwargs)

    def _on_update(self, version: int) -> None:
        self._snapshot = RenderSnapshot(version)
        for update in list(self._updates):
            update()

    def _drop_subscription(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def dispose(self) -> None:
        """Unmount: stop tracking and forget every host callback."""
        self._drop_subscription()
        self._updates.clear()


def observe(fn: Callable[..., R]) -> Callable[..., R]:
    """Decorator: track every call of a render function.

    The wrapper carries its RenderObserver on `.observer`, which the host
    subscribes to.

    Usage:
        @observe
        def view():
            return f"Count: {count.value}"

        view.observer.subscribe(schedule_redraw)
        view()
    """
    render_observer = RenderObserver()

    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        return render_observer.render(fn, *args, **kwargs)

    wrapper.observer = render_observer
    return wrapper
