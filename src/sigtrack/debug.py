"""Debug hook points.

Hooks are invoked, when installed, on every tracked read, every write and
every effect run. They are observational only: a hook that raises is logged
and ignored so it never changes the outcome of the operation it watches.

Usage:
    from sigtrack import debug

    debug.log_hooks()          # DEBUG records on "sigtrack.debug"
    ...
    debug.reset()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from sigtrack._tracking import ObserverContext, SignalTracker

logger = logging.getLogger("sigtrack.debug")


@dataclass
class DebugHooks:
    on_get_value: Callable[[ObserverContext, SignalTracker], None] | None = None
    on_set_value: Callable[[SignalTracker, object, bool], None] | None = None
    on_effect_run: Callable[[Callable[[], None]], None] | None = None


hooks = DebugHooks()


def install(*, on_get_value=None, on_set_value=None, on_effect_run=None) -> DebugHooks:
    """Install hooks. Arguments left as None keep the current hook."""
    if on_get_value is not None:
        hooks.on_get_value = on_get_value
    if on_set_value is not None:
        hooks.on_set_value = on_set_value
    if on_effect_run is not None:
        hooks.on_effect_run = on_effect_run
    return hooks


def reset() -> None:
    """Remove every installed hook."""
    hooks.on_get_value = None
    hooks.on_set_value = None
    hooks.on_effect_run = None


def log_hooks(target: logging.Logger | None = None) -> DebugHooks:
    """Install hooks that write a DEBUG record for each read, write and effect run."""
    log = target or logger

    def _on_get(context, tracker):
        log.debug("read %s by %s context", tracker, context.type.value)

    def _on_set(tracker, value, derived):
        log.debug("%s %s = %r", "derive" if derived else "write", tracker, value)

    def _on_effect(fn):
        log.debug("effect %s ran", getattr(fn, "__qualname__", fn))

    return install(on_get_value=_on_get, on_set_value=_on_set, on_effect_run=_on_effect)


def _call(hook, *args) -> None:
    try:
        hook(*args)
    except Exception:
        logger.exception("Debug hook %r failed", hook)


def emit_get(context: ObserverContext, tracker: SignalTracker) -> None:
    if hooks.on_get_value is not None:
        _call(hooks.on_get_value, context, tracker)


def emit_set(tracker: SignalTracker, value: object, derived: bool = False) -> None:
    if hooks.on_set_value is not None:
        _call(hooks.on_set_value, tracker, value, derived)


def emit_effect_run(fn: Callable[[], None]) -> None:
    if hooks.on_effect_run is not None:
        _call(hooks.on_effect_run, fn)
