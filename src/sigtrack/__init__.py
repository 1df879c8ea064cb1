"""sigtrack: fine-grained reactive dependency tracking for Python."""

from importlib.metadata import version as _version

__version__ = _version("sigtrack")

from sigtrack._tracking import ContextType, ObserverContext, SignalTracker, get_current_context
from sigtrack.asyncvalue import AsyncStatus, AsyncValue, use
from sigtrack.config import Settings, configure, settings
from sigtrack.errors import ContextStackError, SigtrackError, StoreNotProvidedError, Suspended
from sigtrack.signal import Signal, set_scheduler
from sigtrack.derived import Derived, derived
from sigtrack.effect import Effect, effect
from sigtrack.store import StoreContainer, cleanup, get_active_container
from sigtrack.component import RenderObserver, RenderSnapshot, observe, observer
# textual integration NOT auto-imported: opt-in only

__all__ = [
    "Signal",
    "set_scheduler",
    "Derived",
    "derived",
    "Effect",
    "effect",
    "AsyncValue",
    "AsyncStatus",
    "use",
    "ObserverContext",
    "SignalTracker",
    "ContextType",
    "get_current_context",
    "StoreContainer",
    "cleanup",
    "get_active_container",
    "RenderObserver",
    "RenderSnapshot",
    "observe",
    "observer",
    "Settings",
    "configure",
    "settings",
    "SigtrackError",
    "ContextStackError",
    "StoreNotProvidedError",
    "Suspended",
]
