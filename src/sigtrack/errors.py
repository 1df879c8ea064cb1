"""Exceptions raised by the tracking engine."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sigtrack.asyncvalue import AsyncValue


class SigtrackError(Exception):
    """Base class for sigtrack errors."""


class ContextStackError(SigtrackError, RuntimeError):
    """An ObserverContext was disposed twice or out of nesting order."""


class StoreNotProvidedError(SigtrackError, LookupError):
    """No container in the chain provides the requested store factory."""

    def __init__(self, factory) -> None:
        name = getattr(factory, "__qualname__", repr(factory))
        super().__init__(f"No container provides store {name!r}")
        self.factory = factory


class Suspended(SigtrackError):
    """Raised by use() when an async value is still pending.

    The pending AsyncValue is on `.value`; await it and retry the read.
    """

    def __init__(self, value: AsyncValue) -> None:
        super().__init__("async value is still pending")
        self.value = value


def raise_collected(errors: list[BaseException], message: str) -> None:
    """Re-raise failures gathered while visiting several callbacks."""
    if len(errors) == 1:
        raise errors[0]
    if errors:
        raise BaseExceptionGroup(message, errors)
