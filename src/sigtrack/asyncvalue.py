"""Async values — the tri-state view a signal stores for an awaitable.

Writing a coroutine, task or future into a Signal stores a pending
AsyncValue. When the operation settles the signal swaps in a new fulfilled
or rejected AsyncValue and notifies, so the stored reference changes on
every transition.

Read it with use() inside synchronous code, or simply await it.
"""

from __future__ import annotations

import asyncio
import enum
from typing import Any, Generator, Generic, TypeVar

from sigtrack.errors import Suspended

T = TypeVar("T")


class AsyncStatus(enum.Enum):
    PENDING = "pending"
    FULFILLED = "fulfilled"
    REJECTED = "rejected"


class AsyncValue(Generic[T]):
    """Immutable snapshot of an asyncio future's state."""

    __slots__ = ("future", "status", "value", "reason")

    def __init__(
        self,
        future: asyncio.Future[T],
        status: AsyncStatus = AsyncStatus.PENDING,
        value: T | None = None,
        reason: BaseException | None = None,
    ) -> None:
        self.future = future
        self.status = status
        self.value = value
        self.reason = reason

    @classmethod
    def fulfilled(cls, future: asyncio.Future[T], value: T) -> AsyncValue[T]:
        return cls(future, AsyncStatus.FULFILLED, value=value)

    @classmethod
    def rejected(cls, future: asyncio.Future[T], reason: BaseException) -> AsyncValue[T]:
        return cls(future, AsyncStatus.REJECTED, reason=reason)

    @property
    def pending(self) -> bool:
        return self.status is AsyncStatus.PENDING

    def __await__(self) -> Generator[Any, None, T]:
        return self.future.__await__()

    def __repr__(self) -> str:
        if self.status is AsyncStatus.FULFILLED:
            return f"AsyncValue(fulfilled, {self.value!r})"
        if self.status is AsyncStatus.REJECTED:
            return f"AsyncValue(rejected, {self.reason!r})"
        return "AsyncValue(pending)"


def use(value: AsyncValue[T]) -> T:
    """Read an async value synchronously.

    Returns the result when fulfilled and raises the failure when rejected.
    While pending it raises Suspended; the caller awaits `exc.value` and
    retries.

    Usage:
        user = Signal(fetch_user())

        def render():
            try:
                return use(user.value).name
            except Suspended:
                return "Loading..."
    """
    if value.status is AsyncStatus.PENDING:
        raise Suspended(value)
    if value.status is AsyncStatus.REJECTED:
        raise value.reason
    return value.value
