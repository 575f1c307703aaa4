"""Values that are not known yet when a transaction is requested."""

import asyncio
from collections.abc import Awaitable
from typing import Generic, TypeVar, Union

T = TypeVar("T")


class Deferred(Generic[T]):
    """
    An input that becomes known later (for example the result of another call).

    The wrapped awaitable is awaited at most once; every later resolution,
    including concurrent ones, returns the same value or raises the same error.
    A Deferred belongs to the event loop it is first resolved on; resolving
    it from another loop is not supported.

    Example:
        >>> user_id = Deferred(client.get_user_id())
        >>> tx = await factory.give(user_id, receiver_id, erc20, 100)
    """

    def __init__(self, awaitable: Awaitable[T]) -> None:
        self._awaitable = awaitable
        self._task: asyncio.Future[T] | None = None

    @property
    def resolved(self) -> bool:
        return self._task is not None and self._task.done()

    async def resolve(self) -> T:
        if self._task is None:
            self._task = asyncio.ensure_future(self._awaitable)
        return await self._task

    def __repr__(self) -> str:
        state = "resolved" if self.resolved else "pending"
        return f"Deferred(<{state}>)"


Resolvable = Union[T, Deferred[T]]


async def resolve_value(value: "Resolvable[T]") -> T:
    """Return literals unchanged and resolve deferred values."""
    if isinstance(value, Deferred):
        return await value.resolve()
    return value
