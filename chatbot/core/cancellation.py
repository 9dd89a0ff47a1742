"""Cooperative cancellation handle shared between a session and its request."""

import asyncio
from typing import Awaitable, TypeVar

from .errors import CancellationError


T = TypeVar("T")


class CancelToken:
    """Write-once abort signal.

    ``cancel()`` may be called any number of times; only the first call has
    an effect. The in-flight request checks the token when it settles.
    """

    def __init__(self):
        self._event = asyncio.Event()

    def cancel(self) -> bool:
        """Signal cancellation. Returns False if already signalled."""
        if self._event.is_set():
            return False
        self._event.set()
        return True

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        """Wait until the token is signalled."""
        await self._event.wait()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise CancellationError()

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """
        Await ``awaitable`` unless the token is signalled first.

        The losing side is cancelled. A signalled token raises
        CancellationError even if the awaitable finished in the same tick.
        """
        if self._event.is_set():
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise CancellationError()

        work = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if not work.done():
                work.cancel()

        self.raise_if_cancelled()
        return work.result()
