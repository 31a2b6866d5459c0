"""Cooperative cancellation signal shared by the transport and tools."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, TypeVar

from .errors import OperationCanceled

T = TypeVar("T")

Callback = Callable[[], None]


class CancellationToken:
    """One-shot signal that running operations check at their I/O boundaries.

    A token starts un-cancelled and flips exactly once. Callbacks registered
    with :meth:`register` run synchronously when :meth:`cancel` is called, which
    is how :meth:`linked` children follow their parents.
    """

    def __init__(self) -> None:
        self._cancelled = False
        self._event = asyncio.Event()
        self._callbacks: list[Callback] = []
        self._links: list[Callback] = []

    @classmethod
    def linked(cls, *parents: "CancellationToken") -> "CancellationToken":
        """Return a token that is cancelled whenever any parent is."""

        child = cls()
        for parent in parents:
            child._links.append(parent.register(child.cancel))
        return child

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        self._event.set()
        for callback in tuple(self._callbacks):
            callback()

    def register(self, callback: Callback) -> Callback:
        """Run ``callback`` on cancellation and return a function that detaches it."""

        if self._cancelled:
            callback()
            return _noop
        self._callbacks.append(callback)

        def unregister() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unregister

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise OperationCanceled("The operation was canceled.")

    async def wait(self) -> None:
        await self._event.wait()

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` unless the token fires first.

        The losing side of the race is cancelled. Work already handed to a
        thread keeps running there; only the wait for it is abandoned.
        """

        if self._cancelled:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise OperationCanceled("The operation was canceled.")
        work: asyncio.Future[Any] = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if not work.done():
                work.cancel()
        if work in done:
            return work.result()
        raise OperationCanceled("The operation was canceled.")

    def dispose(self) -> None:
        """Detach from parent tokens and drop registered callbacks."""

        for unregister in self._links:
            unregister()
        self._links.clear()
        self._callbacks.clear()


def _noop() -> None:
    return None


__all__ = ["CancellationToken"]
