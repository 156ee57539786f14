# File: site_pdf/abort.py
"""Run-wide cancellation signal shared by the scheduler and every task."""
from __future__ import annotations

import asyncio
from typing import Awaitable, Optional, TypeVar

from site_pdf.errors import RunAborted

__all__ = ["AbortSignal"]

T = TypeVar("T")


class AbortSignal:
    """One-shot abort flag with a reason. The first ``abort()`` wins."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: Optional[BaseException] = None

    @property
    def aborted(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Optional[BaseException]:
        return self._reason

    def abort(self, reason: BaseException) -> bool:
        """Signal the abort. Returns False if the signal was already set."""
        if self._event.is_set():
            return False
        self._reason = reason
        self._event.set()
        return True

    def raise_if_aborted(self) -> None:
        if self._event.is_set():
            raise RunAborted(self._reason)

    async def wait(self) -> Optional[BaseException]:
        await self._event.wait()
        return self._reason

    async def guard(self, aw: Awaitable[T]) -> T:
        """Await *aw* unless the signal fires first.

        On abort the pending operation is cancelled and awaited before
        :class:`RunAborted` is raised.
        """
        self.raise_if_aborted()
        task = asyncio.ensure_future(aw)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            if not waiter.done():
                waiter.cancel()
            if not task.done():
                task.cancel()
                await asyncio.wait({task})
        if task.cancelled():
            raise RunAborted(self._reason)
        exc = task.exception()
        if exc is not None and self.aborted:
            raise RunAborted(self._reason) from exc
        return task.result()
