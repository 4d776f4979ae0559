"""
Run-scoped cancellation: one event plus an optional deadline, checked at every
suspension point of a validation run.
"""
from __future__ import annotations

import asyncio
import contextlib
import inspect
from typing import Awaitable, Optional, TypeVar

from link_scout.errors import RunCancelled

__all__ = ("RunScope",)

T = TypeVar("T")


class RunScope:
    """Races awaitables against cancellation of the whole run.

    ``deadline`` is a number of seconds counted from the creation of the scope.
    When it passes, the scope sets its event so every other waiter stops too.
    """

    def __init__(
        self,
        cancel_event: Optional[asyncio.Event] = None,
        deadline: Optional[float] = None,
    ) -> None:
        self.event = cancel_event if cancel_event is not None else asyncio.Event()
        loop = asyncio.get_running_loop()
        self._loop = loop
        self._expires_at = loop.time() + deadline if deadline is not None else None

    @property
    def cancelled(self) -> bool:
        if self.event.is_set():
            return True
        if self._expires_at is not None and self._loop.time() >= self._expires_at:
            self.event.set()
            return True
        return False

    def cancel(self) -> None:
        self.event.set()

    def _remaining(self) -> Optional[float]:
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - self._loop.time())

    async def run(self, aw: Awaitable[T]) -> T:
        """Await ``aw`` unless the run is cancelled first.

        Raises :class:`RunCancelled` and cancels ``aw`` when the event fires or
        the deadline passes before ``aw`` completes. If ``aw`` still finishes
        once cancelled, its result is returned so acquired resources are not lost.
        """
        if self.cancelled:
            if inspect.iscoroutine(aw):
                aw.close()
            raise RunCancelled("run cancelled")
        task = asyncio.ensure_future(aw)
        stopper = asyncio.ensure_future(self.event.wait())
        try:
            done, _ = await asyncio.wait(
                {task, stopper},
                timeout=self._remaining(),
                return_when=asyncio.FIRST_COMPLETED,
            )
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            stopper.cancel()
        if task in done:
            return task.result()

        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        deadline_hit = not self.event.is_set()
        if deadline_hit:
            self.event.set()
        if not task.cancelled():
            # finished before the cancel landed, e.g. a semaphore slot the caller must release
            return task.result()
        raise RunCancelled("run deadline exceeded" if deadline_hit else "run cancelled")
