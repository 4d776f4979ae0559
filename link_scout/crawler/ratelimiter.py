"""
Token-bucket rate limiter shared by every probe of a run.
"""
from __future__ import annotations

import asyncio
import contextlib
from typing import Optional

__all__ = ("RateLimiter",)


class RateLimiter:
    """Issues at most ``requests_per_second`` tokens per second.

    The bucket holds a single token and starts full, so the first request goes
    out immediately. A background task refills it every ``1 / rate`` seconds;
    a token that finds the bucket full is dropped. ``rate == 0`` disables
    limiting altogether.
    """

    def __init__(self, requests_per_second: float = 0.0) -> None:
        if requests_per_second < 0:
            raise ValueError("requests_per_second must be >= 0")
        self.requests_per_second = float(requests_per_second)
        self._tokens: Optional[asyncio.Queue[None]] = None
        self._refill_task: Optional[asyncio.Task[None]] = None
        self._stopped = False
        if self.requests_per_second > 0:
            self.interval = 1.0 / self.requests_per_second
            self._tokens = asyncio.Queue(maxsize=1)
            self._tokens.put_nowait(None)
        else:
            self.interval = 0.0

    @property
    def unlimited(self) -> bool:
        return self._tokens is None

    async def wait(self) -> None:
        """Block until a token is available."""
        if self._tokens is None:
            return
        if self._refill_task is None and not self._stopped:
            self._refill_task = asyncio.create_task(self._refill())
        await self._tokens.get()

    def stop(self) -> None:
        """Stop the refill task. Safe to call more than once."""
        if self._tokens is None or self._stopped:
            return
        self._stopped = True
        if self._refill_task is not None:
            self._refill_task.cancel()

    async def aclose(self) -> None:
        self.stop()
        if self._refill_task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await self._refill_task

    async def _refill(self) -> None:
        assert self._tokens is not None
        loop = asyncio.get_running_loop()
        next_tick = loop.time() + self.interval
        while True:
            await asyncio.sleep(max(0.0, next_tick - loop.time()))
            next_tick += self.interval
            with contextlib.suppress(asyncio.QueueFull):
                self._tokens.put_nowait(None)
