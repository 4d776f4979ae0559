"""
Single-flight validation cache: one probe per URL per run.
"""
from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Dict, Optional, Tuple

from link_scout.crawler.models import Result
from link_scout.errors import RunCancelled
from link_scout.utils import normalize_url

__all__ = ("ValidationCache",)


class ValidationCache:
    """Maps a normalized URL to the result of its first validation.

    The first caller for a URL registers a pending future and runs the probe;
    callers arriving while it is in flight await the same future instead of
    probing again. Entries are never evicted. A probe that fails with an
    exception (cancellation included) is removed again so the cache only ever
    holds finished results.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, asyncio.Future[Result]] = {}
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return sum(1 for fut in self._entries.values() if fut.done())

    def __contains__(self, url: object) -> bool:
        return isinstance(url, str) and self.get(url) is not None

    def get(self, url: str) -> Optional[Result]:
        """Finished result for ``url`` or None."""
        fut = self._entries.get(normalize_url(url))
        if fut is None or not fut.done() or fut.cancelled() or fut.exception() is not None:
            return None
        return fut.result()

    async def get_or_probe(
        self, url: str, probe: Callable[[], Awaitable[Result]]
    ) -> Tuple[Result, bool]:
        """Return ``(result, hit)``; ``probe`` runs only for the first caller."""
        key = normalize_url(url)
        # lookup and insert happen with no await in between
        pending = self._entries.get(key)
        if pending is not None:
            self.hits += 1
            return await asyncio.shield(pending), True

        self.misses += 1
        fut: asyncio.Future[Result] = asyncio.get_running_loop().create_future()
        self._entries[key] = fut
        try:
            result = await probe()
        except BaseException as exc:
            del self._entries[key]
            fut.set_exception(exc if isinstance(exc, Exception) else RunCancelled("probe cancelled"))
            # waiters may already be gone; mark the exception as retrieved
            fut.exception()
            raise
        fut.set_result(result)
        return result, False
