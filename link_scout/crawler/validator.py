"""
Concurrent link validation: pages and links under two independent ceilings.
"""
from __future__ import annotations

import asyncio
import time
from dataclasses import replace
from datetime import datetime
from typing import Callable, List, Optional, Sequence

from link_scout.aggregator import ValidationReport, aggregate_results
from link_scout.crawler.cache import ValidationCache
from link_scout.crawler.fetcher import ProbeClient
from link_scout.crawler.link_extractor import extract_references, filter_references
from link_scout.crawler.models import Classification, Reference, Result, classify
from link_scout.crawler.patterns import URLMatcher
from link_scout.crawler.scope import RunScope
from link_scout.errors import LinkScoutError, PageError, RunCancelled
from link_scout.logger import logger

__all__ = ("LinkValidator", "SITEMAP_SOURCE")

SITEMAP_SOURCE = "sitemap"

OnResult = Callable[[Result], None]


class LinkValidator:
    """Validates every reference found on a list of pages.

    Up to ``config.page_concurrency`` pages are fetched and processed at once;
    within a page, up to ``config.concurrency`` references are probed at once.
    Each distinct URL is probed once per run through :class:`ValidationCache`,
    later occurrences reuse that outcome.

    Parameters
    ----------
    config
        A :class:`~link_scout.config.CheckerConfig` (or any object with the same
        attributes).
    client
        An entered :class:`~link_scout.crawler.fetcher.ProbeClient`.
    matcher
        Include/exclude matcher; built from ``config`` when omitted.
    on_result
        Observer called once for every produced :class:`Result`.
    """

    def __init__(
        self,
        config,
        client: ProbeClient,
        matcher: Optional[URLMatcher] = None,
        on_result: Optional[OnResult] = None,
    ) -> None:
        self.config = config
        self.client = client
        self.matcher = matcher if matcher is not None else URLMatcher.from_config(config)
        self.cache = ValidationCache()
        self.on_result = on_result
        if config.concurrency < 1 or config.page_concurrency < 1:
            raise ValueError("concurrency limits must be >= 1")

    async def run(
        self,
        page_urls: Sequence[str],
        *,
        cancel_event: Optional[asyncio.Event] = None,
        deadline: Optional[float] = None,
    ) -> ValidationReport:
        """Validate all pages and aggregate the results into a report.

        Every call starts with an empty cache, so a validator can be reused.
        """
        self.cache = ValidationCache()
        started_at = datetime.now()
        results = await self.validate_pages(page_urls, cancel_event=cancel_event, deadline=deadline)
        return aggregate_results(
            results,
            cache_size=len(self.cache),
            pages_processed=len(page_urls),
            check_external=self.config.check_external,
            started_at=started_at,
            finished_at=datetime.now(),
        )

    async def validate_pages(
        self,
        page_urls: Sequence[str],
        *,
        cancel_event: Optional[asyncio.Event] = None,
        deadline: Optional[float] = None,
    ) -> List[Result]:
        """Validate pages concurrently; results arrive in page completion order."""
        if not page_urls:
            return []
        scope = RunScope(cancel_event, deadline)
        slots = asyncio.Semaphore(min(self.config.page_concurrency, len(page_urls)))
        total = len(page_urls)
        logger.info("Validating %d pages…", total)
        start = time.monotonic()

        tasks = [
            asyncio.create_task(self._page_pipeline(url, idx, total, slots, scope))
            for idx, url in enumerate(page_urls)
        ]
        results: List[Result] = []
        try:
            for next_done in asyncio.as_completed(tasks):
                results.extend(await next_done)
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()

        logger.info(
            "Validated %d links on %d pages in %.2f s (%d probed)",
            len(results), total, time.monotonic() - start, self.cache.misses,
        )
        return results

    async def _page_pipeline(
        self, page_url: str, idx: int, total: int, slots: asyncio.Semaphore, scope: RunScope
    ) -> List[Result]:
        try:
            await scope.run(slots.acquire())
        except RunCancelled as exc:
            return [self._notify(self._page_result(page_url, Classification.CANCELLED, exc))]
        try:
            logger.debug("[%d/%d] Validating: %s", idx + 1, total, page_url)
            results = await self.validate_page(page_url, scope)
            logger.debug("  Found %d links on %s", len(results), page_url)
            return results
        except RunCancelled as exc:
            return [self._notify(self._page_result(page_url, Classification.CANCELLED, exc))]
        except PageError as exc:
            logger.warning("Error validating page %s: %s", page_url, exc)
            return [self._notify(self._page_result(page_url, Classification.BROKEN, exc))]
        finally:
            slots.release()

    async def validate_page(self, page_url: str, scope: Optional[RunScope] = None) -> List[Result]:
        """Fetch ``page_url``, extract its references and validate them.

        Raises :class:`PageError` when the page cannot be fetched, does not
        answer 200 or cannot be parsed.
        """
        scope = scope if scope is not None else RunScope()
        resp = await scope.run(self.client.get(page_url))
        if resp.error is not None:
            raise PageError(f"failed to fetch page: {resp.error}") from resp.error
        if resp.status_code != 200:
            raise PageError(f"page returned status {resp.status_code}", resp.status_code)
        try:
            refs = extract_references(resp.body, page_url, self.config.skip_resources)
        except (ValueError, TypeError, LookupError) as exc:
            raise PageError(f"failed to extract links: {exc}") from exc
        refs = filter_references(refs, self.config.check_external)
        logger.debug("Found %d links to validate on %s", len(refs), page_url)
        return await self.validate_links(page_url, refs, scope)

    async def validate_links(
        self, source_url: str, refs: Sequence[Reference], scope: Optional[RunScope] = None
    ) -> List[Result]:
        """Validate ``refs`` with at most ``config.concurrency`` in flight.

        The returned list is in the same order as ``refs``.
        """
        scope = scope if scope is not None else RunScope()
        slots = asyncio.Semaphore(self.config.concurrency)
        results: List[Optional[Result]] = [None] * len(refs)

        async def worker(idx: int, ref: Reference) -> None:
            try:
                await scope.run(slots.acquire())
            except RunCancelled as exc:
                results[idx] = self._notify(self._cancelled(source_url, ref, exc))
                return
            try:
                results[idx] = await self.validate_link(source_url, ref, scope)
            finally:
                slots.release()

        await asyncio.gather(*(worker(idx, ref) for idx, ref in enumerate(refs)))
        return [r for r in results if r is not None]

    async def validate_link(
        self, source_url: str, ref: Reference, scope: Optional[RunScope] = None
    ) -> Result:
        """Validate one reference: matcher, then cache, then a HEAD probe."""
        if self.matcher is not None and not self.matcher.should_check(ref.url):
            return self._notify(
                Result(
                    source_url=source_url,
                    target_url=ref.url,
                    status_code=0,
                    status_text="Skipped (excluded by pattern)",
                    classification=Classification.SKIPPED,
                    is_external=ref.is_external,
                    kind=ref.kind,
                    text=ref.text,
                )
            )

        scope = scope if scope is not None else RunScope()
        try:
            result, hit = await self.cache.get_or_probe(
                ref.url, lambda: self._probe(source_url, ref, scope)
            )
        except RunCancelled as exc:
            return self._notify(self._cancelled(source_url, ref, exc))
        if hit:
            result = replace(
                result,
                source_url=source_url,
                target_url=ref.url,
                kind=ref.kind,
                text=ref.text,
                is_external=ref.is_external,
            )
        return self._notify(result)

    async def _probe(self, source_url: str, ref: Reference, scope: RunScope) -> Result:
        outcome = await scope.run(self.client.head(ref.url))
        return Result(
            source_url=source_url,
            target_url=ref.url,
            status_code=outcome.status_code,
            status_text=outcome.status_text,
            classification=classify(outcome.status_code, outcome.error),
            error=outcome.error,
            is_external=ref.is_external,
            kind=ref.kind,
            text=ref.text,
            duration=outcome.duration,
        )

    def _notify(self, result: Result) -> Result:
        if self.on_result is not None:
            self.on_result(result)
        return result

    @staticmethod
    def _cancelled(source_url: str, ref: Reference, exc: LinkScoutError) -> Result:
        return Result(
            source_url=source_url,
            target_url=ref.url,
            status_code=0,
            status_text="Cancelled",
            classification=Classification.CANCELLED,
            error=exc,
            is_external=ref.is_external,
            kind=ref.kind,
            text=ref.text,
        )

    @staticmethod
    def _page_result(
        page_url: str, classification: Classification, exc: LinkScoutError
    ) -> Result:
        return Result(
            source_url=SITEMAP_SOURCE,
            target_url=page_url,
            status_code=0,
            status_text="Cancelled" if classification is Classification.CANCELLED else "Failed",
            classification=classification,
            error=exc,
        )
