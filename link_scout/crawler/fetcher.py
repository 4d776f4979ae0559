"""
Probe client: HTTP GET/HEAD with rate limiting, retry/backoff and a redirect cap.
"""
from __future__ import annotations

import asyncio
import time
from typing import Optional, Tuple, Type

from aiohttp import (
    ClientConnectionError,
    ClientError,
    ClientPayloadError,
    ClientSession,
    ClientTimeout,
    InvalidURL,
    TCPConnector,
    TooManyRedirects,
)

from link_scout import __version__
from link_scout.crawler.models import ProbeOutcome
from link_scout.crawler.ratelimiter import RateLimiter
from link_scout.errors import ErrorKind, ProbeError
from link_scout.logger import logger

__all__ = ("ProbeClient", "DEFAULT_USER_AGENT", "MAX_REDIRECTS")

DEFAULT_USER_AGENT = f"LinkScout/{__version__} (Link Validator)"
MAX_REDIRECTS = 10

_RETRYABLE: Tuple[Type[BaseException], ...] = (
    ClientConnectionError,
    ClientPayloadError,
    asyncio.TimeoutError,
)


class ProbeClient:
    """Issues probes through one shared ``ClientSession``.

    Transport failures (DNS, refused connection, TLS, timeout) are retried up to
    ``max_retries`` extra times with a linearly growing pause. Any HTTP status
    is a final answer. Every attempt, retries included, takes a rate-limiter
    token first.
    A caller-supplied ``session`` is left open on exit; the user agent and the
    timeout are sent with every request so they apply to it as well.
    """

    def __init__(
        self,
        timeout: float = 10.0,
        max_retries: int = 1,
        user_agent: str = DEFAULT_USER_AGENT,
        rate_limit: float = 0.0,
        retry_delay: float = 1.0,
        max_redirects: int = MAX_REDIRECTS,
        session: Optional[ClientSession] = None,
    ) -> None:
        self.timeout = timeout
        self.max_retries = max_retries
        self.user_agent = user_agent
        self.retry_delay = retry_delay
        self.max_redirects = max_redirects
        self.rate_limiter = RateLimiter(rate_limit)
        self.headers = {"User-Agent": user_agent}
        self.request_timeout = ClientTimeout(total=timeout)
        self.session = session
        self._owns_session = session is None

    @classmethod
    def from_config(cls, config) -> ProbeClient:
        return cls(
            timeout=config.timeout,
            max_retries=config.retries,
            user_agent=config.user_agent,
            rate_limit=config.rate_limit,
            retry_delay=config.retry_delay,
        )

    async def __aenter__(self) -> ProbeClient:
        if self.session is None:
            self.session = ClientSession(
                timeout=self.request_timeout,
                headers=self.headers,
                connector=TCPConnector(limit=0, ttl_dns_cache=300),
                raise_for_status=False,
            )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.rate_limiter.aclose()
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()

    async def get(self, url: str) -> ProbeOutcome:
        """GET with body, used for page fetches."""
        return await self._probe("GET", url, read_body=True)

    async def head(self, url: str) -> ProbeOutcome:
        """HEAD without body, used for reference validation."""
        return await self._probe("HEAD", url, read_body=False)

    async def _probe(self, method: str, url: str, *, read_body: bool) -> ProbeOutcome:
        if self.session is None:
            raise RuntimeError("Session not initialized")
        start = time.monotonic()
        last_error: Optional[BaseException] = None
        attempts = 0
        for attempt in range(self.max_retries + 1):
            if attempt > 0:
                await asyncio.sleep(self.retry_delay * attempt)
            await self.rate_limiter.wait()
            attempts += 1
            try:
                async with self.session.request(
                    method,
                    url,
                    headers=self.headers,
                    timeout=self.request_timeout,
                    allow_redirects=True,
                    max_redirects=self.max_redirects,
                ) as resp:
                    body = await resp.text(errors="replace") if read_body else ""
                    return ProbeOutcome(
                        url=url,
                        status_code=resp.status,
                        status_text=resp.reason or "",
                        final_url=str(resp.url),
                        duration=time.monotonic() - start,
                        body=body,
                    )
            except TooManyRedirects as exc:
                error = ProbeError(
                    f"stopped after {self.max_redirects} redirects", ErrorKind.TOO_MANY_REDIRECTS
                )
                error.__cause__ = exc
                return self._failed(url, error, start)
            except (InvalidURL, ValueError) as exc:
                error = ProbeError(f"invalid URL: {exc}", ErrorKind.INVALID_URL)
                error.__cause__ = exc
                return self._failed(url, error, start)
            except _RETRYABLE as exc:
                last_error = exc
                logger.debug(
                    "Retry %d/%d for %s %s: %r", attempt + 1, self.max_retries, method, url, exc
                )
            except ClientError as exc:
                # non-transport client error, e.g. a malformed response
                last_error = exc
                break

        kind = ErrorKind.TIMEOUT if isinstance(last_error, asyncio.TimeoutError) else ErrorKind.CONNECTION
        reason = str(last_error) or type(last_error).__name__
        error = ProbeError(f"failed after {attempts} attempts: {reason}", kind)
        error.__cause__ = last_error
        return self._failed(url, error, start)

    @staticmethod
    def _failed(url: str, error: ProbeError, start: float) -> ProbeOutcome:
        return ProbeOutcome(
            url=url,
            status_code=0,
            status_text="Failed",
            final_url=url,
            error=error,
            duration=time.monotonic() - start,
        )
