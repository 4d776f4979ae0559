# File: tests/conftest.py
import asyncio
from typing import Dict, List, Optional, Union

import pytest
import pytest_asyncio
from aiohttp import web

from link_scout.config import CheckerConfig
from link_scout.crawler.models import ProbeOutcome
from link_scout.errors import ProbeError


def pytest_configure(config):
    """Register custom markers so that `--strict-markers` does not fail."""
    config.addinivalue_line(
        "markers",
        "slow: marks tests as slow (deselect with '-m \"not slow\"')",
    )


class FakeProbeClient:
    """
    In-memory stand-in for ProbeClient.

    ``pages`` maps a page URL to its HTML (or to a ProbeError for a failed fetch),
    ``statuses`` maps a link URL to a status code (or a ProbeError); unknown links
    answer 200. Records every call and the peak number of concurrent probes.
    """

    def __init__(
        self,
        pages: Optional[Dict[str, Union[str, ProbeError]]] = None,
        statuses: Optional[Dict[str, Union[int, ProbeError]]] = None,
        delay: float = 0.0,
        delays: Optional[Dict[str, float]] = None,
        page_delay: float = 0.0,
    ):
        self.pages = pages or {}
        self.statuses = statuses or {}
        self.delay = delay
        self.delays = delays or {}
        self.page_delay = page_delay
        self.get_calls: List[str] = []
        self.head_calls: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.pages_in_flight = 0
        self.max_pages_in_flight = 0

    async def get(self, url: str) -> ProbeOutcome:
        self.get_calls.append(url)
        self.pages_in_flight += 1
        self.max_pages_in_flight = max(self.max_pages_in_flight, self.pages_in_flight)
        try:
            await asyncio.sleep(self.page_delay)
        finally:
            self.pages_in_flight -= 1
        page = self.pages.get(url)
        if page is None:
            return ProbeOutcome(url, 404, "Not Found", url)
        if isinstance(page, ProbeError):
            return ProbeOutcome(url, 0, "Failed", url, error=page)
        return ProbeOutcome(url, 200, "OK", url, body=page)

    async def head(self, url: str) -> ProbeOutcome:
        self.head_calls.append(url)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(url, self.delay))
        finally:
            self.in_flight -= 1
        status = self.statuses.get(url, 200)
        if isinstance(status, ProbeError):
            return ProbeOutcome(url, 0, "Failed", url, error=status)
        return ProbeOutcome(url, status, "OK" if status < 300 else "Status", url, duration=0.01)


@pytest.fixture()
def fake_client():
    """Factory for FakeProbeClient instances."""
    return FakeProbeClient


@pytest.fixture()
def basic_config() -> CheckerConfig:
    """
    Return a basic valid CheckerConfig for validator tests.
    """
    return CheckerConfig(
        sitemap="sitemap.xml",
        timeout=2.0,
        retries=0,
        retry_delay=0.0,
        user_agent="TestAgent/1.0",
    )


@pytest_asyncio.fixture
async def serve(unused_tcp_port_factory):
    """Start aiohttp applications on free ports; yields a coroutine returning the base URL."""
    runners: List[web.AppRunner] = []

    async def _serve(app: web.Application) -> str:
        runner = web.AppRunner(app)
        await runner.setup()
        port = unused_tcp_port_factory()
        site = web.TCPSite(runner, "127.0.0.1", port)
        await site.start()
        runners.append(runner)
        return f"http://127.0.0.1:{port}"

    yield _serve
    for runner in runners:
        await runner.cleanup()
