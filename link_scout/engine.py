# File: link_scout/engine.py
"""link_scout.engine: Orchestration layer: sitemap → страницы → проверка ссылок → отчёт."""

from __future__ import annotations

import asyncio
from typing import Callable, List, Optional

import aiohttp

from link_scout.aggregator import ValidationReport
from link_scout.config import CheckerConfig, load_config
from link_scout.crawler.fetcher import ProbeClient
from link_scout.crawler.models import Result
from link_scout.crawler.validator import LinkValidator
from link_scout.logger import logger
from link_scout.parser.sitemap_parser import discover_sitemaps, load_sitemap
from link_scout.utils import remove_duplicates

__all__ = ["Engine", "collect_pages", "list_pages", "start_scan"]


async def collect_pages(config: CheckerConfig, session: aiohttp.ClientSession) -> List[str]:
    """Находит sitemap(ы) и возвращает адреса страниц без повторов."""
    if config.url:
        logger.info("Discovering sitemap from base URL: %s", config.url)
        sitemaps = await discover_sitemaps(session, config.url)
    else:
        sitemaps = [str(config.sitemap)]
    logger.info("Found %d sitemap(s)", len(sitemaps))

    pages: List[str] = []
    for source in sitemaps:
        logger.debug("Parsing sitemap: %s", source)
        pages.extend(await load_sitemap(session, source))
    pages = remove_duplicates(pages)
    logger.info("Discovered %d URLs from sitemap(s)", len(pages))
    return pages


async def list_pages(config: CheckerConfig) -> List[str]:
    """Только адреса страниц из sitemap, без проверки ссылок."""
    async with ProbeClient.from_config(config) as client:
        return await collect_pages(config, client.session)


async def start_scan(
    config: CheckerConfig,
    *,
    on_result: Optional[Callable[[Result], None]] = None,
    cancel_event: Optional[asyncio.Event] = None,
) -> ValidationReport:
    """Полный прогон: sitemap, загрузка страниц, проверка ссылок, агрегация.

    ``config.scan_timeout`` задаёт общий дедлайн; по его истечении
    незавершённые проверки получают классификацию CANCELLED.
    """
    async with ProbeClient.from_config(config) as client:
        pages = await collect_pages(config, client.session)
        if config.rate_limit:
            logger.info("Rate limiting enabled: %.2f requests/second", config.rate_limit)
        validator = LinkValidator(config, client, on_result=on_result)
        return await validator.run(
            pages, cancel_event=cancel_event, deadline=config.scan_timeout
        )


class Engine:
    """Фасад для CLI и тестов: загрузка конфига, запуск проверки и агрегация результатов."""

    @staticmethod
    def load_config(path: Optional[str], **overrides) -> CheckerConfig:
        """Загружает конфиг из YAML/JSON с возможностью переопределения полей."""
        return load_config(path, **overrides)

    def __init__(self, config: CheckerConfig) -> None:
        """Инициализирует Engine с заданной конфигурацией."""
        self.config = config

    def run(self, on_result: Optional[Callable[[Result], None]] = None) -> ValidationReport:
        """Запускает проверку и возвращает агрегированный отчёт."""
        logger.info("Starting link validation…")
        try:
            return asyncio.run(start_scan(self.config, on_result=on_result))
        except Exception as exc:
            logger.error("Validation failed: %s", exc)
            raise

    def list_pages(self) -> List[str]:
        """Возвращает адреса страниц из sitemap."""
        return asyncio.run(list_pages(self.config))
