# File: link_scout/parser/robots_parser.py
"""link_scout.parser.robots_parser: извлечение директив Sitemap из robots.txt."""

from __future__ import annotations

from typing import List, Optional

import aiohttp

from link_scout.logger import logger


def sitemaps_from_robots(text: str) -> List[str]:
    """Возвращает URL из директив ``Sitemap:`` в порядке появления.

    Args:
        text: содержимое robots.txt.

    Returns:
        Список URL sitemap (может быть пустым).
    """
    sitemaps: List[str] = []
    for directive, value in _prepare_lines(text):
        if directive == "sitemap" and value:
            sitemaps.append(value)
    return sitemaps


async def fetch_robots_sitemaps(
    session: aiohttp.ClientSession, site_root: str, timeout: float = 10.0
) -> List[str]:
    """Загружает ``{site_root}/robots.txt`` и извлекает sitemap; при ошибке возвращает []."""
    robots_url = f"{site_root}/robots.txt"
    text = await _fetch_robots(session, robots_url, timeout)
    if text is None:
        return []
    return sitemaps_from_robots(text)


async def _fetch_robots(
    session: aiohttp.ClientSession, url: str, timeout: float
) -> Optional[str]:
    """Загружает содержимое robots.txt по URL."""
    try:
        async with session.get(url, timeout=aiohttp.ClientTimeout(total=timeout)) as resp:
            if resp.status != 200:
                logger.debug("robots.txt %s -> HTTP %s", url, resp.status)
                return None
            return await resp.text(errors="replace")
    except (aiohttp.ClientError, TimeoutError) as exc:
        logger.debug("Error loading robots.txt %s: %s", url, exc)
        return None


def _prepare_lines(text: str) -> List[tuple[str, str]]:
    """Очищает текст от комментариев и разделяет на (директива, значение)."""
    lines: List[tuple[str, str]] = []
    for raw in text.splitlines():
        line = raw.split("#", 1)[0].strip()
        if not line or ":" not in line:
            continue
        key, val = (part.strip() for part in line.split(":", 1))
        lines.append((key.lower(), val))
    return lines
