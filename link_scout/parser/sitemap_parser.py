# File: link_scout/parser/sitemap_parser.py
"""link_scout.parser.sitemap_parser: поиск, загрузка и разбор sitemap.xml."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Set

import aiohttp
from lxml import etree

from link_scout.errors import SitemapError
from link_scout.logger import logger
from link_scout.parser.robots_parser import fetch_robots_sitemaps
from link_scout.utils import site_root

__all__ = [
    "SitemapDocument",
    "COMMON_SITEMAP_PATHS",
    "parse_sitemap",
    "load_sitemap",
    "discover_sitemaps",
]

COMMON_SITEMAP_PATHS = (
    "/sitemap.xml",
    "/sitemap_index.xml",
    "/sitemap/sitemap.xml",
    "/sitemap/index.xml",
)
SITEMAP_ROOTS = ("urlset", "sitemapindex")
SITEMAP_TIMEOUT = 30.0
PROBE_TIMEOUT = 10.0


@dataclass(slots=True)
class SitemapDocument:
    """Содержимое одного sitemap: страницы (<urlset>) и вложенные sitemap (<sitemapindex>)."""

    urls: List[str] = field(default_factory=list)
    sitemaps: List[str] = field(default_factory=list)

    @property
    def is_index(self) -> bool:
        return bool(self.sitemaps)


def parse_sitemap(xml_content: str | bytes) -> SitemapDocument:
    """Разбирает XML sitemap и возвращает URL из тегов <loc>.

    Args:
        xml_content: содержимое sitemap.xml или sitemap index.

    Returns:
        SitemapDocument с адресами страниц и вложенных sitemap.

    Пример:
    ```python
    from link_scout.parser.sitemap_parser import parse_sitemap

    with open('sitemap.xml', encoding='utf-8') as f:
        doc = parse_sitemap(f.read())
    print(doc.urls)
    ```
    """
    data = xml_content.encode("utf-8") if isinstance(xml_content, str) else xml_content
    parser = etree.XMLParser(ns_clean=True, resolve_entities=False)
    try:
        root = etree.fromstring(data, parser=parser)
    except etree.XMLSyntaxError as exc:
        raise SitemapError(f"failed to parse sitemap XML: {exc}") from exc
    if root is None:
        raise SitemapError("failed to parse sitemap XML: empty document")
    # HTML soft-404 pages may still be well-formed XML
    tag = etree.QName(root).localname
    if tag not in SITEMAP_ROOTS:
        raise SitemapError(f"failed to parse sitemap XML: unexpected root element <{tag}>")

    doc = SitemapDocument()
    doc.sitemaps = _locs(root, "sitemap")
    doc.urls = _locs(root, "url")
    return doc


def _locs(root: etree._Element, entry: str) -> List[str]:
    locs = root.findall(f".//{{*}}{entry}/{{*}}loc")
    return [loc.text.strip() for loc in locs if loc.text and loc.text.strip()]


async def _read_source(session: Optional[aiohttp.ClientSession], source: str) -> bytes:
    if source.startswith(("http://", "https://")):
        if session is None:
            raise SitemapError(f"no HTTP session to fetch {source}")
        try:
            async with session.get(
                source, timeout=aiohttp.ClientTimeout(total=SITEMAP_TIMEOUT)
            ) as resp:
                if resp.status != 200:
                    raise SitemapError(f"sitemap returned status {resp.status}")
                return await resp.read()
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise SitemapError(f"failed to fetch sitemap: {exc}") from exc
    try:
        return Path(source).expanduser().read_bytes()
    except OSError as exc:
        raise SitemapError(f"failed to open sitemap file: {exc}") from exc


async def load_sitemap(
    session: Optional[aiohttp.ClientSession],
    source: str,
    _seen: Optional[Set[str]] = None,
) -> List[str]:
    """Загружает sitemap (URL или локальный файл) и возвращает адреса страниц.

    Sitemap index обрабатывается рекурсивно; ошибка во вложенном sitemap
    записывается в лог и пропускается, ошибка верхнего уровня поднимает SitemapError.
    """
    seen = set() if _seen is None else _seen
    seen.add(source)
    doc = parse_sitemap(await _read_source(session, source))
    if not doc.is_index:
        return doc.urls

    urls: List[str] = []
    for child in doc.sitemaps:
        if child in seen:
            continue
        try:
            urls.extend(await load_sitemap(session, child, seen))
        except SitemapError as exc:
            logger.warning("Failed to parse sitemap %s: %s", child, exc)
    return urls


async def discover_sitemaps(session: aiohttp.ClientSession, base_url: str) -> List[str]:
    """Находит sitemap сайта: сначала robots.txt, затем типовые пути.

    Raises:
        SitemapError: если ни один sitemap не найден.
    """
    root = site_root(base_url)
    sitemaps = await fetch_robots_sitemaps(session, root, timeout=PROBE_TIMEOUT)
    if sitemaps:
        return sitemaps

    for path in COMMON_SITEMAP_PATHS:
        candidate = root + path
        if await _url_exists(session, candidate):
            return [candidate]
    raise SitemapError(f"no sitemap found at {root}")


async def _url_exists(session: aiohttp.ClientSession, url: str) -> bool:
    """HEAD, затем GET, если сервер не поддерживает HEAD (405)."""
    timeout = aiohttp.ClientTimeout(total=PROBE_TIMEOUT)
    try:
        async with session.head(url, timeout=timeout, allow_redirects=True) as resp:
            status = resp.status
        if status == 405:
            async with session.get(url, timeout=timeout) as resp:
                status = resp.status
    except (aiohttp.ClientError, TimeoutError) as exc:
        logger.debug("Sitemap probe %s failed: %s", url, exc)
        return False
    return status == 200
