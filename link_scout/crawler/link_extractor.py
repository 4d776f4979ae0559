"""
Reference extraction from HTML pages for LinkScout.
"""
from __future__ import annotations

from typing import Dict, Iterable, List, Set, Tuple
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup
from bs4.element import Tag

from link_scout.crawler.models import LinkKind, Reference
from link_scout.utils import is_http_url

__all__ = ("extract_references", "filter_references")

# tag -> (attribute, kind, is a resource)
_SOURCES: Dict[str, Tuple[str, LinkKind, bool]] = {
    "a": ("href", LinkKind.ANCHOR, False),
    "img": ("src", LinkKind.IMAGE, False),
    "link": ("href", LinkKind.STYLESHEET, True),
    "script": ("src", LinkKind.SCRIPT, True),
}


def _anchor_text(tag: Tag) -> str:
    return " ".join(tag.get_text(" ", strip=True).split())


def extract_references(
    html: str, base_url: str, skip_resources: bool = False
) -> List[Reference]:
    """
    Extract references from ``<a>``, ``<img>``, ``<link>`` and ``<script>`` tags.

    Relative URLs are resolved against ``base_url``; a reference is external
    when its host differs from the page host. With ``skip_resources`` the
    ``<link>`` and ``<script>`` tags are ignored. Order follows the document.
    """
    soup = BeautifulSoup(html, "html.parser")
    base_host = urlsplit(base_url).netloc
    refs: List[Reference] = []
    for tag in soup.find_all(list(_SOURCES)):
        if not isinstance(tag, Tag):
            continue
        attr, kind, is_resource = _SOURCES[tag.name]
        if is_resource and skip_resources:
            continue
        value = tag.get(attr)
        if not isinstance(value, str) or not value.strip():
            continue
        raw = value.strip()
        absolute = urljoin(base_url, raw) if not raw.startswith("#") else raw
        refs.append(
            Reference(
                url=absolute,
                kind=kind,
                text=_anchor_text(tag) if kind is LinkKind.ANCHOR else "",
                is_external=_is_external(base_host, absolute),
            )
        )
    return refs


def _is_external(base_host: str, url: str) -> bool:
    host = urlsplit(url).netloc
    return bool(host) and host != base_host


def filter_references(refs: Iterable[Reference], include_external: bool) -> List[Reference]:
    """
    Drop duplicate URLs (first occurrence wins), external references unless
    ``include_external``, and anything that is not an http(s) URL
    (``javascript:``, ``mailto:``, ``tel:``, bare fragments...).
    """
    seen: Set[str] = set()
    kept: List[Reference] = []
    for ref in refs:
        if ref.url in seen:
            continue
        seen.add(ref.url)
        if ref.is_external and not include_external:
            continue
        if not is_http_url(ref.url):
            continue
        kept.append(ref)
    return kept
