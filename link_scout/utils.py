# File: link_scout/utils.py
"""link_scout.utils: Утилитарные функции для обработки URL."""

from __future__ import annotations

from typing import Collection, List, Sequence
from urllib.parse import urlsplit, urlunsplit

from link_scout.logger import logger

__all__: Sequence[str] = (
    "normalize_url",
    "is_http_url",
    "ensure_scheme",
    "site_root",
    "remove_duplicates",
    "truncate",
    "percentage",
)


def normalize_url(url: str) -> str:
    """Ключ кэша: схема и хост в нижнем регистре, без фрагмента."""
    parts = urlsplit(url.strip())
    return urlunsplit(
        (parts.scheme.lower(), parts.netloc.lower(), parts.path, parts.query, "")
    )


def is_http_url(url: str) -> bool:
    """Проверяет, что URL использует http(s) и содержит хост."""
    parts = urlsplit(url)
    return parts.scheme in ("http", "https") and bool(parts.netloc)


def ensure_scheme(url: str) -> str:
    """Добавляет https://, если схема не указана."""
    url = url.strip()
    if not url.startswith(("http://", "https://")):
        url = "https://" + url
    return url


def site_root(url: str) -> str:
    """Возвращает scheme://host для URL."""
    parts = urlsplit(ensure_scheme(url))
    return f"{parts.scheme}://{parts.netloc}"


def remove_duplicates(urls: Collection[str]) -> List[str]:
    """Удаляет дубликаты из списка URL, сохраняя порядок."""
    unique = list(dict.fromkeys(urls))
    removed = len(urls) - len(unique)
    if removed:
        logger.debug("Removed %d duplicate URLs", removed)
    return unique


def truncate(text: str, max_len: int) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def percentage(part: int, total: int) -> float:
    return part / total * 100 if total else 0.0
