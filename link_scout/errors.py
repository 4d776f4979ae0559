"""link_scout.errors: исключения LinkScout."""

from __future__ import annotations

from enum import Enum
from typing import Optional

__all__ = [
    "ErrorKind",
    "LinkScoutError",
    "ConfigError",
    "ProbeError",
    "PageError",
    "RunCancelled",
    "SitemapError",
]


class ErrorKind(str, Enum):
    """Вид сетевой ошибки, оставшейся после всех попыток."""

    CONNECTION = "connection"
    TIMEOUT = "timeout"
    TOO_MANY_REDIRECTS = "too_many_redirects"
    INVALID_URL = "invalid_url"


class LinkScoutError(Exception):
    """Базовое исключение проекта."""


class ConfigError(LinkScoutError, ValueError):
    """Некорректная конфигурация (например, неверный шаблон исключения)."""


class ProbeError(LinkScoutError):
    """Запрос не получил HTTP-ответ."""

    def __init__(self, message: str, kind: ErrorKind = ErrorKind.CONNECTION) -> None:
        self.message = message
        self.kind = kind
        super().__init__(message)


class PageError(LinkScoutError):
    """Страницу из sitemap не удалось загрузить или разобрать."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class RunCancelled(LinkScoutError):
    """Прогон отменён или вышел за отведённое время."""


class SitemapError(LinkScoutError):
    """Не удалось найти или прочитать sitemap."""
