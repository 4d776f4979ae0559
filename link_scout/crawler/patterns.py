"""
URL include/exclude matching with glob or regex patterns.
"""
from __future__ import annotations

import re
from typing import Iterable, List, Optional, Sequence

from link_scout.errors import ConfigError

__all__ = ("URLMatcher", "compile_pattern", "DEFAULT_EXCLUDE_PATTERNS")

DEFAULT_EXCLUDE_PATTERNS: Sequence[str] = (
    "*.pdf",
    "*.zip",
    "*.tar.gz",
    "*.exe",
    "*.dmg",
    "*/admin/*",
    "*/wp-admin/*",
    "*/wp-login.php",
    "*/login",
    "*/logout",
    "*/signin",
    "*/signout",
)


def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Compile a pattern: regex when it starts with ``^``, anchored glob otherwise.

    Globs support ``*`` (any run of characters) and ``?`` (one character).
    """
    if pattern.startswith("^"):
        try:
            return re.compile(pattern)
        except re.error as exc:
            raise ConfigError(f"invalid pattern {pattern!r}: {exc}") from exc
    escaped = re.escape(pattern).replace(r"\*", ".*").replace(r"\?", ".")
    return re.compile(f"^{escaped}$")


class URLMatcher:
    """Decides whether a URL should be validated at all."""

    def __init__(
        self,
        exclude: Optional[Iterable[str]] = None,
        include: Optional[Iterable[str]] = None,
    ) -> None:
        self.exclude_patterns: List[re.Pattern[str]] = [compile_pattern(p) for p in exclude or ()]
        self.include_patterns: List[re.Pattern[str]] = [compile_pattern(p) for p in include or ()]

    @classmethod
    def from_config(cls, config) -> Optional[URLMatcher]:
        """Build a matcher from config, or None when no pattern is configured."""
        exclude = list(config.exclude)
        if config.default_excludes:
            exclude.extend(DEFAULT_EXCLUDE_PATTERNS)
        if not exclude and not config.include:
            return None
        return cls(exclude, config.include)

    def should_check(self, url: str) -> bool:
        """True unless include patterns miss the URL or an exclude pattern hits it."""
        if self.include_patterns and not any(p.search(url) for p in self.include_patterns):
            return False
        return not any(p.search(url) for p in self.exclude_patterns)

    __call__ = should_check
