"""
Data models for the LinkScout validation engine.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from link_scout.errors import LinkScoutError

__all__ = ("LinkKind", "Classification", "Reference", "ProbeOutcome", "Result", "classify")


class LinkKind(str, Enum):
    """HTML tag a reference was taken from."""

    ANCHOR = "a"
    IMAGE = "img"
    STYLESHEET = "link"
    SCRIPT = "script"


class Classification(str, Enum):
    SUCCESS = "success"
    WARNING = "warning"
    BROKEN = "broken"
    SKIPPED = "skipped"
    CANCELLED = "cancelled"


@dataclass(slots=True, frozen=True)
class Reference:
    """One outbound URL found on a page, already absolute."""

    url: str
    kind: LinkKind
    text: str = ""
    is_external: bool = False


@dataclass(slots=True, frozen=True)
class ProbeOutcome:
    """Result of a single GET/HEAD probe, retries included."""

    url: str
    status_code: int
    status_text: str
    final_url: str
    error: Optional[LinkScoutError] = None
    duration: float = 0.0
    body: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None and self.status_code != 0


@dataclass(slots=True, frozen=True)
class Result:
    """Validation result for one (page, reference) pair."""

    source_url: str
    target_url: str
    status_code: int
    status_text: str
    classification: Classification
    error: Optional[LinkScoutError] = None
    is_external: bool = False
    kind: Optional[LinkKind] = None
    text: str = ""
    duration: float = 0.0

    @property
    def is_broken(self) -> bool:
        return self.classification is Classification.BROKEN


def classify(status_code: int, error: Optional[BaseException]) -> Classification:
    """Map a probe outcome onto Success/Warning/Broken."""
    if error is not None:
        return Classification.BROKEN
    if status_code >= 400:
        return Classification.BROKEN
    if 300 <= status_code < 400:
        return Classification.WARNING
    return Classification.SUCCESS
