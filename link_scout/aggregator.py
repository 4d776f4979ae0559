# File: link_scout/aggregator.py
"""link_scout.aggregator: сводная статистика по результатам проверки ссылок."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Set

from link_scout.crawler.models import Classification, Result


@dataclass(slots=True, frozen=True)
class ValidationReport:
    """Итог прогона: счётчики и полный упорядоченный список результатов."""

    results: List[Result] = field(default_factory=list)
    total_links: int = 0
    broken_links: int = 0
    warning_links: int = 0
    success_links: int = 0
    skipped_links: int = 0
    cancelled_links: int = 0
    internal_links: int = 0
    external_links: int = 0
    cached_links: int = 0
    unique_urls: int = 0
    pages_processed: int = 0
    check_external: bool = False
    links_by_tag: Dict[str, int] = field(default_factory=dict)
    links_by_status: Dict[int, int] = field(default_factory=dict)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    @property
    def duration(self) -> float:
        """Длительность прогона в секундах."""
        if self.start_time is None or self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time).total_seconds()

    @property
    def broken_results(self) -> List[Result]:
        return [r for r in self.results if r.classification is Classification.BROKEN]

    @property
    def warning_results(self) -> List[Result]:
        return [r for r in self.results if r.classification is Classification.WARNING]

    def to_dict(self) -> Dict[str, Any]:
        """JSON-совместимое представление отчёта."""
        return {
            "total_links": self.total_links,
            "broken_links": self.broken_links,
            "warning_links": self.warning_links,
            "success_links": self.success_links,
            "skipped_links": self.skipped_links,
            "cancelled_links": self.cancelled_links,
            "internal_links": self.internal_links,
            "external_links": self.external_links,
            "cached_links": self.cached_links,
            "unique_urls": self.unique_urls,
            "pages_processed": self.pages_processed,
            "check_external": self.check_external,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "duration_ms": round(self.duration * 1000),
            "links_by_tag": dict(self.links_by_tag),
            "links_by_status": {str(code): n for code, n in sorted(self.links_by_status.items())},
            "results": [result_to_dict(r) for r in self.results],
        }

    def json(self, *, pretty: bool = False) -> str:
        """Возвращает JSON-представление отчёта."""
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2 if pretty else None)


def result_to_dict(result: Result) -> Dict[str, Any]:
    return {
        "source_url": result.source_url,
        "target_url": result.target_url,
        "status_code": result.status_code,
        "status": result.status_text,
        "classification": result.classification.value,
        "is_broken": result.is_broken,
        "is_external": result.is_external,
        "tag": result.kind.value if result.kind else "",
        "link_text": result.text,
        "error": str(result.error) if result.error is not None else None,
        "duration_ms": round(result.duration * 1000),
    }


def aggregate_results(
    results: Iterable[Result],
    *,
    cache_size: int = 0,
    pages_processed: int = 0,
    check_external: bool = False,
    started_at: Optional[datetime] = None,
    finished_at: Optional[datetime] = None,
) -> ValidationReport:
    """Один проход по результатам; входные данные не изменяются."""
    ordered = list(results)
    counts = {c: 0 for c in Classification}
    internal = external = 0
    by_tag: Dict[str, int] = {}
    by_status: Dict[int, int] = {}
    unique: Set[str] = set()

    for result in ordered:
        counts[result.classification] += 1
        unique.add(result.target_url)
        if result.is_external:
            external += 1
        else:
            internal += 1
        if result.kind is not None:
            by_tag[result.kind.value] = by_tag.get(result.kind.value, 0) + 1
        if result.status_code > 0:
            by_status[result.status_code] = by_status.get(result.status_code, 0) + 1

    return ValidationReport(
        results=ordered,
        total_links=len(ordered),
        broken_links=counts[Classification.BROKEN],
        warning_links=counts[Classification.WARNING],
        success_links=counts[Classification.SUCCESS],
        skipped_links=counts[Classification.SKIPPED],
        cancelled_links=counts[Classification.CANCELLED],
        internal_links=internal,
        external_links=external,
        cached_links=cache_size,
        unique_urls=len(unique),
        pages_processed=pages_processed,
        check_external=check_external,
        links_by_tag=by_tag,
        links_by_status=by_status,
        start_time=started_at,
        end_time=finished_at,
    )
