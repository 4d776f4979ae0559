# link_scout/report/text_report.py
"""Human-readable text report."""

from __future__ import annotations

from typing import List

from link_scout.aggregator import ValidationReport
from link_scout.utils import percentage, truncate

TEXT_WIDTH = 60


def format_text(report: ValidationReport) -> str:
    """Render the summary, broken links and redirect warnings as plain text."""
    total = report.total_links
    lines: List[str] = [
        "Link Validation Report",
        "======================",
        "",
        f"Pages Processed:   {report.pages_processed}",
        f"Total Links:       {total}",
        f"Unique URLs:       {report.unique_urls}",
        f"✓ Success:         {report.success_links} ({percentage(report.success_links, total):.1f}%)",
        f"✗ Broken:          {report.broken_links} ({percentage(report.broken_links, total):.1f}%)",
        f"⚠ Warnings:        {report.warning_links} ({percentage(report.warning_links, total):.1f}%)",
    ]
    if report.skipped_links:
        lines.append(f"Skipped:           {report.skipped_links}")
    if report.cancelled_links:
        lines.append(f"Cancelled:         {report.cancelled_links}")
    lines += [
        f"Internal Links:    {report.internal_links}",
        f"External Links:    {report.external_links}",
        f"Cached Results:    {report.cached_links}",
        f"Duration:          {report.duration:.3f}s",
        "",
    ]

    if report.links_by_tag:
        lines.append("Links by Type:")
        for tag, count in sorted(report.links_by_tag.items()):
            lines.append(f"  <{tag}>: {count}")
        lines.append("")

    broken = report.broken_results
    if broken:
        lines += ["Broken Links:", "-------------"]
        for result in broken:
            lines += ["", f"✗ {result.target_url}", f"  Source: {result.source_url}"]
            if result.kind is not None:
                lines.append(f"  Tag:    <{result.kind.value}>")
            if result.text:
                lines.append(f"  Text:   {truncate(result.text, TEXT_WIDTH)}")
            if result.error is not None:
                lines.append(f"  Error:  {result.error}")
            else:
                lines.append(f"  Status: {result.status_code} {result.status_text}")
        lines.append("")

    warnings = report.warning_results
    if warnings:
        lines += ["Warnings (Redirects):", "--------------------"]
        for result in warnings:
            lines += [
                "",
                f"⚠ {result.target_url}",
                f"  Source: {result.source_url}",
                f"  Status: {result.status_code} {result.status_text}",
            ]
        lines.append("")

    if report.broken_links == 0:
        lines.append("✓ All links are valid!")
    else:
        lines.append(f"✗ Found {report.broken_links} broken link(s) that need attention.")
    return "\n".join(lines) + "\n"
