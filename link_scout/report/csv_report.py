# link_scout/report/csv_report.py
"""CSV export: one row per result."""

from __future__ import annotations

import csv
import io

from link_scout.aggregator import ValidationReport, result_to_dict

CSV_HEADER = [
    "Source URL",
    "Target URL",
    "Status Code",
    "Status",
    "Classification",
    "Is Broken",
    "Is External",
    "Tag",
    "Link Text",
    "Error",
    "Duration (ms)",
]


def format_csv(report: ValidationReport) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for result in report.results:
        row = result_to_dict(result)
        writer.writerow(
            [
                row["source_url"],
                row["target_url"],
                row["status_code"],
                row["status"],
                row["classification"],
                str(row["is_broken"]).lower(),
                str(row["is_external"]).lower(),
                row["tag"],
                row["link_text"],
                row["error"] or "",
                row["duration_ms"],
            ]
        )
    return buffer.getvalue()
