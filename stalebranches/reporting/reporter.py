"""Turns a finished ``StaleReport`` into log lines and export files."""
from __future__ import annotations

import csv
import io
import json
import os
import sys
from pathlib import Path
from typing import List, Optional, Union

import structlog

from ..models import ReportFormat, StaleReport

logger = structlog.get_logger(__name__)

CSV_HEADER = ["S.No", "stale-branches", "deleted-branches"]


def log_totals(report: StaleReport) -> None:
    logger.info(
        "Branches assessed",
        stale=len(report.stale_branches),
        assessed=report.total_assessed,
        total=report.total_branches,
        summary=f"{len(report.stale_branches)} stale of {report.total_branches} total branches",
    )
    logger.info(
        "Branches deleted",
        deleted=len(report.deleted_branches),
        stale=len(report.stale_branches),
        issues_created=report.issues_created,
        issues_closed=report.issues_closed,
        orphans_closed=report.orphans_closed,
    )
    if report.failed:
        logger.error("Run failed", reason=report.failure_reason)


def csv_rows(report: StaleReport) -> List[List[str]]:
    rows: List[List[str]] = []
    for name in report.stale_branches:
        rows.append([str(len(rows) + 1), name, ""])
    for name in report.deleted_branches:
        rows.append([str(len(rows) + 1), "", name])
    return rows


def render(report: StaleReport, fmt: ReportFormat = ReportFormat.CSV) -> str:
    if fmt == ReportFormat.JSON:
        payload = {
            **report.outputs(),
            "failed": report.failed,
            "failure-reason": report.failure_reason,
        }
        return json.dumps(payload, indent=2, ensure_ascii=False) + "\n"

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\r\n")
    writer.writerow(CSV_HEADER)
    writer.writerows(csv_rows(report))
    return buffer.getvalue()


def export_report(
    report: StaleReport,
    path: Union[str, Path],
    fmt: ReportFormat = ReportFormat.CSV,
) -> Optional[Path]:
    """Write the report to ``path`` (``-`` means stdout). Returns the file written."""
    content = render(report, fmt)
    if str(path) == "-":
        sys.stdout.write(content)
        return None

    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    # Byte order mark so spreadsheet tools pick up UTF-8 branch names.
    encoding = "utf-8-sig" if fmt == ReportFormat.CSV else "utf-8"
    out_path.write_text(content, encoding=encoding)
    logger.info("Report written", path=str(out_path), format=fmt.value)
    return out_path


def write_step_outputs(report: StaleReport, path: Union[str, Path, None] = None) -> Optional[Path]:
    """Append the step outputs to the file named by ``GITHUB_OUTPUT``."""
    target = path or os.getenv("GITHUB_OUTPUT")
    if not target:
        return None
    out_path = Path(target)
    with out_path.open("a", encoding="utf-8") as fp:
        for key, value in report.outputs().items():
            fp.write(f"{key}={json.dumps(value, ensure_ascii=False)}\n")
    return out_path
