"""Locate the mutation report to read."""

from __future__ import annotations

import logging
from pathlib import Path

from stryker_report.errors import ReportNotFoundError
from stryker_report.models import ordinal_key

log = logging.getLogger(__name__)

REPORT_NAME = "mutation-report.json"
OUTPUT_DIR = "StrykerOutput"


def _is_in_reports_dir(path: Path) -> bool:
    return path.as_posix().endswith(f"/reports/{REPORT_NAME}")


def _find_in_output_dir(output_dir: Path) -> Path | None:
    """Return the lexicographically first ``*/reports/mutation-report.json``."""
    if not output_dir.is_dir():
        return None
    matches = sorted(
        (p for p in output_dir.rglob(REPORT_NAME) if p.is_file() and _is_in_reports_dir(p)),
        key=lambda p: ordinal_key(str(p)),
    )
    return matches[0] if matches else None


def resolve_report_path(report: str | None = None, cwd: str | Path | None = None) -> Path:
    """Resolve the report to load.

    An explicit ``report`` must exist.  Otherwise the current directory is
    searched for ``mutation-report.json``, then ``reports/mutation-report.json``,
    then the first ``StrykerOutput/**/reports/mutation-report.json``.
    """
    base = Path(cwd) if cwd is not None else Path.cwd()
    if report is not None and report.strip():
        explicit = Path(report)
        if not explicit.is_absolute() and cwd is not None:
            explicit = base / explicit
        if explicit.is_file():
            return explicit
        raise ReportNotFoundError(f"Report not found: {report}")

    for candidate in (base / REPORT_NAME, base / "reports" / REPORT_NAME):
        if candidate.is_file():
            log.debug("Using report %s", candidate)
            return candidate

    found = _find_in_output_dir(base / OUTPUT_DIR)
    if found is not None:
        log.debug("Using report %s", found)
        return found

    raise ReportNotFoundError("Report not found.")
