"""Persist normalized report data as JSONL files and an optional SQLite database."""

from __future__ import annotations

import contextlib
import logging
import os
import shutil
import sqlite3
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

from stryker_report.errors import ExportExistsError, InvalidArgumentsError
from stryker_report.models import (
    FileSummary,
    MutantRecord,
    ReportData,
    RunSummary,
    STATUSES,
    TestRef,
)
from stryker_report.output import to_json

log = logging.getLogger(__name__)

EXPORT_MODES: tuple[str, ...] = ("jsonl", "sqlite")

SUMMARY_FILE = "summary.json"
FILES_FILE = "files.jsonl"
MUTANTS_FILE = "mutants.jsonl"
SQLITE_FILE = "stryker-report.sqlite"

_STATUS_COLUMNS = [f"status{s}" for s in STATUSES]
_STATUS_COLUMN_DEFS = ",\n    ".join(f"{c} INTEGER NOT NULL" for c in _STATUS_COLUMNS)

SCHEMA = f"""
CREATE TABLE summary (
    schemaVersion TEXT NOT NULL,
    thresholdsHigh INTEGER NOT NULL,
    thresholdsLow INTEGER NOT NULL,
    totalFiles INTEGER NOT NULL,
    totalMutants INTEGER NOT NULL,
    {_STATUS_COLUMN_DEFS},
    mutationScorePercent REAL NOT NULL,
    mutationScoreNumeratorKilled INTEGER NOT NULL,
    mutationScoreDenominatorEffective INTEGER NOT NULL,
    performanceSetup REAL NULL,
    performanceInitialRun REAL NULL,
    performanceMutation REAL NULL,
    frameworkName TEXT NULL,
    frameworkVersion TEXT NULL,
    systemCi INTEGER NULL
);

CREATE TABLE files (
    filePath TEXT PRIMARY KEY,
    language TEXT NOT NULL,
    mutationScore REAL NOT NULL,
    {_STATUS_COLUMN_DEFS},
    totalMutants INTEGER NOT NULL
);

CREATE TABLE mutants (
    id TEXT PRIMARY KEY,
    filePath TEXT NOT NULL,
    language TEXT NOT NULL,
    startLine INTEGER NOT NULL,
    startColumn INTEGER NOT NULL,
    endLine INTEGER NOT NULL,
    endColumn INTEGER NOT NULL,
    mutator TEXT NOT NULL,
    status TEXT NOT NULL,
    description TEXT NULL,
    replacement TEXT NULL,
    statusReason TEXT NULL,
    durationMs REAL NULL,
    testsCompleted REAL NULL,
    isStatic INTEGER NULL
);

CREATE TABLE mutant_covered_by (
    mutantId TEXT NOT NULL,
    testId TEXT NOT NULL,
    testName TEXT NULL
);

CREATE TABLE mutant_killed_by (
    mutantId TEXT NOT NULL,
    testId TEXT NOT NULL,
    testName TEXT NULL
);
"""


def check_export_options(out_dir: str | os.PathLike[str] | None, mode: str) -> str:
    """Validate the destination and mode; return the mode in lower case."""
    if not out_dir or not str(out_dir).strip():
        raise InvalidArgumentsError("Export requires --out <dir>.")
    normalized_mode = mode.lower()
    if normalized_mode not in EXPORT_MODES:
        raise InvalidArgumentsError(f"Unknown export mode: {mode}")
    return normalized_mode


def _prepare_destination(out_dir: Path, overwrite: bool) -> None:
    if out_dir.exists() or out_dir.is_symlink():
        if not overwrite:
            raise ExportExistsError(f"Export destination exists: {out_dir}")
        if out_dir.is_dir() and not out_dir.is_symlink():
            shutil.rmtree(out_dir)
        else:
            out_dir.unlink()
        log.debug("Removed existing export destination %s", out_dir)
    out_dir.mkdir(parents=True)


def write_json(path: Path, value: dict[str, Any]) -> None:
    with open(path, "w", encoding="utf-8", newline="\n") as f:
        f.write(to_json(value))


def write_jsonl(path: Path, records: Iterable[dict[str, Any]]) -> int:
    count = 0
    with open(path, "w", encoding="utf-8", newline="\n") as f:
        for record in records:
            f.write(to_json(record))
            f.write("\n")
            count += 1
    return count


def export_jsonl(data: ReportData, out_dir: Path) -> None:
    write_json(out_dir / SUMMARY_FILE, data.summary.as_dict())
    n_files = write_jsonl(out_dir / FILES_FILE, (f.as_dict() for f in data.files))
    n_mutants = write_jsonl(out_dir / MUTANTS_FILE, (m.as_dict() for m in data.mutants))
    log.info("Wrote %d files and %d mutants to %s", n_files, n_mutants, out_dir)


def _insert_sql(table: str, columns: list[str]) -> str:
    placeholders = ", ".join("?" for _ in columns)
    return f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})"


def _summary_row(summary: RunSummary) -> tuple[Any, ...]:
    perf = summary.performance
    framework = summary.framework
    system = summary.system
    return (
        summary.schema_version,
        summary.thresholds_high,
        summary.thresholds_low,
        summary.total_files,
        summary.total_mutants,
        *(summary.status_counts.get(s) for s in STATUSES),
        summary.mutation_score.percent,
        summary.mutation_score.numerator_killed,
        summary.mutation_score.denominator_effective,
        perf.setup if perf else None,
        perf.initial_run if perf else None,
        perf.mutation if perf else None,
        framework.name if framework else None,
        framework.version if framework else None,
        (1 if system.ci else 0) if system else None,
    )


def _file_row(file: FileSummary) -> tuple[Any, ...]:
    return (
        file.file_path,
        file.language,
        file.mutation_score,
        *(file.status_counts.get(s) for s in STATUSES),
        file.total_mutants,
    )


def _mutant_row(mutant: MutantRecord) -> tuple[Any, ...]:
    loc = mutant.location
    return (
        mutant.id,
        mutant.file_path,
        mutant.language,
        loc.start_line,
        loc.start_column,
        loc.end_line,
        loc.end_column,
        mutant.mutator,
        mutant.status,
        mutant.description,
        mutant.replacement,
        mutant.status_reason,
        mutant.duration_ms,
        mutant.tests_completed,
        None if mutant.is_static is None else int(mutant.is_static),
    )


def _test_rows(
    mutants: Iterable[MutantRecord], selector: Callable[[MutantRecord], list[TestRef]]
) -> Iterable[tuple[str, str, str | None]]:
    for mutant in mutants:
        for test in selector(mutant):
            yield (mutant.id, test.id, test.name)


_SUMMARY_COLUMNS = [
    "schemaVersion",
    "thresholdsHigh",
    "thresholdsLow",
    "totalFiles",
    "totalMutants",
    *_STATUS_COLUMNS,
    "mutationScorePercent",
    "mutationScoreNumeratorKilled",
    "mutationScoreDenominatorEffective",
    "performanceSetup",
    "performanceInitialRun",
    "performanceMutation",
    "frameworkName",
    "frameworkVersion",
    "systemCi",
]
_FILE_COLUMNS = ["filePath", "language", "mutationScore", *_STATUS_COLUMNS, "totalMutants"]
_MUTANT_COLUMNS = [
    "id",
    "filePath",
    "language",
    "startLine",
    "startColumn",
    "endLine",
    "endColumn",
    "mutator",
    "status",
    "description",
    "replacement",
    "statusReason",
    "durationMs",
    "testsCompleted",
    "isStatic",
]
_TEST_COLUMNS = ["mutantId", "testId", "testName"]


def export_sqlite(data: ReportData, db_path: Path) -> None:
    """Write the five-table snapshot.

    The schema is created before the transaction starts; if any insert
    fails, no rows are kept but the database file and its empty tables are.
    """
    # isolation_level=None: transactions are issued explicitly below.
    with contextlib.closing(sqlite3.connect(str(db_path), isolation_level=None)) as con:
        con.executescript(SCHEMA)
        con.execute("BEGIN")
        try:
            con.execute(_insert_sql("summary", _SUMMARY_COLUMNS), _summary_row(data.summary))
            con.executemany(_insert_sql("files", _FILE_COLUMNS), map(_file_row, data.files))
            con.executemany(
                _insert_sql("mutants", _MUTANT_COLUMNS), map(_mutant_row, data.mutants)
            )
            con.executemany(
                _insert_sql("mutant_covered_by", _TEST_COLUMNS),
                _test_rows(data.mutants, lambda m: m.covered_by),
            )
            con.executemany(
                _insert_sql("mutant_killed_by", _TEST_COLUMNS),
                _test_rows(data.mutants, lambda m: m.killed_by),
            )
        except BaseException:
            con.execute("ROLLBACK")
            raise
        con.execute("COMMIT")
    log.info("Wrote SQLite snapshot %s", db_path)


def export_report(
    data: ReportData,
    out_dir: str | os.PathLike[str] | None,
    mode: str = "jsonl",
    overwrite: bool = False,
) -> Path:
    """Export report data into ``out_dir`` and return the directory path."""
    normalized_mode = check_export_options(out_dir, mode)

    out_path = Path(out_dir)
    _prepare_destination(out_path, overwrite)
    export_jsonl(data, out_path)
    if normalized_mode == "sqlite":
        export_sqlite(data, out_path / SQLITE_FILE)
    return out_path
