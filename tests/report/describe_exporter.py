"""Tests for stryker_report.exporter — JSONL and SQLite snapshots."""

from __future__ import annotations

import json
import sqlite3
from contextlib import closing
from typing import Any

import pytest

from stryker_report.errors import ExportExistsError, InvalidArgumentsError
from stryker_report.exporter import (
    FILES_FILE,
    MUTANTS_FILE,
    SQLITE_FILE,
    SUMMARY_FILE,
    check_export_options,
    export_report,
    export_sqlite,
    write_jsonl,
)
from stryker_report.loader import parse_report
from stryker_report.normalizer import normalize


def _make_mutant(mutant_id: str, status: str = "Killed", **extra) -> dict[str, Any]:
    mutant: dict[str, Any] = {
        "id": mutant_id,
        "mutatorName": "Equality",
        "status": status,
        "location": {"start": {"line": 1, "column": 1}, "end": {"line": 1, "column": 4}},
    }
    mutant.update(extra)
    return mutant


def _make_data(files: dict[str, Any] | None = None, **extra):
    document: dict[str, Any] = {
        "schemaVersion": "1",
        "thresholds": {"high": 80, "low": 60},
        "files": files
        if files is not None
        else {
            "src/a.cs": {
                "language": "cs",
                "mutants": [
                    _make_mutant("1", coveredBy=["t1", "t2"], killedBy=["t1"], static=True, duration=3),
                    _make_mutant("2", "Survived"),
                ],
            },
            "src/b.cs": {"language": "cs", "mutants": [_make_mutant("3", "NoCoverage")]},
        },
        "testFiles": {"t.cs": {"tests": [{"id": "t1", "name": "Adds"}]}},
    }
    document.update(extra)
    return normalize(parse_report(document))


def _read_jsonl(path) -> list[dict[str, Any]]:
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


def _query(db_path, sql: str) -> list[tuple]:
    with closing(sqlite3.connect(str(db_path))) as con:
        return con.execute(sql).fetchall()


def describe_write_jsonl():
    def it_writes_one_compact_object_per_line(tmp_path):
        path = tmp_path / "out.jsonl"
        count = write_jsonl(path, [{"a": 1}, {"b": [1, 2]}])
        assert count == 2
        assert path.read_bytes() == b'{"a":1}\n{"b":[1,2]}\n'


def describe_check_export_options():
    def it_returns_the_lower_cased_mode():
        assert check_export_options("out", "SQLite") == "sqlite"

    def it_rejects_missing_destination_before_mode():
        with pytest.raises(InvalidArgumentsError, match="Export requires --out <dir>."):
            check_export_options("", "csv")

    def it_rejects_unknown_modes():
        with pytest.raises(InvalidArgumentsError, match="Unknown export mode: csv"):
            check_export_options("out", "csv")


def describe_export_report():
    def it_writes_the_jsonl_snapshot(tmp_path):
        out = tmp_path / "export"
        result = export_report(_make_data(), out)
        assert result == out
        assert sorted(p.name for p in out.iterdir()) == [FILES_FILE, MUTANTS_FILE, SUMMARY_FILE]

        summary = json.loads((out / SUMMARY_FILE).read_text(encoding="utf-8"))
        assert summary["totals"] == {"files": 2, "mutants": 3}
        assert [f["filePath"] for f in _read_jsonl(out / FILES_FILE)] == ["src/a.cs", "src/b.cs"]

    def it_round_trips_mutant_records(tmp_path):
        data = _make_data()
        out = tmp_path / "export"
        export_report(data, out)
        assert _read_jsonl(out / MUTANTS_FILE) == [m.as_dict() for m in data.mutants]

    def it_creates_missing_parent_directories(tmp_path):
        out = tmp_path / "a" / "b" / "export"
        export_report(_make_data(), out)
        assert (out / SUMMARY_FILE).is_file()

    def it_refuses_an_existing_directory(tmp_path):
        out = tmp_path / "export"
        out.mkdir()
        with pytest.raises(ExportExistsError, match="Export destination exists"):
            export_report(_make_data(), out)

    def it_refuses_an_existing_file(tmp_path):
        out = tmp_path / "export"
        out.write_text("x", encoding="utf-8")
        with pytest.raises(ExportExistsError):
            export_report(_make_data(), out)
        assert out.read_text(encoding="utf-8") == "x"

    def it_replaces_an_existing_directory_with_overwrite(tmp_path):
        out = tmp_path / "export"
        out.mkdir()
        (out / "stale.txt").write_text("old", encoding="utf-8")
        export_report(_make_data(), out, overwrite=True)
        assert not (out / "stale.txt").exists()
        assert (out / MUTANTS_FILE).is_file()

    def it_replaces_an_existing_file_with_overwrite(tmp_path):
        out = tmp_path / "export"
        out.write_text("x", encoding="utf-8")
        export_report(_make_data(), out, overwrite=True)
        assert out.is_dir()

    def it_requires_an_output_directory():
        with pytest.raises(InvalidArgumentsError, match="Export requires --out"):
            export_report(_make_data(), "  ")
        with pytest.raises(InvalidArgumentsError, match="Export requires --out"):
            export_report(_make_data(), None)

    def it_rejects_unknown_modes(tmp_path):
        with pytest.raises(InvalidArgumentsError, match="Unknown export mode: csv"):
            export_report(_make_data(), tmp_path / "export", mode="csv")
        assert not (tmp_path / "export").exists()

    def it_accepts_mode_in_any_case(tmp_path):
        out = tmp_path / "export"
        export_report(_make_data(), out, mode="SQLite")
        assert (out / SQLITE_FILE).is_file()
        assert (out / MUTANTS_FILE).is_file()


def describe_export_sqlite():
    def it_creates_the_five_tables(tmp_path):
        db = tmp_path / SQLITE_FILE
        export_sqlite(_make_data(), db)
        tables = {row[0] for row in _query(db, "SELECT name FROM sqlite_master WHERE type = 'table'")}
        assert tables == {"summary", "files", "mutants", "mutant_covered_by", "mutant_killed_by"}

    def it_writes_one_summary_row(tmp_path):
        db = tmp_path / SQLITE_FILE
        export_sqlite(_make_data(), db)
        rows = _query(
            db,
            "SELECT totalFiles, totalMutants, statusKilled, statusSurvived, statusNoCoverage,"
            " mutationScoreDenominatorEffective, performanceSetup, frameworkName, systemCi"
            " FROM summary",
        )
        assert rows == [(2, 3, 1, 1, 1, 3, None, None, None)]

    def it_stores_metadata_when_present(tmp_path):
        db = tmp_path / SQLITE_FILE
        data = _make_data(
            performance={"setup": 1, "initialRun": 2, "mutation": 3},
            framework={"name": "Stryker.NET", "version": "4.0"},
            system={"ci": True},
        )
        export_sqlite(data, db)
        rows = _query(
            db,
            "SELECT performanceSetup, performanceMutation, frameworkName, frameworkVersion, systemCi"
            " FROM summary",
        )
        assert rows == [(1.0, 3.0, "Stryker.NET", "4.0", 1)]

    def it_writes_file_and_mutant_rows(tmp_path):
        db = tmp_path / SQLITE_FILE
        export_sqlite(_make_data(), db)
        assert _query(db, "SELECT filePath, totalMutants FROM files ORDER BY filePath") == [
            ("src/a.cs", 2),
            ("src/b.cs", 1),
        ]
        assert _query(db, "SELECT id, status, isStatic, durationMs FROM mutants ORDER BY id") == [
            ("1", "Killed", 1, 3.0),
            ("2", "Survived", None, None),
            ("3", "NoCoverage", None, None),
        ]

    def it_writes_test_link_rows_with_nullable_names(tmp_path):
        db = tmp_path / SQLITE_FILE
        export_sqlite(_make_data(), db)
        assert _query(db, "SELECT mutantId, testId, testName FROM mutant_covered_by") == [
            ("1", "t1", "Adds"),
            ("1", "t2", None),
        ]
        assert _query(db, "SELECT mutantId, testId, testName FROM mutant_killed_by") == [
            ("1", "t1", "Adds"),
        ]

    def it_rolls_back_every_row_on_failure(tmp_path):
        db = tmp_path / SQLITE_FILE
        data = _make_data(
            files={
                "a.cs": {"language": "cs", "mutants": [_make_mutant("dup")]},
                "b.cs": {"language": "cs", "mutants": [_make_mutant("dup")]},
            }
        )
        with pytest.raises(sqlite3.IntegrityError):
            export_sqlite(data, db)
        assert db.is_file()
        for table in ("summary", "files", "mutants"):
            assert _query(db, f"SELECT COUNT(*) FROM {table}") == [(0,)]
