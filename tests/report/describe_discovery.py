"""Tests for stryker_report.discovery — locating mutation-report.json."""

import pytest

from stryker_report.discovery import resolve_report_path
from stryker_report.errors import ReportNotFoundError


def _touch(path):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("{}", encoding="utf-8")
    return path


def describe_explicit_path():
    def it_returns_an_existing_file(tmp_path):
        report = _touch(tmp_path / "custom.json")
        assert resolve_report_path(str(report)) == report

    def it_resolves_relative_paths_against_cwd(tmp_path):
        report = _touch(tmp_path / "out" / "r.json")
        assert resolve_report_path("out/r.json", cwd=tmp_path) == report

    def it_does_not_fall_back_when_missing(tmp_path):
        _touch(tmp_path / "mutation-report.json")
        with pytest.raises(ReportNotFoundError, match="Report not found: nope.json"):
            resolve_report_path("nope.json", cwd=tmp_path)

    def it_treats_blank_path_as_absent(tmp_path):
        report = _touch(tmp_path / "mutation-report.json")
        assert resolve_report_path("  ", cwd=tmp_path) == report


def describe_default_search():
    def it_prefers_report_in_cwd(tmp_path):
        first = _touch(tmp_path / "mutation-report.json")
        _touch(tmp_path / "reports" / "mutation-report.json")
        assert resolve_report_path(cwd=tmp_path) == first

    def it_falls_back_to_reports_dir(tmp_path):
        report = _touch(tmp_path / "reports" / "mutation-report.json")
        _touch(tmp_path / "StrykerOutput" / "run" / "reports" / "mutation-report.json")
        assert resolve_report_path(cwd=tmp_path) == report

    def it_searches_stryker_output_last(tmp_path):
        later = _touch(tmp_path / "StrykerOutput" / "2024-02-01" / "reports" / "mutation-report.json")
        earlier = _touch(tmp_path / "StrykerOutput" / "2024-01-01" / "reports" / "mutation-report.json")
        assert resolve_report_path(cwd=tmp_path) == earlier
        assert later != earlier

    def it_ignores_reports_outside_a_reports_dir(tmp_path):
        _touch(tmp_path / "StrykerOutput" / "run" / "mutation-report.json")
        with pytest.raises(ReportNotFoundError, match="Report not found."):
            resolve_report_path(cwd=tmp_path)

    def it_defaults_to_process_cwd(tmp_path, monkeypatch):
        report = _touch(tmp_path / "reports" / "mutation-report.json")
        monkeypatch.chdir(tmp_path)
        assert resolve_report_path().resolve() == report.resolve()

    def it_raises_when_nothing_is_found(tmp_path):
        with pytest.raises(ReportNotFoundError):
            resolve_report_path(cwd=tmp_path)
