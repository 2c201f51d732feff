"""JSON and plain-text rendering of normalized report data."""

from __future__ import annotations

import json
from typing import Any

from stryker_report.models import (
    STATUSES,
    FileSummary,
    MutantGetResponse,
    MutantRecord,
    RunSummary,
)


def to_json(value: Any, pretty: bool = False) -> str:
    """Serialize to compact JSON, or 2-space indented JSON when ``pretty``.

    Non-finite floats raise ValueError rather than emitting ``NaN``.
    """
    if pretty:
        return json.dumps(value, indent=2, allow_nan=False)
    return json.dumps(value, separators=(",", ":"), allow_nan=False)


def _num(value: float) -> str:
    """Render a number without a trailing ``.0`` for whole values."""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def _opt(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return _num(value)
    return str(value)


def format_summary_text(summary: RunSummary) -> str:
    """Format the run summary as ``Key: value`` lines."""
    lines: list[str] = []
    score = summary.mutation_score

    lines.append(f"SchemaVersion: {summary.schema_version}")
    lines.append(f"Thresholds: high={summary.thresholds_high} low={summary.thresholds_low}")
    lines.append(f"Totals: files={summary.total_files} mutants={summary.total_mutants}")
    lines.append(f"MutationScore: percent={score.percent:.2f}")
    lines.append(
        f"MutationScore: killed={score.numerator_killed} effective={score.denominator_effective}"
    )
    counts = " ".join(f"{s}={summary.status_counts.get(s)}" for s in STATUSES)
    lines.append(f"StatusCounts: {counts}")

    if summary.performance is not None:
        perf = summary.performance
        lines.append(
            f"PerformanceMs: setup={_num(perf.setup)} initialRun={_num(perf.initial_run)} "
            f"mutation={_num(perf.mutation)}"
        )
    if summary.framework is not None:
        lines.append(
            f"Framework: name={summary.framework.name} version={_opt(summary.framework.version)}"
        )
    if summary.system is not None:
        lines.append(f"System: ci={_opt(summary.system.ci)}")

    return "\n".join(lines)


def format_mutant_text(response: MutantGetResponse) -> str:
    """Format a single mutant and its source context."""
    m = response.mutant
    ctx = response.context
    loc = m.location

    def _ids(tests: list) -> str:
        return ", ".join(t.id for t in tests) if tests else "[]"

    lines = [
        f"Id: {m.id}",
        f"Status: {m.status}",
        f"File: {m.file_path}",
        f"Language: {m.language}",
        f"Mutator: {m.mutator}",
        f"Location: {loc.start_line}:{loc.start_column}-{loc.end_line}:{loc.end_column}",
        f"Description: {_opt(m.description)}",
        f"Replacement: {_opt(m.replacement)}",
        f"StatusReason: {_opt(m.status_reason)}",
        f"DurationMs: {_opt(m.duration_ms)}",
        f"TestsCompleted: {_opt(m.tests_completed)}",
        f"IsStatic: {_opt(m.is_static)}",
        f"CoveredBy: {_ids(m.covered_by)}",
        f"KilledBy: {_ids(m.killed_by)}",
        f"ContextFile: {ctx.file_path}",
        f"ContextLanguage: {ctx.language}",
        "Source:",
        ctx.source,
    ]
    return "\n".join(lines)


def format_table(headers: list[str], rows: list[list[str]]) -> str:
    """Left-aligned columns padded to the widest cell, two spaces apart."""
    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))

    def _row(cells: list[str]) -> str:
        return "  ".join(cell.ljust(widths[i]) for i, cell in enumerate(cells))

    lines = [_row(headers), _row(["-" * w for w in widths])]
    lines.extend(_row(row) for row in rows)
    return "\n".join(lines)


def format_files_table(files: list[FileSummary]) -> str:
    rows = [
        [
            f.file_path,
            f.language,
            f"{f.mutation_score:.2f}",
            str(f.total_mutants),
            str(f.status_counts.survived),
        ]
        for f in files
    ]
    return format_table(["Path", "Lang", "Score", "Mutants", "Survived"], rows)


def format_mutants_table(mutants: list[MutantRecord]) -> str:
    rows = [
        [
            m.id,
            m.file_path,
            f"{m.location.start_line}:{m.location.start_column}",
            m.mutator,
            m.status,
        ]
        for m in mutants
    ]
    return format_table(["Id", "File", "Loc", "Mutator", "Status"], rows)
