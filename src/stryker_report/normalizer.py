"""Flatten a raw report into indexed records and score statistics."""

from __future__ import annotations

import logging
from pathlib import Path

from stryker_report.loader import load_report
from stryker_report.models import (
    FileSummary,
    FrameworkInfo,
    MutantLocation,
    MutantRecord,
    MutationScore,
    PerformanceMs,
    RawMutant,
    RawReport,
    RawTestFile,
    ReportData,
    RunSummary,
    StatusCounts,
    SystemInfo,
    TestRef,
    ordinal_key,
)

log = logging.getLogger(__name__)


def compute_mutation_score(counts: StatusCounts) -> MutationScore:
    """Killed over effective mutants, as a percentage.

    Ignored and Pending mutants are not effective.  A report with no
    effective mutants scores 0.
    """
    denominator = counts.effective
    numerator = counts.killed
    percent = 0.0 if denominator == 0 else numerator / denominator * 100.0
    return MutationScore(
        percent=percent, numerator_killed=numerator, denominator_effective=denominator
    )


def build_test_index(test_files: dict[str, RawTestFile | None] | None) -> dict[str, str | None]:
    """Map test ids to names; the first occurrence in ordinal key order wins."""
    index: dict[str, str | None] = {}
    if not test_files:
        return index

    for key in sorted(test_files, key=ordinal_key):
        test_file = test_files[key]
        if test_file is None or test_file.tests is None:
            continue
        for test in test_file.tests:
            if test is None or test.id is None:
                continue
            if test.id not in index:
                index[test.id] = test.name
    return index


def _resolve_tests(ids: list[str] | None, test_index: dict[str, str | None]) -> list[TestRef]:
    if not ids:
        return []
    return [TestRef(id=test_id, name=test_index.get(test_id) or None) for test_id in ids]


def _location_of(mutant: RawMutant) -> MutantLocation | None:
    loc = mutant.location
    if loc is None or loc.start is None or loc.end is None:
        return None
    coords = (loc.start.line, loc.start.column, loc.end.line, loc.end.column)
    if any(c is None for c in coords):
        return None
    return MutantLocation(*coords)  # type: ignore[arg-type]


def build_mutant_records(
    report: RawReport, test_index: dict[str, str | None]
) -> list[MutantRecord]:
    """Flatten every located mutant, files in ordinal order, mutants in array order."""
    records: list[MutantRecord] = []
    if not report.files:
        return records

    for file_path in sorted(report.files, key=ordinal_key):
        file = report.files[file_path]
        if file is None or file.mutants is None:
            continue
        for mutant in file.mutants:
            if mutant is None:
                continue
            location = _location_of(mutant)
            if location is None:
                # Still counted by build_file_summaries.
                log.debug("Skipping mutant %s in %s: incomplete location", mutant.id, file_path)
                continue
            records.append(
                MutantRecord(
                    id=mutant.id or "",
                    file_path=file_path,
                    language=file.language or "",
                    location=location,
                    mutator=mutant.mutator_name or "",
                    status=mutant.status or "",
                    description=mutant.description,
                    replacement=mutant.replacement,
                    status_reason=mutant.status_reason,
                    duration_ms=mutant.duration,
                    tests_completed=mutant.tests_completed,
                    covered_by=_resolve_tests(mutant.covered_by, test_index),
                    killed_by=_resolve_tests(mutant.killed_by, test_index),
                    is_static=mutant.static,
                )
            )
    return records


def build_mutant_index(mutants: list[MutantRecord]) -> dict[str, MutantRecord]:
    """Index mutants by id.  Duplicate ids keep the first record."""
    index: dict[str, MutantRecord] = {}
    for mutant in mutants:
        if mutant.id in index:
            log.debug(
                "Duplicate mutant id %s in %s (first seen in %s)",
                mutant.id,
                mutant.file_path,
                index[mutant.id].file_path,
            )
            continue
        index[mutant.id] = mutant
    return index


def build_file_summaries(report: RawReport) -> list[FileSummary]:
    summaries: list[FileSummary] = []
    if not report.files:
        return summaries

    for file_path in sorted(report.files, key=ordinal_key):
        file = report.files[file_path]
        if file is None or file.mutants is None:
            continue

        counts = StatusCounts()
        for mutant in file.mutants:
            if mutant is None or mutant.status is None:
                continue
            counts.increment(mutant.status)

        summaries.append(
            FileSummary(
                file_path=file_path,
                language=file.language or "",
                status_counts=counts,
                total_mutants=len(file.mutants),
                mutation_score=compute_mutation_score(counts).percent,
            )
        )
    return summaries


def build_run_summary(report: RawReport, files: list[FileSummary]) -> RunSummary:
    counts = StatusCounts()
    for file in files:
        counts.add(file.status_counts)

    thresholds = report.thresholds
    performance = None
    if report.performance is not None:
        perf = report.performance
        performance = PerformanceMs(
            setup=perf.setup or 0.0,
            initial_run=perf.initial_run or 0.0,
            mutation=perf.mutation or 0.0,
        )

    framework = None
    if report.framework is not None:
        framework = FrameworkInfo(
            name=report.framework.name or "", version=report.framework.version
        )

    system = None
    if report.system is not None and report.system.ci is not None:
        system = SystemInfo(ci=report.system.ci)

    return RunSummary(
        schema_version=report.schema_version or "",
        thresholds_high=(thresholds.high or 0) if thresholds else 0,
        thresholds_low=(thresholds.low or 0) if thresholds else 0,
        total_files=len(files),
        total_mutants=sum(f.total_mutants for f in files),
        status_counts=counts,
        mutation_score=compute_mutation_score(counts),
        performance=performance,
        framework=framework,
        system=system,
    )


def normalize(report: RawReport) -> ReportData:
    """Build every derived structure for a validated report."""
    test_index = build_test_index(report.test_files)
    mutants = build_mutant_records(report, test_index)
    files = build_file_summaries(report)
    return ReportData(
        report=report,
        mutants=mutants,
        mutants_by_id=build_mutant_index(mutants),
        files=files,
        summary=build_run_summary(report, files),
        test_index=test_index,
    )


def load_report_data(path: str | Path) -> ReportData:
    return normalize(load_report(path))
