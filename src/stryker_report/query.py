"""Filtered, sorted and paginated views over normalized report data."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import TypeVar

from stryker_report.errors import EntityNotFoundError, InvalidArgumentsError, ReportParseError
from stryker_report.glob_matcher import compile_globs, matches_any
from stryker_report.models import (
    FileSummary,
    MutantContext,
    MutantGetResponse,
    MutantRecord,
    ReportData,
    normalize_status,
    ordinal_key,
)

T = TypeVar("T")

FILE_SORT_KEYS: tuple[str, ...] = ("path", "score", "survived", "mutants")


@dataclass
class FileQuery:
    """Options for listing files."""

    statuses: list[str] = field(default_factory=list)
    sort: str = "path"
    limit: int | None = None
    offset: int = 0


@dataclass
class MutantQuery:
    """Options for listing mutants."""

    statuses: list[str] = field(default_factory=list)
    file_patterns: list[str] = field(default_factory=list)
    mutators: list[str] = field(default_factory=list)
    limit: int | None = None
    offset: int = 0


def normalize_statuses(values: Iterable[str]) -> list[str]:
    """Map status names onto their canonical spelling, ignoring case."""
    normalized: list[str] = []
    for value in values:
        status = normalize_status(value)
        if status is None:
            raise InvalidArgumentsError(f"Unknown status: {value}")
        normalized.append(status)
    return normalized


def paginate(items: Sequence[T], offset: int = 0, limit: int | None = None) -> list[T]:
    if offset < 0:
        raise InvalidArgumentsError("--offset must be a non-negative integer.")
    if limit is not None and limit < 0:
        raise InvalidArgumentsError("--limit must be a non-negative integer.")
    end = None if limit is None else offset + limit
    return list(items[offset:end])


def _file_matches_status(file: FileSummary, statuses: set[str]) -> bool:
    return any(file.status_counts.get(s) > 0 for s in statuses)


def sort_files(files: Iterable[FileSummary], sort: str = "path") -> list[FileSummary]:
    # Python's sort is stable, so sorting by path first gives the tie-break.
    by_path = sorted(files, key=lambda f: ordinal_key(f.file_path))
    if sort == "path":
        return by_path
    if sort == "score":
        return sorted(by_path, key=lambda f: f.mutation_score, reverse=True)
    if sort == "survived":
        return sorted(by_path, key=lambda f: f.status_counts.survived, reverse=True)
    if sort == "mutants":
        return sorted(by_path, key=lambda f: f.total_mutants, reverse=True)
    raise InvalidArgumentsError(f"Unknown sort option: {sort}")


def query_files(files: Iterable[FileSummary], query: FileQuery | None = None) -> list[FileSummary]:
    query = query or FileQuery()
    statuses = set(normalize_statuses(query.statuses))

    selected = list(files)
    if statuses:
        selected = [f for f in selected if _file_matches_status(f, statuses)]

    return paginate(sort_files(selected, query.sort), query.offset, query.limit)


def sort_mutants(mutants: Iterable[MutantRecord]) -> list[MutantRecord]:
    return sorted(
        mutants,
        key=lambda m: (ordinal_key(m.file_path), m.location.start_line, ordinal_key(m.id)),
    )


def query_mutants(
    mutants: Iterable[MutantRecord], query: MutantQuery | None = None
) -> list[MutantRecord]:
    query = query or MutantQuery()
    statuses = set(normalize_statuses(query.statuses))
    matchers = compile_globs(query.file_patterns)
    mutators = set(query.mutators)

    selected = list(mutants)
    if statuses:
        selected = [m for m in selected if m.status in statuses]
    if matchers:
        selected = [m for m in selected if matches_any(matchers, m.file_path)]
    if mutators:
        selected = [m for m in selected if m.mutator in mutators]

    return paginate(sort_mutants(selected), query.offset, query.limit)


def get_mutant(data: ReportData, mutant_id: str) -> MutantGetResponse:
    """Look up one mutant and the source of the file it belongs to."""
    mutant = data.mutants_by_id.get(mutant_id)
    if mutant is None:
        raise EntityNotFoundError(f"Mutant not found: {mutant_id}")

    files = data.report.files or {}
    if mutant.file_path not in files:
        raise ReportParseError(f"Report missing file for mutant: {mutant.file_path}")
    file = files[mutant.file_path]

    context = MutantContext(
        file_path=mutant.file_path,
        language=(file.language if file else None) or "",
        source=(file.source if file else None) or "",
        location=mutant.location,
    )
    return MutantGetResponse(mutant=mutant, context=context)
