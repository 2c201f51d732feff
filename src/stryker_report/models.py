"""Data models for raw and normalized mutation reports."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from stryker_report.errors import ReportParseError

# Canonical status names, in serialization order
STATUSES: tuple[str, ...] = (
    "Killed",
    "Survived",
    "NoCoverage",
    "CompileError",
    "RuntimeError",
    "Timeout",
    "Ignored",
    "Pending",
)

# Statuses that enter the mutation score denominator
EFFECTIVE_STATUSES: frozenset[str] = frozenset(
    {"Killed", "Survived", "Timeout", "NoCoverage", "CompileError", "RuntimeError"}
)

_STATUS_BY_FOLDED: dict[str, str] = {s.lower(): s for s in STATUSES}


def ordinal_key(value: str) -> bytes:
    """Sort key comparing strings by UTF-16 code unit, as .NET ordinal order does."""
    return value.encode("utf-16-be", "surrogatepass")


def is_valid_status(value: str | None) -> bool:
    return value is not None and value in STATUSES


def normalize_status(value: str) -> str | None:
    """Return the canonical spelling of a status name, or None if unknown."""
    return _STATUS_BY_FOLDED.get(value.lower())


# ---------------------------------------------------------------------------
# Raw report, as read from mutation-report.json
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RawPosition:
    line: int | None = None
    column: int | None = None


@dataclass(frozen=True)
class RawLocation:
    start: RawPosition | None = None
    end: RawPosition | None = None


@dataclass(frozen=True)
class RawMutant:
    id: str | None = None
    mutator_name: str | None = None
    status: str | None = None
    location: RawLocation | None = None
    description: str | None = None
    replacement: str | None = None
    status_reason: str | None = None
    duration: float | None = None
    tests_completed: float | None = None
    covered_by: list[str] | None = None
    killed_by: list[str] | None = None
    static: bool | None = None


@dataclass(frozen=True)
class RawFile:
    language: str | None = None
    source: str | None = None
    mutants: list[RawMutant | None] | None = None


@dataclass(frozen=True)
class RawTest:
    id: str | None = None
    name: str | None = None


@dataclass(frozen=True)
class RawTestFile:
    source: str | None = None
    tests: list[RawTest | None] | None = None


@dataclass(frozen=True)
class RawThresholds:
    high: int | None = None
    low: int | None = None


@dataclass(frozen=True)
class RawPerformance:
    setup: float | None = None
    initial_run: float | None = None
    mutation: float | None = None


@dataclass(frozen=True)
class RawBranding:
    homepage_url: str | None = None
    image_url: str | None = None


@dataclass(frozen=True)
class RawFramework:
    name: str | None = None
    version: str | None = None
    branding: RawBranding | None = None


@dataclass(frozen=True)
class RawSystem:
    ci: bool | None = None
    os_platform: str | None = None
    has_os: bool = False
    cpu_logical_cores: float | None = None
    has_cpu: bool = False
    ram_total: float | None = None
    has_ram: bool = False


@dataclass(frozen=True)
class RawReport:
    """A complete mutation report document."""

    schema_version: str | None = None
    thresholds: RawThresholds | None = None
    files: dict[str, RawFile | None] | None = None
    test_files: dict[str, RawTestFile | None] | None = None
    performance: RawPerformance | None = None
    framework: RawFramework | None = None
    system: RawSystem | None = None


# ---------------------------------------------------------------------------
# Normalized records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TestRef:
    """A test id, with its display name when the test catalog has one."""

    __test__ = False  # not a pytest test class

    id: str
    name: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name}


@dataclass(frozen=True)
class MutantLocation:
    start_line: int
    start_column: int
    end_line: int
    end_column: int

    def as_dict(self) -> dict[str, Any]:
        return {
            "startLine": self.start_line,
            "startColumn": self.start_column,
            "endLine": self.end_line,
            "endColumn": self.end_column,
        }


@dataclass(frozen=True)
class MutantRecord:
    """A single mutant, flattened out of its file."""

    id: str
    file_path: str
    language: str
    location: MutantLocation
    mutator: str
    status: str
    description: str | None = None
    replacement: str | None = None
    status_reason: str | None = None
    duration_ms: float | None = None
    tests_completed: float | None = None
    covered_by: list[TestRef] = field(default_factory=list)
    killed_by: list[TestRef] = field(default_factory=list)
    is_static: bool | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "filePath": self.file_path,
            "language": self.language,
            "location": self.location.as_dict(),
            "mutator": self.mutator,
            "status": self.status,
            "description": self.description,
            "replacement": self.replacement,
            "statusReason": self.status_reason,
            "durationMs": self.duration_ms,
            "testsCompleted": self.tests_completed,
            "coveredBy": [t.as_dict() for t in self.covered_by],
            "killedBy": [t.as_dict() for t in self.killed_by],
            "isStatic": self.is_static,
        }


@dataclass
class StatusCounts:
    """Per-status mutant counters."""

    killed: int = 0
    survived: int = 0
    no_coverage: int = 0
    compile_error: int = 0
    runtime_error: int = 0
    timeout: int = 0
    ignored: int = 0
    pending: int = 0

    _ATTRS = {
        "Killed": "killed",
        "Survived": "survived",
        "NoCoverage": "no_coverage",
        "CompileError": "compile_error",
        "RuntimeError": "runtime_error",
        "Timeout": "timeout",
        "Ignored": "ignored",
        "Pending": "pending",
    }

    def get(self, status: str) -> int:
        return getattr(self, self._ATTRS[status])

    def increment(self, status: str) -> None:
        attr = self._ATTRS.get(status)
        if attr is None:
            raise ReportParseError(f"Unknown status: {status}")
        setattr(self, attr, getattr(self, attr) + 1)

    def add(self, other: StatusCounts) -> None:
        for attr in self._ATTRS.values():
            setattr(self, attr, getattr(self, attr) + getattr(other, attr))

    @property
    def effective(self) -> int:
        return sum(self.get(s) for s in STATUSES if s in EFFECTIVE_STATUSES)

    def as_dict(self) -> dict[str, int]:
        return {status: self.get(status) for status in STATUSES}


@dataclass(frozen=True)
class MutationScore:
    percent: float
    numerator_killed: int
    denominator_effective: int

    def as_dict(self) -> dict[str, Any]:
        return {
            "percent": self.percent,
            "numeratorKilled": self.numerator_killed,
            "denominatorEffective": self.denominator_effective,
        }


@dataclass(frozen=True)
class FileSummary:
    file_path: str
    language: str
    status_counts: StatusCounts
    total_mutants: int
    mutation_score: float

    def as_dict(self) -> dict[str, Any]:
        return {
            "filePath": self.file_path,
            "language": self.language,
            "mutationScore": self.mutation_score,
            "statusCounts": self.status_counts.as_dict(),
            "totalMutants": self.total_mutants,
        }


@dataclass(frozen=True)
class PerformanceMs:
    setup: float
    initial_run: float
    mutation: float

    def as_dict(self) -> dict[str, Any]:
        return {
            "setup": self.setup,
            "initialRun": self.initial_run,
            "mutation": self.mutation,
        }


@dataclass(frozen=True)
class FrameworkInfo:
    name: str
    version: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return {"name": self.name, "version": self.version}


@dataclass(frozen=True)
class SystemInfo:
    ci: bool

    def as_dict(self) -> dict[str, Any]:
        return {"ci": self.ci}


@dataclass(frozen=True)
class RunSummary:
    """Run-level statistics.

    ``performance``, ``framework`` and ``system`` are None when the report
    did not carry them, and are left out of the serialized form.
    """

    schema_version: str
    thresholds_high: int
    thresholds_low: int
    total_files: int
    total_mutants: int
    status_counts: StatusCounts
    mutation_score: MutationScore
    performance: PerformanceMs | None = None
    framework: FrameworkInfo | None = None
    system: SystemInfo | None = None

    def as_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "schemaVersion": self.schema_version,
            "thresholds": {"high": self.thresholds_high, "low": self.thresholds_low},
            "totals": {"files": self.total_files, "mutants": self.total_mutants},
            "statusCounts": self.status_counts.as_dict(),
            "mutationScore": self.mutation_score.as_dict(),
        }
        if self.performance is not None:
            data["performanceMs"] = self.performance.as_dict()
        if self.framework is not None:
            data["framework"] = self.framework.as_dict()
        if self.system is not None:
            data["system"] = self.system.as_dict()
        return data


@dataclass(frozen=True)
class MutantContext:
    file_path: str
    language: str
    source: str
    location: MutantLocation

    def as_dict(self) -> dict[str, Any]:
        return {
            "filePath": self.file_path,
            "language": self.language,
            "source": self.source,
            "mutantLocation": self.location.as_dict(),
        }


@dataclass(frozen=True)
class MutantGetResponse:
    mutant: MutantRecord
    context: MutantContext

    def as_dict(self) -> dict[str, Any]:
        return {"mutant": self.mutant.as_dict(), "context": self.context.as_dict()}


@dataclass(frozen=True)
class ReportData:
    """Everything derived from one report, built once per invocation."""

    report: RawReport
    mutants: list[MutantRecord]
    mutants_by_id: dict[str, MutantRecord]
    files: list[FileSummary]
    summary: RunSummary
    test_index: dict[str, str | None]
