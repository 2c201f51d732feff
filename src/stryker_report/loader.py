"""Load and validate mutation-report.json documents.

Property names are matched case-insensitively: an exact key wins, otherwise
the first key that compares equal ignoring case is used.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from stryker_report.errors import ReportParseError
from stryker_report.models import (
    RawBranding,
    RawFile,
    RawFramework,
    RawLocation,
    RawMutant,
    RawPerformance,
    RawPosition,
    RawReport,
    RawSystem,
    RawTest,
    RawTestFile,
    RawThresholds,
    is_valid_status,
)

log = logging.getLogger(__name__)


def _lookup(obj: dict[str, Any], name: str) -> Any:
    if name in obj:
        return obj[name]
    folded = name.lower()
    for key, value in obj.items():
        if key.lower() == folded:
            return value
    return None


def _type_error(where: str, expected: str) -> ReportParseError:
    return ReportParseError(f"Report parse error: {where} must be {expected}.")


def _object(value: Any, where: str) -> dict[str, Any] | None:
    if value is None:
        return None
    if not isinstance(value, dict):
        raise _type_error(where, "an object")
    return value


def _array(value: Any, where: str) -> list[Any] | None:
    if value is None:
        return None
    if not isinstance(value, list):
        raise _type_error(where, "an array")
    return value


def _str(obj: dict[str, Any], name: str, where: str) -> str | None:
    value = _lookup(obj, name)
    if value is None or isinstance(value, str):
        return value
    raise _type_error(f"{where}.{name}", "a string")


def _int(obj: dict[str, Any], name: str, where: str) -> int | None:
    value = _lookup(obj, name)
    if value is None:
        return None
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    raise _type_error(f"{where}.{name}", "an integer")


def _num(obj: dict[str, Any], name: str, where: str) -> float | None:
    value = _lookup(obj, name)
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    raise _type_error(f"{where}.{name}", "a number")


def _bool(obj: dict[str, Any], name: str, where: str) -> bool | None:
    value = _lookup(obj, name)
    if value is None or isinstance(value, bool):
        return value
    raise _type_error(f"{where}.{name}", "a boolean")


def _str_list(obj: dict[str, Any], name: str, where: str) -> list[str] | None:
    values = _array(_lookup(obj, name), f"{where}.{name}")
    if values is None:
        return None
    for value in values:
        if value is not None and not isinstance(value, str):
            raise _type_error(f"{where}.{name}", "an array of strings")
    return list(values)


def _parse_position(value: Any, where: str) -> RawPosition | None:
    obj = _object(value, where)
    if obj is None:
        return None
    return RawPosition(line=_int(obj, "line", where), column=_int(obj, "column", where))


def _parse_location(value: Any, where: str) -> RawLocation | None:
    obj = _object(value, where)
    if obj is None:
        return None
    return RawLocation(
        start=_parse_position(_lookup(obj, "start"), f"{where}.start"),
        end=_parse_position(_lookup(obj, "end"), f"{where}.end"),
    )


def _parse_mutant(value: Any, where: str) -> RawMutant | None:
    obj = _object(value, where)
    if obj is None:
        return None
    return RawMutant(
        id=_str(obj, "id", where),
        mutator_name=_str(obj, "mutatorName", where),
        status=_str(obj, "status", where),
        location=_parse_location(_lookup(obj, "location"), f"{where}.location"),
        description=_str(obj, "description", where),
        replacement=_str(obj, "replacement", where),
        status_reason=_str(obj, "statusReason", where),
        duration=_num(obj, "duration", where),
        tests_completed=_num(obj, "testsCompleted", where),
        covered_by=_str_list(obj, "coveredBy", where),
        killed_by=_str_list(obj, "killedBy", where),
        static=_bool(obj, "static", where),
    )


def _parse_file(value: Any, where: str) -> RawFile | None:
    obj = _object(value, where)
    if obj is None:
        return None
    mutants = _array(_lookup(obj, "mutants"), f"{where}.mutants")
    return RawFile(
        language=_str(obj, "language", where),
        source=_str(obj, "source", where),
        mutants=(
            None
            if mutants is None
            else [_parse_mutant(m, f"{where}.mutants[{i}]") for i, m in enumerate(mutants)]
        ),
    )


def _parse_test_file(value: Any, where: str) -> RawTestFile | None:
    obj = _object(value, where)
    if obj is None:
        return None
    tests = _array(_lookup(obj, "tests"), f"{where}.tests")
    parsed: list[RawTest | None] | None = None
    if tests is not None:
        parsed = []
        for i, test in enumerate(tests):
            test_obj = _object(test, f"{where}.tests[{i}]")
            if test_obj is None:
                parsed.append(None)
                continue
            test_where = f"{where}.tests[{i}]"
            parsed.append(
                RawTest(id=_str(test_obj, "id", test_where), name=_str(test_obj, "name", test_where))
            )
    return RawTestFile(source=_str(obj, "source", where), tests=parsed)


def _parse_framework(value: Any) -> RawFramework | None:
    obj = _object(value, "framework")
    if obj is None:
        return None
    branding_obj = _object(_lookup(obj, "branding"), "framework.branding")
    branding = None
    if branding_obj is not None:
        branding = RawBranding(
            homepage_url=_str(branding_obj, "homepageUrl", "framework.branding"),
            image_url=_str(branding_obj, "imageUrl", "framework.branding"),
        )
    return RawFramework(
        name=_str(obj, "name", "framework"),
        version=_str(obj, "version", "framework"),
        branding=branding,
    )


def _parse_system(value: Any) -> RawSystem | None:
    obj = _object(value, "system")
    if obj is None:
        return None
    os_obj = _object(_lookup(obj, "os"), "system.os")
    cpu_obj = _object(_lookup(obj, "cpu"), "system.cpu")
    ram_obj = _object(_lookup(obj, "ram"), "system.ram")
    return RawSystem(
        ci=_bool(obj, "ci", "system"),
        os_platform=_str(os_obj, "platform", "system.os") if os_obj is not None else None,
        has_os=os_obj is not None,
        cpu_logical_cores=(
            _num(cpu_obj, "logicalCores", "system.cpu") if cpu_obj is not None else None
        ),
        has_cpu=cpu_obj is not None,
        ram_total=_num(ram_obj, "total", "system.ram") if ram_obj is not None else None,
        has_ram=ram_obj is not None,
    )


def parse_report(document: Any) -> RawReport:
    """Build a RawReport from a decoded JSON document without validating it."""
    if document is None:
        raise ReportParseError("Report parse error: empty document.")
    if not isinstance(document, dict):
        raise _type_error("document", "an object")

    thresholds_obj = _object(_lookup(document, "thresholds"), "thresholds")
    thresholds = None
    if thresholds_obj is not None:
        thresholds = RawThresholds(
            high=_int(thresholds_obj, "high", "thresholds"),
            low=_int(thresholds_obj, "low", "thresholds"),
        )

    files_obj = _object(_lookup(document, "files"), "files")
    files = None
    if files_obj is not None:
        files = {
            path: _parse_file(value, f"files[{path}]") for path, value in files_obj.items()
        }

    test_files_obj = _object(_lookup(document, "testFiles"), "testFiles")
    test_files = None
    if test_files_obj is not None:
        test_files = {
            key: _parse_test_file(value, f"testFiles[{key}]")
            for key, value in test_files_obj.items()
        }

    performance_obj = _object(_lookup(document, "performance"), "performance")
    performance = None
    if performance_obj is not None:
        performance = RawPerformance(
            setup=_num(performance_obj, "setup", "performance"),
            initial_run=_num(performance_obj, "initialRun", "performance"),
            mutation=_num(performance_obj, "mutation", "performance"),
        )

    return RawReport(
        schema_version=_str(document, "schemaVersion", "document"),
        thresholds=thresholds,
        files=files,
        test_files=test_files,
        performance=performance,
        framework=_parse_framework(_lookup(document, "framework")),
        system=_parse_system(_lookup(document, "system")),
    )


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


def _validate_location(location: RawLocation | None, mutant_id: str) -> None:
    if location is None or location.start is None or location.end is None:
        raise ReportParseError(f"Mutant missing location: {mutant_id}.")
    start, end = location.start, location.end
    coords = (start.line, start.column, end.line, end.column)
    if any(c is None for c in coords):
        raise ReportParseError(f"Mutant location missing line/column: {mutant_id}.")
    if any(c < 1 for c in coords):  # type: ignore[operator]
        raise ReportParseError(f"Mutant location must be 1-based: {mutant_id}.")


def _validate_id_list(values: list[str] | None, label: str) -> None:
    if values is None:
        return
    for value in values:
        if _blank(value):
            raise ReportParseError(f"Invalid {label} entry.")


def _validate_files(files: dict[str, RawFile | None]) -> None:
    for file_path, file in files.items():
        if file is None:
            raise ReportParseError(f"Report file entry is null: {file_path}.")
        if _blank(file.language):
            raise ReportParseError(f"Report file missing language: {file_path}.")
        if file.mutants is None:
            raise ReportParseError(f"Report file missing mutants: {file_path}.")
        for mutant in file.mutants:
            if mutant is None:
                raise ReportParseError(f"Null mutant entry in file: {file_path}.")
            if _blank(mutant.id):
                raise ReportParseError(f"Mutant missing id in file: {file_path}.")
            if _blank(mutant.mutator_name):
                raise ReportParseError(f"Mutant missing mutatorName: {mutant.id}.")
            if not is_valid_status(mutant.status):
                raise ReportParseError(f"Mutant has invalid status: {mutant.id}.")
            _validate_location(mutant.location, mutant.id)  # type: ignore[arg-type]
            _validate_id_list(mutant.covered_by, f"coveredBy for mutant {mutant.id}")
            _validate_id_list(mutant.killed_by, f"killedBy for mutant {mutant.id}")


def _validate_test_files(test_files: dict[str, RawTestFile | None]) -> None:
    for key, test_file in test_files.items():
        if test_file is None or test_file.tests is None:
            raise ReportParseError(f"Test file missing tests: {key}.")
        for test in test_file.tests:
            if test is None:
                raise ReportParseError(f"Null test entry in test file: {key}.")
            if _blank(test.id) or _blank(test.name):
                raise ReportParseError(f"Test entry missing id or name in: {key}.")


def _validate_metadata(report: RawReport) -> None:
    perf = report.performance
    if perf is not None and None in (perf.setup, perf.initial_run, perf.mutation):
        raise ReportParseError(
            "Performance section must include setup, initialRun, and mutation."
        )

    framework = report.framework
    if framework is not None:
        if _blank(framework.name):
            raise ReportParseError("Framework section must include name.")
        if framework.branding is not None and _blank(framework.branding.homepage_url):
            raise ReportParseError("Framework branding must include homepageUrl.")

    system = report.system
    if system is not None:
        if system.ci is None:
            raise ReportParseError("System section must include ci.")
        if system.has_os and _blank(system.os_platform):
            raise ReportParseError("System os must include platform.")
        if system.has_cpu and system.cpu_logical_cores is None:
            raise ReportParseError("System cpu must include logicalCores.")
        if system.has_ram and system.ram_total is None:
            raise ReportParseError("System ram must include total.")


def validate_report(report: RawReport) -> None:
    """Raise ReportParseError if the report is structurally incomplete."""
    if _blank(report.schema_version):
        raise ReportParseError("Report missing required field: schemaVersion.")

    thresholds = report.thresholds
    if thresholds is None:
        raise ReportParseError("Report missing required field: thresholds.")
    if thresholds.high is None or thresholds.low is None:
        raise ReportParseError("Report thresholds must include high and low.")
    if not (0 <= thresholds.high <= 100 and 0 <= thresholds.low <= 100):
        raise ReportParseError("Report thresholds must be between 0 and 100.")

    if report.files is None:
        raise ReportParseError("Report missing required field: files.")
    _validate_files(report.files)

    if report.test_files is not None:
        _validate_test_files(report.test_files)

    _validate_metadata(report)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON literal: {name}")


def load_report(path: str | Path) -> RawReport:
    """Read, parse and validate a report file.

    ``NaN`` and ``Infinity`` are not JSON and are rejected.
    """
    try:
        text = Path(path).read_text(encoding="utf-8-sig")
        document = json.loads(text, parse_constant=_reject_constant)
    except (ValueError, UnicodeDecodeError) as exc:
        raise ReportParseError(f"Report parse error: {exc}") from exc

    report = parse_report(document)
    validate_report(report)
    log.debug("Loaded report %s (%d files)", path, len(report.files or {}))
    return report
