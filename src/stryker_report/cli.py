"""Command-line entry point: ``stryker-report``."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence

from stryker_report.discovery import resolve_report_path
from stryker_report.errors import ExitCode, InvalidArgumentsError, ReportAgentError
from stryker_report.exporter import check_export_options, export_report
from stryker_report.normalizer import load_report_data
from stryker_report.output import (
    format_files_table,
    format_mutant_text,
    format_mutants_table,
    format_summary_text,
    to_json,
)
from stryker_report.query import (
    FILE_SORT_KEYS,
    FileQuery,
    MutantQuery,
    get_mutant,
    normalize_statuses,
    query_files,
    query_mutants,
)

log = logging.getLogger(__name__)


def _non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}") from None
    if number < 0:
        raise argparse.ArgumentTypeError("must be a non-negative integer")
    return number


def _ensure_format(fmt: str, allowed: tuple[str, ...]) -> str:
    lowered = fmt.lower()
    if lowered not in allowed:
        raise InvalidArgumentsError(f"Unknown format: {fmt}")
    return lowered


def _emit(text: str) -> None:
    sys.stdout.write(text)
    sys.stdout.write("\n")


def _run_summary(args: argparse.Namespace) -> int:
    fmt = _ensure_format(args.format, ("json", "text"))
    data = load_report_data(resolve_report_path(args.report))

    if fmt == "json":
        _emit(to_json(data.summary.as_dict(), args.pretty))
    else:
        _emit(format_summary_text(data.summary))
    return ExitCode.SUCCESS


def _run_files(args: argparse.Namespace) -> int:
    fmt = _ensure_format(args.format, ("json", "table"))
    query = FileQuery(
        statuses=normalize_statuses(args.status),
        sort=args.sort,
        limit=args.limit,
        offset=args.offset,
    )
    data = load_report_data(resolve_report_path(args.report))
    files = query_files(data.files, query)

    if fmt == "json":
        _emit(to_json([f.as_dict() for f in files], args.pretty))
    else:
        _emit(format_files_table(files))
    return ExitCode.SUCCESS


def _run_mutants(args: argparse.Namespace) -> int:
    fmt = _ensure_format(args.format, ("json", "table"))
    query = MutantQuery(
        statuses=normalize_statuses(args.status),
        file_patterns=args.file,
        mutators=args.mutator,
        limit=args.limit,
        offset=args.offset,
    )
    data = load_report_data(resolve_report_path(args.report))
    mutants = query_mutants(data.mutants, query)

    if fmt == "json":
        _emit(to_json([m.as_dict() for m in mutants], args.pretty))
    else:
        _emit(format_mutants_table(mutants))
    return ExitCode.SUCCESS


def _run_mutant_get(args: argparse.Namespace) -> int:
    fmt = _ensure_format(args.format, ("json", "text"))
    data = load_report_data(resolve_report_path(args.report))
    response = get_mutant(data, args.id)

    if fmt == "json":
        _emit(to_json(response.as_dict(), args.pretty))
    else:
        _emit(format_mutant_text(response))
    return ExitCode.SUCCESS


def _run_export(args: argparse.Namespace) -> int:
    check_export_options(args.out, args.mode)
    data = load_report_data(resolve_report_path(args.report))
    export_report(data, args.out, args.mode, args.overwrite)
    return ExitCode.SUCCESS


def _missing_command(args: argparse.Namespace) -> int:
    raise InvalidArgumentsError("Missing command.")


def _missing_mutant_command(args: argparse.Namespace) -> int:
    raise InvalidArgumentsError("Unknown mutant command.")


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--report", default=None, help="Path to mutation-report.json")
    common.add_argument(
        "--pretty", action="store_true", default=False, help="Pretty-print JSON output"
    )

    parser = argparse.ArgumentParser(
        prog="stryker-report",
        description="Query and export Stryker mutation reports.",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", default=False, help="Enable debug logging"
    )
    parser.set_defaults(handler=_missing_command)
    commands = parser.add_subparsers(dest="command", metavar="command")

    summary = commands.add_parser("summary", parents=[common], help="Summarize the report")
    summary.add_argument("--format", default="json", help="Output format: json or text")
    summary.set_defaults(handler=_run_summary)

    files = commands.add_parser("files", parents=[common], help="List files")
    files.add_argument("--format", default="json", help="Output format: json or table")
    files.add_argument(
        "--sort", default="path", help=f"Sort by: {', '.join(FILE_SORT_KEYS)}"
    )
    files.add_argument(
        "--status", nargs="+", action="extend", default=[], help="Filter by status"
    )
    files.add_argument("--limit", type=_non_negative_int, default=None, help="Max files")
    files.add_argument("--offset", type=_non_negative_int, default=0, help="Skip N files")
    files.set_defaults(handler=_run_files)

    mutants = commands.add_parser("mutants", parents=[common], help="List mutants")
    mutants.add_argument("--format", default="json", help="Output format: json or table")
    mutants.add_argument(
        "--status", nargs="+", action="extend", default=[], help="Filter by status"
    )
    mutants.add_argument(
        "--file", nargs="+", action="extend", default=[], help="Filter by file path glob"
    )
    mutants.add_argument(
        "--mutator", nargs="+", action="extend", default=[], help="Filter by mutator name"
    )
    mutants.add_argument("--limit", type=_non_negative_int, default=None, help="Max mutants")
    mutants.add_argument("--offset", type=_non_negative_int, default=0, help="Skip N mutants")
    mutants.set_defaults(handler=_run_mutants)

    mutant = commands.add_parser("mutant", help="Single-mutant commands")
    mutant.set_defaults(handler=_missing_mutant_command)
    mutant_commands = mutant.add_subparsers(dest="mutant_command", metavar="command")
    get = mutant_commands.add_parser("get", parents=[common], help="Get a mutant by id")
    get.add_argument("id", help="Mutant id")
    get.add_argument("--format", default="json", help="Output format: json or text")
    get.set_defaults(handler=_run_mutant_get)

    export = commands.add_parser("export", help="Export to jsonl or sqlite")
    export.add_argument("--report", default=None, help="Path to mutation-report.json")
    export.add_argument("--out", default=None, help="Output directory")
    export.add_argument("--mode", default="jsonl", help="Export mode: jsonl or sqlite")
    export.add_argument(
        "--overwrite", action="store_true", default=False, help="Overwrite existing output"
    )
    export.set_defaults(handler=_run_export)

    return parser


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:
        # argparse reports usage errors with exit status 2
        return exc.code if isinstance(exc.code, int) else ExitCode.INVALID_ARGUMENTS

    _configure_logging(args.verbose)

    try:
        return int(args.handler(args))
    except ReportAgentError as exc:
        print(exc.message, file=sys.stderr)
        return int(exc.exit_code)
    except Exception as exc:
        log.debug("Unexpected error", exc_info=True)
        print(f"Unexpected error: {exc}", file=sys.stderr)
        return int(ExitCode.UNEXPECTED)


if __name__ == "__main__":
    sys.exit(main())
