"""Error kinds and process exit codes."""

from __future__ import annotations

from enum import IntEnum


class ExitCode(IntEnum):
    SUCCESS = 0
    INVALID_ARGUMENTS = 2
    REPORT_NOT_FOUND = 3
    REPORT_PARSE_ERROR = 4
    ENTITY_NOT_FOUND = 5
    EXPORT_EXISTS = 6
    UNEXPECTED = 7


class ReportAgentError(Exception):
    """An expected failure that maps onto a specific exit code."""

    exit_code: ExitCode = ExitCode.UNEXPECTED

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidArgumentsError(ReportAgentError):
    exit_code = ExitCode.INVALID_ARGUMENTS


class ReportNotFoundError(ReportAgentError):
    exit_code = ExitCode.REPORT_NOT_FOUND


class ReportParseError(ReportAgentError):
    exit_code = ExitCode.REPORT_PARSE_ERROR


class EntityNotFoundError(ReportAgentError):
    exit_code = ExitCode.ENTITY_NOT_FOUND


class ExportExistsError(ReportAgentError):
    exit_code = ExitCode.EXPORT_EXISTS
