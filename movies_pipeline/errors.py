"""
Error kinds and exceptions for the Movies Pipeline.

Every component reports failures as an ErrorKind. describe() is the single
place where a kind becomes a user-facing sentence, so messages never carry
raw row content: only field names, rules, line numbers and business keys.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Closed set of failure kinds produced by the pipeline."""

    # File-level
    FILE_NOT_FOUND = "file_not_found"
    FILE_UNREADABLE = "file_unreadable"
    NOT_CSV = "not_csv"
    FILE_TOO_LARGE = "file_too_large"
    MISSING_HEADER = "missing_header"
    MISSING_COLUMNS = "missing_columns"

    # Row-level
    ROW_INVALID = "row_invalid"
    ROW_CONSTRAINT_VIOLATION = "row_constraint_violation"
    ROW_STORE_FAILURE = "row_store_failure"

    # Run-level
    SWEEP_PASS_FAILED = "sweep_pass_failed"
    STORE_UNAVAILABLE = "store_unavailable"
    UNEXPECTED = "unexpected"


def _row_prefix(context: Dict[str, Any]) -> str:
    line = context.get("line_number")
    business_id = context.get("business_id")
    prefix = f"Line {line}" if line is not None else "Row"
    if business_id is not None:
        prefix += f" (ID {business_id})"
    return prefix


def describe(kind: ErrorKind, **context: Any) -> str:
    """
    Translate an error kind into a single human-readable sentence.

    Args:
        kind: The failure kind
        **context: Kind-specific values (file_name, missing, reasons, ...)

    Returns:
        Sanitized message suitable for callers and API responses
    """
    if kind == ErrorKind.FILE_NOT_FOUND:
        return f"The file {context.get('file_name', '')} does not exist."
    if kind == ErrorKind.FILE_UNREADABLE:
        return f"The file {context.get('file_name', '')} could not be read as UTF-8 CSV."
    if kind == ErrorKind.NOT_CSV:
        return f"The file {context.get('file_name', '')} is not a .csv file."
    if kind == ErrorKind.FILE_TOO_LARGE:
        return (
            f"The file {context.get('file_name', '')} is {context.get('size', 0)} bytes, "
            f"above the {context.get('limit', 0)} byte limit."
        )
    if kind == ErrorKind.MISSING_HEADER:
        return "The CSV file has no header row."
    if kind == ErrorKind.MISSING_COLUMNS:
        missing = ", ".join(context.get("missing", []))
        return f"The CSV header is missing required columns: {missing}."
    if kind == ErrorKind.ROW_INVALID:
        reasons = "; ".join(context.get("reasons", []))
        return f"{_row_prefix(context)} rejected: {reasons}."
    if kind == ErrorKind.ROW_CONSTRAINT_VIOLATION:
        return f"{_row_prefix(context)} violates a storage constraint and was not saved."
    if kind == ErrorKind.ROW_STORE_FAILURE:
        return f"{_row_prefix(context)} could not be saved because of a storage error."
    if kind == ErrorKind.SWEEP_PASS_FAILED:
        return f"The {context.get('pass_name', 'cleanup')} pass failed."
    if kind == ErrorKind.STORE_UNAVAILABLE:
        return "The movie store is unavailable; changes were not saved."
    return "An unexpected error occurred."


class PipelineError(Exception):
    """Base pipeline error carrying an ErrorKind and its sanitized message."""

    def __init__(self, kind: ErrorKind, **context: Any):
        self.kind = kind
        self.context = context
        self.message = describe(kind, **context)
        super().__init__(self.message)


class CsvFileError(PipelineError):
    """File-level failure: the whole file is rejected before any row is touched."""


class StoreError(PipelineError):
    """Failure reported by the persistent store for a single operation."""

    def __init__(self, kind: ErrorKind, cause: Optional[BaseException] = None, **context: Any):
        super().__init__(kind, **context)
        self.cause = cause
