"""JSON output utilities for the mwcall CLI."""

from __future__ import annotations

import json
import sys

import msgspec

from mwcall.errors.types import ApiError
from mwcall.errors.types import ErrorCategory


class ErrorData(msgspec.Struct, frozen=True, omit_defaults=True):
    """Error payload printed when a command fails."""

    message: str
    category: str
    code: str | None = None
    details: dict | None = None


def output_json_pretty(data: object, indent: int = 2) -> None:
    """Output data as pretty-printed JSON to stdout.

    Args:
        data: Any msgspec-serializable object
        indent: Number of spaces for indentation
    """
    # msgspec handles Structs and enums; json does the indentation
    python_obj = msgspec.json.decode(msgspec.json.encode(data))
    sys.stdout.write(json.dumps(python_obj, indent=indent, ensure_ascii=False))
    sys.stdout.write("\n")


def error_data(error: Exception, category: ErrorCategory) -> ErrorData:
    if isinstance(error, ApiError):
        return ErrorData(
            message=str(error),
            category=category.value,
            code=error.code,
            details=error.details or None,
        )
    return ErrorData(message=str(error) or repr(error), category=category.value)


def output_json_error(error: Exception, category: ErrorCategory) -> None:
    """Write a structured error to stderr."""
    sys.stderr.write(
        json.dumps({"error": msgspec.to_builtins(error_data(error, category))}, indent=2)
    )
    sys.stderr.write("\n")
