"""Normalization of call parameters into wire-ready form values."""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from datetime import UTC
from datetime import datetime
from typing import IO
from typing import Any

# Values longer than this are sent as multipart/form-data
MULTIPART_THRESHOLD = 8000

# Joins list values that themselves contain the pipe delimiter
UNIT_SEPARATOR = "\x1f"


@dataclass(frozen=True)
class FileUpload:
    """A binary stream sent as a multipart file part."""

    stream: IO[bytes] | bytes
    filename: str


@dataclass(frozen=True)
class NormalizedParams:
    """Wire-ready parameters of one request."""

    values: dict[str, str] = field(default_factory=dict)
    files: dict[str, FileUpload] = field(default_factory=dict)
    has_long_fields: bool = False


def join_list(values: list | tuple) -> str:
    """Join a multi-value parameter.

    Pipes inside the values would be read as delimiters, so such lists are
    joined by the unit separator and prefixed with it instead.
    """
    items = [str(v) for v in values]
    if "|" not in "".join(items):
        return "|".join(items)
    return UNIT_SEPARATOR + UNIT_SEPARATOR.join(items)


def format_timestamp(value: datetime) -> str:
    """Format a datetime as an ISO 8601 UTC timestamp."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


def serialize_value(value: Any) -> str:
    """Serialize a single non-file parameter value."""
    if value is True:
        return "1"
    if isinstance(value, (list, tuple)):
        return join_list(value)
    if isinstance(value, datetime):
        return format_timestamp(value)
    return str(value)


def normalize_params(params: dict[str, Any]) -> NormalizedParams:
    """Turn call parameters into form values.

    ``False`` and ``None`` remove the key, ``True`` becomes ``"1"``.
    """
    values: dict[str, str] = {}
    files: dict[str, FileUpload] = {}
    has_long_fields = False

    for key, value in params.items():
        if value is False or value is None:
            continue
        if isinstance(value, FileUpload):
            files[key] = value
            continue

        serialized = serialize_value(value)
        if len(serialized) > MULTIPART_THRESHOLD:
            has_long_fields = True
        values[key] = serialized

    return NormalizedParams(values=values, files=files, has_long_fields=has_long_fields)


def merge_params(*sources: dict[str, Any] | None) -> dict[str, Any]:
    """Merge parameter maps, rightmost wins. None sources are skipped."""
    merged: dict[str, Any] = {}
    for source in sources:
        if source:
            merged.update(source)
    return merged
