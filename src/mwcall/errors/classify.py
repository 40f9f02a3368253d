"""Exception classification for structured error handling."""

from __future__ import annotations

import json
from typing import Any

import httpx

from mwcall.errors.network import is_network_error
from mwcall.errors.types import (
    ApiError,
    ConfigError,
    ErrorCategory,
    LocalErrorCode,
)


def extract_remote_error(payload: Any) -> dict[str, Any] | None:
    """Get the error object from a decoded API response.

    The legacy format (errorformat=bc) carries a single ``error`` object with
    ``code`` and ``info``. The other formats carry an ``errors`` array whose
    entries describe the message as ``text`` or ``html`` instead.
    """
    if not isinstance(payload, dict):
        return None

    error = payload.get("error")
    if isinstance(error, dict):
        return error

    errors = payload.get("errors")
    if isinstance(errors, list) and errors and isinstance(errors[0], dict):
        return errors[0]

    return None


def api_error_from_remote(
    error: dict[str, Any],
    *,
    response: Any = None,
    request: Any = None,
    status: int | None = None,
    headers: dict[str, str] | None = None,
) -> ApiError:
    """Normalize a remote error object into an ApiError."""
    code = str(error.get("code", "unknown"))
    info = error.get("info") or error.get("text") or error.get("html") or ""
    details = {
        key: value
        for key, value in error.items()
        if key not in ("code", "info", "text", "html")
    }
    return ApiError(
        code,
        str(info),
        response=response,
        request=request,
        status=status,
        headers=headers,
        details=details,
    )


def classify_exception(e: Exception) -> ErrorCategory:
    """Classify any exception into an error category."""

    if isinstance(e, ApiError):
        if e.code in (LocalErrorCode.INVALID_JSON, LocalErrorCode.INVALID_FORMAT):
            return ErrorCategory.PARSE
        if e.code in (
            LocalErrorCode.NO_URL,
            LocalErrorCode.NO_LOGIN_CREDENTIALS,
            LocalErrorCode.OAUTH_SESSION,
        ):
            return ErrorCategory.CONFIGURATION
        return ErrorCategory.API

    if isinstance(e, ConfigError):
        return ErrorCategory.CONFIGURATION

    if is_network_error(e):
        return ErrorCategory.NETWORK

    # Status errors with no JSON body
    if isinstance(e, httpx.HTTPStatusError):
        return ErrorCategory.NETWORK

    if isinstance(e, json.JSONDecodeError):
        return ErrorCategory.PARSE

    if isinstance(e, (TypeError, ValueError)):
        return ErrorCategory.USAGE

    return ErrorCategory.UNKNOWN
