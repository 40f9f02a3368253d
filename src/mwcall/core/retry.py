"""Response classification and retry policy for mwcall.

Every dispatched response is classified exactly once into one of the
``RetryAction`` states. The client performs the action; this module only
decides.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from mwcall.auth.base import AuthMode
from mwcall.core.context import RequestContext
from mwcall.core.http import DispatchResult
from mwcall.errors.classify import api_error_from_remote
from mwcall.errors.classify import extract_remote_error
from mwcall.errors.network import is_retryable_transport_error
from mwcall.errors.types import ApiError
from mwcall.errors.types import LocalErrorCode
from mwcall.errors.types import RemoteErrorCode

logger = logging.getLogger(__name__)

NONCE_REPLAY_MARKER = "Nonce already used"


class RetryAction(StrEnum):
    """Outcome of classifying one response."""

    ACCEPT = "accept"
    RETRY_TOKEN = "retry_token"
    RETRY_BACKOFF = "retry_backoff"
    RETRY_REAUTH = "retry_reauth"
    RETRY_OAUTH_NONCE = "retry_oauth_nonce"
    FATAL = "fatal"

    @property
    def is_retry(self) -> bool:
        return self not in (RetryAction.ACCEPT, RetryAction.FATAL)


@dataclass(frozen=True)
class Decision:
    """What to do with a response.

    ``pause`` is the backoff in seconds for backoff-type retries. ``error`` is
    set for every state except ACCEPT.
    """

    action: RetryAction
    error: ApiError | None = None
    pause: float = 0.0


def get_retry_after_delay(headers: dict[str, str], default_delay: float) -> float:
    """Get the delay from a Retry-After header.

    Args:
        headers: Response headers
        default_delay: Default delay if header is missing/invalid

    Returns:
        Delay in seconds
    """
    retry_after = None
    for key, value in headers.items():
        if key.lower() == "retry-after":
            retry_after = value
            break
    if not retry_after:
        return default_delay

    try:
        return float(int(retry_after))
    except ValueError:
        # HTTP-date values are not used by the API
        return default_delay


def check_payload(result: DispatchResult, ctx: RequestContext) -> ApiError | None:
    """Reject payloads that are not JSON objects."""
    if isinstance(result.payload, dict):
        return None

    if ctx.params.get("format") != "json":
        return ApiError(
            LocalErrorCode.INVALID_FORMAT,
            "Must use format=json!",
            response=result.payload,
            request=ctx,
            status=result.status,
            headers=result.headers,
        )
    return ApiError(
        LocalErrorCode.INVALID_JSON,
        "No valid JSON response",
        response=result.payload,
        request=ctx,
        status=result.status,
        headers=result.headers,
    )


def classify_remote_error(
    error: ApiError,
    *,
    attempt: int,
    max_retries: int,
    auth_mode: AuthMode,
    retry_pause: float,
) -> Decision:
    """Map a remote error to a retry action."""
    if attempt >= max_retries:
        return Decision(RetryAction.FATAL, error)

    match RemoteErrorCode.parse(error.code):
        case RemoteErrorCode.BADTOKEN:
            return Decision(RetryAction.RETRY_TOKEN, error)
        case RemoteErrorCode.READONLY:
            return Decision(RetryAction.RETRY_BACKOFF, error, pause=retry_pause)
        case RemoteErrorCode.MAXLAG:
            pause = get_retry_after_delay(error.headers, retry_pause)
            return Decision(RetryAction.RETRY_BACKOFF, error, pause=pause)
        case RemoteErrorCode.ASSERTBOTFAILED | RemoteErrorCode.ASSERTUSERFAILED:
            # Session loss cannot explain an assertion failure under OAuth
            if auth_mode.is_oauth:
                return Decision(RetryAction.FATAL, error)
            return Decision(RetryAction.RETRY_REAUTH, error)
        case RemoteErrorCode.MWOAUTH_INVALID_AUTHORIZATION:
            # Nonce replay reports come from a transient upstream cache failure
            if NONCE_REPLAY_MARKER in error.info:
                return Decision(RetryAction.RETRY_OAUTH_NONCE, error, pause=retry_pause)
            return Decision(RetryAction.FATAL, error)
        case _:
            return Decision(RetryAction.FATAL, error)


def classify_response(
    result: DispatchResult,
    ctx: RequestContext,
    *,
    max_retries: int,
    auth_mode: AuthMode,
    retry_pause: float,
) -> Decision:
    """Classify a dispatched response."""
    invalid = check_payload(result, ctx)
    if invalid is not None:
        return Decision(RetryAction.FATAL, invalid)

    remote = extract_remote_error(result.payload)
    if remote is None:
        return Decision(RetryAction.ACCEPT)

    error = api_error_from_remote(
        remote,
        response=result.payload,
        request=ctx,
        status=result.status,
        headers=result.headers,
    )
    return classify_remote_error(
        error,
        attempt=ctx.attempt,
        max_retries=max_retries,
        auth_mode=auth_mode,
        retry_pause=retry_pause,
    )


def collect_warnings(payload: dict[str, Any]) -> list[str]:
    """Collect human-readable warnings from a response.

    Handles both the ``warnings`` array of the newer error formats and the
    legacy object keyed by module name.
    """
    warnings = payload.get("warnings")
    if not warnings:
        return []

    messages = []
    if isinstance(warnings, list):
        for warning in warnings:
            if warning.get("code") == "deprecation-help":
                continue
            msg = warning.get("info") or warning.get("text") or warning.get("html")
            messages.append(f"{warning.get('module')}: {msg}")
    elif isinstance(warnings, dict):
        for module, info in warnings.items():
            if isinstance(info, dict):
                info = info.get("warnings") or info.get("*")
            messages.append(f"{module}: {info}")
    return messages


def log_warnings(payload: dict[str, Any]) -> None:
    for message in collect_warnings(payload):
        logger.warning("Warning received from API: %s", message)


def should_retry_transport(error: Exception, attempt: int, max_retries: int) -> bool:
    """Decide whether a transport-level failure is worth another attempt."""
    if attempt >= max_retries:
        return False
    if isinstance(error, ApiError) and error.disable_retry:
        return False
    return is_retryable_transport_error(error)
