"""Network error classification utilities.

This module decides which transport-level failures are worth retrying.
"""

from __future__ import annotations

import socket

import httpx

from mwcall.errors.types import TRANSIENT_HTTP_STATUSES

# Resolver errors meaning the host does not exist
_DNS_FAILURE_CODES = frozenset(
    code
    for code in (getattr(socket, "EAI_NONAME", None), getattr(socket, "EAI_NODATA", None))
    if code is not None
)

# Resolver messages meaning the host does not exist, for errors that lost
# their underlying cause. Retrying these only delays the inevitable failure
# of a mistyped api_url.
_DNS_FAILURE_HINTS = (
    "name or service not known",
    "nodename nor servname provided",
    "getaddrinfo failed",
    "no address associated with hostname",
    "name does not resolve",
)


def _exception_chain(error: BaseException):
    seen = set()
    current: BaseException | None = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


def is_dns_failure(error: Exception) -> bool:
    """Check if an exception is a non-retriable host resolution failure."""
    if not isinstance(error, httpx.ConnectError):
        return False
    for exc in _exception_chain(error):
        if isinstance(exc, socket.gaierror):
            return exc.errno in _DNS_FAILURE_CODES
    message = str(error).lower()
    return any(hint in message for hint in _DNS_FAILURE_HINTS)


def is_network_error(error: Exception) -> bool:
    """Check if an exception is a network-related error.

    Args:
        error: Exception to check

    Returns:
        True if this is a network error
    """
    return isinstance(
        error,
        (
            httpx.NetworkError,
            httpx.TimeoutException,
            httpx.RemoteProtocolError,
        ),
    )


def get_status_code(error: Exception) -> int | None:
    """Get the HTTP status carried by a transport error, if any."""
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code
    return None


def is_retryable_transport_error(error: Exception) -> bool:
    """Check if a transport error is transient.

    Args:
        error: Exception raised while dispatching a request

    Returns:
        True if sending the same request again may succeed
    """
    if not isinstance(error, httpx.HTTPError):
        return False

    if is_dns_failure(error):
        return False

    status = get_status_code(error)
    if status is not None:
        return status in TRANSIENT_HTTP_STATUSES

    return True
