"""Error handling for mwcall."""

from mwcall.errors.classify import (
    api_error_from_remote,
    classify_exception,
    extract_remote_error,
)
from mwcall.errors.network import (
    get_status_code,
    is_dns_failure,
    is_network_error,
    is_retryable_transport_error,
)
from mwcall.errors.types import (
    TRANSIENT_HTTP_STATUSES,
    ApiError,
    ConfigError,
    ErrorCategory,
    LocalErrorCode,
    MwcallError,
    RemoteErrorCode,
)

__all__ = [
    # Core types
    "MwcallError",
    "ApiError",
    "ConfigError",
    "ErrorCategory",
    "LocalErrorCode",
    "RemoteErrorCode",
    "TRANSIENT_HTTP_STATUSES",
    # Classification functions
    "api_error_from_remote",
    "classify_exception",
    "extract_remote_error",
    # Network utilities
    "get_status_code",
    "is_dns_failure",
    "is_network_error",
    "is_retryable_transport_error",
]
