"""Error types and classifications."""

from __future__ import annotations

from enum import StrEnum
from typing import Any


LOCAL_CODE_PREFIX = "mwcall-"


class RemoteErrorCode(StrEnum):
    """Remote error codes the retry policy knows how to recover from.

    Any code outside this set is fatal.
    """

    BADTOKEN = "badtoken"
    READONLY = "readonly"
    MAXLAG = "maxlag"
    ASSERTBOTFAILED = "assertbotfailed"
    ASSERTUSERFAILED = "assertuserfailed"
    MWOAUTH_INVALID_AUTHORIZATION = "mwoauth-invalid-authorization"

    @classmethod
    def parse(cls, code: str | None) -> RemoteErrorCode | None:
        try:
            return cls(code)
        except ValueError:
            return None


class LocalErrorCode(StrEnum):
    """Codes for errors raised by mwcall itself rather than the remote API."""

    INVALID_JSON = "invalidjson"
    INVALID_FORMAT = "mwcall-invalidformat"
    NO_URL = "mwcall-nourl"
    NO_TOKEN = "mwcall-notoken"
    NO_LOGIN_CREDENTIALS = "mwcall-nologincredentials"
    FAILED_LOGIN = "mwcall-failedlogin"
    OAUTH_SESSION = "mwcall-oauthsession"
    SHUTOFF = "mwcall-shutoff"


class ErrorCategory(StrEnum):
    """Error categories for handling decisions."""

    API = "api"
    NETWORK = "network"
    PARSE = "parse"
    CONFIGURATION = "configuration"
    USAGE = "usage"
    UNKNOWN = "unknown"


# HTTP statuses worth another attempt after a transport-level failure
TRANSIENT_HTTP_STATUSES: frozenset[int] = frozenset(
    {408, 409, 425, 429, 500, 502, 503, 504}
)


class MwcallError(Exception):
    """Base class for mwcall errors."""


class ConfigError(MwcallError):
    """Invalid client configuration."""


class ApiError(MwcallError):
    """A failed logical API call.

    ``response`` is the decoded payload that carried the error and
    ``request`` the context that produced it, so callers can inspect the
    failure or resubmit the call.
    """

    def __init__(
        self,
        code: str,
        info: str = "",
        *,
        response: Any = None,
        request: Any = None,
        status: int | None = None,
        headers: dict[str, str] | None = None,
        details: dict[str, Any] | None = None,
        disable_retry: bool = False,
    ) -> None:
        prefix = "" if not code or code.startswith(LOCAL_CODE_PREFIX) else f"{code}: "
        super().__init__(prefix + (info or ""))
        self.code = code
        self.info = info or ""
        self.response = response
        self.request = request
        self.status = status
        self.headers = headers or {}
        self.details = details or {}
        self.disable_retry = disable_retry

    @property
    def is_local(self) -> bool:
        """True if the error was raised by mwcall rather than the remote API."""
        return self.code in LocalErrorCode.__members__.values()

    def __repr__(self) -> str:
        return f"ApiError(code={self.code!r}, info={self.info!r})"

