"""Authentication strategies and session state."""

from mwcall.auth.base import (
    AuthMode,
    Authenticator,
    OAuth1Auth,
    OAuth2Auth,
    SessionAuth,
    select_authenticator,
)
from mwcall.auth.state import NO_TOKEN, TOKEN_TYPES, SessionState

__all__ = [
    "AuthMode",
    "Authenticator",
    "SessionAuth",
    "OAuth1Auth",
    "OAuth2Auth",
    "select_authenticator",
    "SessionState",
    "TOKEN_TYPES",
    "NO_TOKEN",
]
