"""Session state shared by every call of a client."""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from typing import Any

# Token types fetched in one round trip whenever tokens are refreshed
TOKEN_TYPES = ("csrf", "createaccount", "login", "patrol", "rollback", "userrights", "watch")

NO_TOKEN = "%notoken%"


@dataclass
class SessionState:
    """Tokens and capabilities discovered from the server.

    Lives from login to logout. Concurrent calls on one client see a refreshed
    token as soon as any of them stores it.
    """

    tokens: dict[str, str] = field(default_factory=dict)
    has_api_high_limit: bool = False
    logged_in: bool = False
    login_result: dict[str, Any] = field(default_factory=dict)
    user_info: dict[str, Any] = field(default_factory=dict)
    site_info: dict[str, Any] = field(default_factory=dict)

    @property
    def csrf_token(self) -> str:
        return self.tokens.get("csrftoken", NO_TOKEN)

    def token(self, token_type: str) -> str | None:
        """Get a stored token by type, e.g. ``csrf`` or ``rollback``."""
        return self.tokens.get(f"{token_type}token")

    def update_tokens(self, tokens: dict[str, str]) -> None:
        self.tokens.update(tokens)

    def update_user_info(self, user_info: dict[str, Any]) -> None:
        self.user_info = user_info
        if "apihighlimits" in user_info.get("rights", []):
            self.has_api_high_limit = True

    def reset(self) -> None:
        """Forget everything learned since login."""
        self.tokens.clear()
        self.has_api_high_limit = False
        self.logged_in = False
        self.login_result = {}
        self.user_info = {}
