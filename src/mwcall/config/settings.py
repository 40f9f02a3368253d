"""Client options and configuration loading for mwcall."""

import os
import tomllib
from pathlib import Path
from typing import Any

import msgspec


# Default values
DEFAULT_USER_AGENT = "mwcall"
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_PAUSE = 5.0
DEFAULT_TIMEOUT = 60.0


def default_params() -> dict[str, Any]:
    """Parameters included in every API request unless overridden."""
    return {
        "format": "json",
        "formatversion": "2",
        "maxlag": 5,
    }


# OAuth 1.0a credentials
class OAuthCredentials(msgspec.Struct, omit_defaults=True):
    """Consumer and access key pairs for OAuth 1.0a signing."""

    consumer_token: str | None = None
    consumer_secret: str | None = None
    access_token: str | None = None
    access_secret: str | None = None

    def is_complete(self) -> bool:
        return all(
            (
                self.consumer_token,
                self.consumer_secret,
                self.access_token,
                self.access_secret,
            )
        )

    def is_empty(self) -> bool:
        return not any(
            (
                self.consumer_token,
                self.consumer_secret,
                self.access_token,
                self.access_secret,
            )
        )


# Main configuration
class ClientOptions(msgspec.Struct, omit_defaults=True):
    """Options for an API client instance.

    Durations are in seconds.
    """

    api_url: str | None = None
    user_agent: str = DEFAULT_USER_AGENT
    username: str | None = None
    password: str | None = None
    oauth: OAuthCredentials = msgspec.field(default_factory=OAuthCredentials)
    oauth2_access_token: str | None = None
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_pause: float = DEFAULT_RETRY_PAUSE
    timeout: float = DEFAULT_TIMEOUT
    default_params: dict[str, Any] = msgspec.field(default_factory=default_params)
    suppress_api_warnings: bool = False
    silent: bool = False

    def merged(self, **overrides: Any) -> "ClientOptions":
        """Return a copy with the given non-None fields replaced."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return msgspec.structs.replace(self, **changes)

    def with_default_params(self, params: dict[str, Any]) -> "ClientOptions":
        """Return a copy whose default params are extended with ``params``."""
        return msgspec.structs.replace(
            self, default_params={**self.default_params, **params}
        )


def _load_from_toml(path: Path) -> dict:
    """Load configuration from TOML file."""
    if not path.exists():
        return {}

    with path.open("rb") as f:
        return tomllib.load(f)


def convert_config(data: dict) -> ClientOptions:
    """Convert raw dict to ClientOptions struct."""
    options = msgspec.convert(data, type=ClientOptions)
    # A partial default_params table extends the built-in defaults
    if "default_params" in data:
        options = msgspec.structs.replace(
            options, default_params={**default_params(), **data["default_params"]}
        )
    return options


_ENV_OVERRIDES = {
    "MWCALL_API_URL": "api_url",
    "MWCALL_USER_AGENT": "user_agent",
    "MWCALL_USERNAME": "username",
    "MWCALL_PASSWORD": "password",
    "MWCALL_OAUTH2_TOKEN": "oauth2_access_token",
}


def _apply_env_overrides(config: ClientOptions) -> ClientOptions:
    """Apply environment variable overrides to config.

    MWCALL_API_URL, MWCALL_USER_AGENT, MWCALL_USERNAME, MWCALL_PASSWORD and
    MWCALL_OAUTH2_TOKEN replace the matching option when set.
    """
    changes = {
        field: os.environ[env_var]
        for env_var, field in _ENV_OVERRIDES.items()
        if os.environ.get(env_var)
    }
    if changes:
        config = msgspec.structs.replace(config, **changes)
    return config


# Config state storage
_config: ClientOptions | None = None


def get_config() -> ClientOptions:
    """Get the current configuration (singleton)."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config() -> ClientOptions:
    """Reload configuration from disk."""
    global _config
    _config = load_config()
    return _config


def load_config(path: Path | None = None) -> ClientOptions:
    """Load configuration from file with defaults."""
    from .paths import config_file

    config_path = path or config_file()

    raw_data = _load_from_toml(config_path)
    if not raw_data:
        config = ClientOptions()
    else:
        config = convert_config(raw_data)

    return _apply_env_overrides(config)
