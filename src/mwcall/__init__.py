"""mwcall: Resilient client for the MediaWiki Action API."""

from __future__ import annotations

__version__ = "0.1.0"

from mwcall.config.settings import ClientOptions
from mwcall.config.settings import OAuthCredentials
from mwcall.core.batch import BatchResult
from mwcall.core.client import ApiClient
from mwcall.core.params import FileUpload
from mwcall.errors.types import ApiError
from mwcall.errors.types import ConfigError
from mwcall.errors.types import MwcallError

__all__ = [
    "__version__",
    "ApiClient",
    "ClientOptions",
    "OAuthCredentials",
    "FileUpload",
    "BatchResult",
    "MwcallError",
    "ApiError",
    "ConfigError",
]


def main() -> None:
    """Entry point for the mwcall CLI."""
    from mwcall.cli.app import run_app

    run_app()
