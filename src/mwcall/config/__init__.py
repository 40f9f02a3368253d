"""Configuration management for mwcall."""

from mwcall.config.paths import (
    config_dir,
    config_file,
)
from mwcall.config.settings import (
    ClientOptions,
    OAuthCredentials,
    default_params,
    get_config,
    load_config,
    reload_config,
)

__all__ = [
    # paths
    "config_dir",
    "config_file",
    # settings
    "ClientOptions",
    "OAuthCredentials",
    "default_params",
    "get_config",
    "load_config",
    "reload_config",
]
