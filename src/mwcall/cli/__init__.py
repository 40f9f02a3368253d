"""CLI framework for mwcall."""
from __future__ import annotations

from mwcall.cli.app import ExitCode
from mwcall.cli.app import app
from mwcall.cli.app import run_app

__all__ = ["app", "run_app", "ExitCode"]
