"""Tests for cli/app.py (main app, global options and exit codes)."""

from __future__ import annotations

import pytest
from typer.testing import CliRunner

from mwcall import __version__
from mwcall.cli.app import ExitCode, app, exit_code_for
from mwcall.errors.types import ErrorCategory

runner = CliRunner()


class TestExitCode:
    """Tests for ExitCode enum and category mapping."""

    def test_values(self):
        assert ExitCode.SUCCESS == 0
        assert ExitCode.GENERAL_ERROR == 1
        assert ExitCode.API_ERROR == 2
        assert ExitCode.NETWORK_ERROR == 3
        assert ExitCode.CONFIG_ERROR == 4

    @pytest.mark.parametrize(
        "category,code",
        [
            (ErrorCategory.API, ExitCode.API_ERROR),
            (ErrorCategory.PARSE, ExitCode.API_ERROR),
            (ErrorCategory.NETWORK, ExitCode.NETWORK_ERROR),
            (ErrorCategory.CONFIGURATION, ExitCode.CONFIG_ERROR),
            (ErrorCategory.USAGE, ExitCode.GENERAL_ERROR),
            (ErrorCategory.UNKNOWN, ExitCode.GENERAL_ERROR),
        ],
    )
    def test_exit_code_for(self, category, code):
        assert exit_code_for(category) == code


class TestMainCallback:
    """Tests for the global options."""

    def test_version(self):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert f"mwcall {__version__}" in result.output

    def test_no_command_shows_help(self):
        result = runner.invoke(app, [])

        assert result.exit_code == 0
        assert "Usage" in result.output
        assert "continued" in result.output

    def test_help_lists_commands(self):
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        for command in ("call", "continued", "mass", "config"):
            assert command in result.output
