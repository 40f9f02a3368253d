"""Main CLI application for mwcall."""

from __future__ import annotations

from enum import IntEnum

import typer

from mwcall.cli.atyper import ATyper
from mwcall.errors.types import ErrorCategory
from mwcall.logging import configure_logging

app = ATyper(
    name="mwcall",
    help="Call the MediaWiki Action API with automatic retries",
    add_completion=False,
    no_args_is_help=False,
    invoke_without_command=True,
)


class ExitCode(IntEnum):
    """Exit codes for mwcall."""

    SUCCESS = 0
    GENERAL_ERROR = 1
    API_ERROR = 2
    NETWORK_ERROR = 3
    CONFIG_ERROR = 4


_CATEGORY_EXIT_CODES = {
    ErrorCategory.API: ExitCode.API_ERROR,
    ErrorCategory.PARSE: ExitCode.API_ERROR,
    ErrorCategory.NETWORK: ExitCode.NETWORK_ERROR,
    ErrorCategory.CONFIGURATION: ExitCode.CONFIG_ERROR,
}


def exit_code_for(category: ErrorCategory) -> ExitCode:
    return _CATEGORY_EXIT_CODES.get(category, ExitCode.GENERAL_ERROR)


@app.callback()
def main(
    ctx: typer.Context,
    api_url: str | None = typer.Option(
        None, "--api-url", "-u", help="API endpoint, e.g. https://example.org/w/api.php"
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable verbose output"
    ),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Enable quiet mode"),
    version: bool = typer.Option(False, "--version", help="Show version and exit"),
) -> None:
    """mwcall - Resilient MediaWiki API calls from the command line."""
    if version:
        from mwcall import __version__

        typer.echo(f"mwcall {__version__}")
        raise typer.Exit()

    # quiet takes precedence
    if verbose and quiet:
        verbose = False

    ctx.meta["api_url"] = api_url
    ctx.meta["verbose"] = verbose
    ctx.meta["quiet"] = quiet
    configure_logging(verbose=verbose, quiet=quiet)

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(ExitCode.SUCCESS)


def run_app() -> None:
    """Run the CLI app."""
    app()


# Command modules register themselves on import
from mwcall.cli.commands import config as config_cmd  # noqa: E402
from mwcall.cli.commands import request  # noqa: E402,F401

app.add_typer(config_cmd.config_app, name="config")
