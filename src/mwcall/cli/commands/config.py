"""Config management commands for mwcall."""

from __future__ import annotations

import msgspec
import msgspec.toml
import typer
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax

from mwcall.cli.atyper import ATyper
from mwcall.cli.output import output_json_pretty
from mwcall.config.paths import config_dir
from mwcall.config.paths import config_file
from mwcall.config.settings import ClientOptions
from mwcall.config.settings import get_config

config_app = ATyper(help="Inspect configuration settings.")

SECRET_FIELDS = ("password", "oauth2_access_token")
SECRET_OAUTH_FIELDS = ("consumer_secret", "access_secret")
MASK = "********"


def redacted(options: ClientOptions) -> dict:
    """Options as plain data with secrets masked."""
    data = msgspec.to_builtins(options)
    for key in SECRET_FIELDS:
        if data.get(key):
            data[key] = MASK
    oauth = data.get("oauth") or {}
    for key in SECRET_OAUTH_FIELDS:
        if oauth.get(key):
            oauth[key] = MASK
    return data


@config_app.command("show")
def config_show_command(
    ctx: typer.Context,
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """Display current settings, with secrets masked."""
    console = Console()

    config = get_config().merged(api_url=ctx.meta.get("api_url"))
    config_path = config_file()
    quiet = ctx.meta.get("quiet", False)
    verbose = ctx.meta.get("verbose", False)

    if json_output:
        output_json_pretty({**redacted(config), "path": str(config_path)})
        return

    if quiet:
        console.print(str(config_path))
        return

    toml_data = msgspec.toml.encode(redacted(config))
    console.print(
        Panel(Syntax(toml_data.decode(), "toml"), title=f"Config: {config_path}")
    )

    if verbose:
        if config_path.exists():
            console.print(f"[dim]File size: {config_path.stat().st_size} bytes[/dim]")
        else:
            console.print("[dim]Using default configuration (no config file)[/dim]")


@config_app.command("path")
def config_path_command() -> None:
    """Show the configuration directory."""
    Console().print(str(config_dir()))
