"""API request commands for mwcall."""

from __future__ import annotations

from collections.abc import Awaitable
from collections.abc import Callable
from pathlib import Path
from typing import Any

import typer

from mwcall.cli.app import ExitCode
from mwcall.cli.app import app
from mwcall.cli.app import exit_code_for
from mwcall.cli.output import output_json_error
from mwcall.cli.output import output_json_pretty
from mwcall.config.settings import ClientOptions
from mwcall.config.settings import get_config
from mwcall.core.client import ApiClient
from mwcall.errors.classify import classify_exception


def parse_params(pairs: list[str]) -> dict[str, Any]:
    """Parse ``key=value`` arguments into call parameters.

    A key given more than once collects its values into a list.
    """
    params: dict[str, Any] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"expected key=value, got {pair!r}")
        if key not in params:
            params[key] = value
        elif isinstance(params[key], list):
            params[key].append(value)
        else:
            params[key] = [params[key], value]
    return params


def read_items(path: Path) -> list[str]:
    """Read one item per line, skipping blank lines."""
    lines = path.read_text(encoding="utf-8").splitlines()
    return [line.strip() for line in lines if line.strip()]


def client_options(ctx: typer.Context) -> ClientOptions:
    return get_config().merged(api_url=ctx.meta.get("api_url"))


async def open_client(options: ClientOptions) -> ApiClient:
    """Create a client, logging in only when credentials are configured."""
    client = ApiClient(options)
    try:
        if client.auth_mode.is_oauth:
            await client.get_tokens_and_site_info()
        elif options.username:
            await client.login()
    except BaseException:
        await client.aclose()
        raise
    return client


async def run_with_client(
    ctx: typer.Context, operation: Callable[[ApiClient], Awaitable[Any]]
) -> None:
    """Run ``operation`` and print its result, mapping failures to exit codes."""
    try:
        client = await open_client(client_options(ctx))
        async with client:
            result = await operation(client)
    except KeyboardInterrupt:
        raise typer.Exit(ExitCode.GENERAL_ERROR) from None
    except Exception as e:
        category = classify_exception(e)
        if not ctx.meta.get("quiet", False):
            output_json_error(e, category)
        raise typer.Exit(exit_code_for(category)) from e

    output_json_pretty(result)


@app.command("call")
async def call_command(
    ctx: typer.Context,
    params: list[str] = typer.Argument(..., help="Parameters as key=value"),
    post: bool = typer.Option(False, "--post", help="Force a POST request"),
) -> None:
    """Make one API call and print the response."""
    query = parse_params(params)
    method = "POST" if post else None
    await run_with_client(ctx, lambda client: client.call(query, method=method))


@app.command("continued")
async def continued_command(
    ctx: typer.Context,
    params: list[str] = typer.Argument(..., help="Query parameters as key=value"),
    limit: int = typer.Option(10, "--limit", "-l", help="Maximum number of calls"),
) -> None:
    """Run a query and follow its continuation, printing every page."""
    query = parse_params(params)
    await run_with_client(ctx, lambda client: client.continued_query(query, limit))


@app.command("mass")
async def mass_command(
    ctx: typer.Context,
    field: str = typer.Argument(..., help="Parameter that receives the items"),
    params: list[str] = typer.Argument(None, help="Query parameters as key=value"),
    items_file: Path = typer.Option(
        ...,
        "--items-file",
        "-f",
        exists=True,
        dir_okay=False,
        help="File with one item per line",
    ),
) -> None:
    """Run a query over more items than one call accepts."""
    query = parse_params(params or [])
    query[field] = read_items(items_file)

    async def operation(client: ApiClient) -> list[Any]:
        results = await client.mass_query(query, field)
        return [
            {"error": str(r), "code": getattr(r, "code", None)}
            if isinstance(r, Exception)
            else r
            for r in results
        ]

    await run_with_client(ctx, operation)
