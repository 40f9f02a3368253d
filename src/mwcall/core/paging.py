"""Continuation-following and list-splitting queries."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from collections.abc import Sequence
from typing import TYPE_CHECKING
from typing import Any

import httpx

from mwcall.errors.types import ApiError

if TYPE_CHECKING:
    from mwcall.core.client import ApiClient

logger = logging.getLogger(__name__)

HIGH_LIMIT_CHUNK_SIZE = 500
DEFAULT_CHUNK_SIZE = 50


def with_continuation(
    query: dict[str, Any], response: dict[str, Any] | None
) -> dict[str, Any]:
    """Merge the continuation of ``response`` into the original query."""
    if response is None:
        return dict(query)
    return {**query, **response.get("continue", {})}


async def continued_query_gen(
    client: ApiClient,
    query: dict[str, Any] | None = None,
    limit: int | None = None,
) -> AsyncIterator[dict[str, Any]]:
    """Yield pages of a query, following ``continue`` between calls.

    Stops when a response carries no continuation, or after ``limit`` calls.
    Each generator runs once; start a new one to query again.
    """
    query = dict(query or {})
    response = None
    count = 0
    while limit is None or count < limit:
        response = await client.query(with_continuation(query, response))
        count += 1
        yield response
        if "continue" not in response:
            return


async def continued_query(
    client: ApiClient,
    query: dict[str, Any] | None = None,
    limit: int = 10,
) -> list[dict[str, Any]]:
    """Collect every page of a continued query, up to ``limit`` calls."""
    pages = []
    async for page in continued_query_gen(client, query, limit):
        pages.append(page)
        if not client.options.silent:
            logger.info("Got part %d of continuous API query", len(pages))
    return pages


def chunked(values: Sequence[Any], size: int) -> list[list[Any]]:
    return [list(values[i : i + size]) for i in range(0, len(values), size)]


def chunk_size_for(client: ApiClient) -> int:
    """Per-call item limit for the client's account."""
    if client.state.has_api_high_limit:
        return HIGH_LIMIT_CHUNK_SIZE
    return DEFAULT_CHUNK_SIZE


def _field_values(query: dict[str, Any], batch_field: str) -> list[Any]:
    values = query.get(batch_field)
    if not isinstance(values, list | tuple):
        raise TypeError(f"mass query field {batch_field!r} must be a list")
    return list(values)


async def mass_query(
    client: ApiClient,
    query: dict[str, Any],
    batch_field: str = "titles",
) -> list[dict[str, Any] | Exception]:
    """Run a query whose ``batch_field`` list exceeds the per-call limit.

    The list is split into chunks of 500 (accounts with ``apihighlimits``)
    or 50, sent one at a time as POST requests. A chunk that fails does not
    stop the rest: its error takes the chunk's slot in the result.

    Raises:
        TypeError: if ``batch_field`` does not hold a list
    """
    chunks = chunked(_field_values(query, batch_field), chunk_size_for(client))

    results: list[dict[str, Any] | Exception] = []
    for index, chunk in enumerate(chunks):
        try:
            response = await client.query({**query, batch_field: chunk}, method="POST")
        except (ApiError, httpx.HTTPError) as exc:
            logger.warning("Chunk %d of mass query failed: %s", index + 1, exc)
            results.append(exc)
        else:
            results.append(response)
    return results


async def mass_query_gen(
    client: ApiClient,
    query: dict[str, Any],
    batch_field: str = "titles",
    batch_size: int | None = None,
) -> AsyncIterator[dict[str, Any]]:
    """Yield one response per chunk of ``batch_field``.

    Unlike :func:`mass_query`, a failing chunk raises and ends iteration.
    """
    values = _field_values(query, batch_field)
    for chunk in chunked(values, batch_size or chunk_size_for(client)):
        yield await client.query({**query, batch_field: chunk}, method="POST")
