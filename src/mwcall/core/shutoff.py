"""Emergency shutoff: stop a client when an on-wiki page says so."""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Callable
from re import Pattern
from typing import TYPE_CHECKING
from typing import Any

import httpx

from mwcall.errors.types import ApiError

if TYPE_CHECKING:
    from mwcall.core.client import ApiClient

logger = logging.getLogger(__name__)

ShutoffCondition = str | Pattern[str] | Callable[[str], bool]


def compile_condition(condition: ShutoffCondition) -> Callable[[str], bool]:
    """Turn a regex or predicate into a predicate over page text."""
    if callable(condition):
        return condition
    pattern = re.compile(condition) if isinstance(condition, str) else condition
    return lambda text: pattern.search(text) is not None


def extract_page_text(response: dict[str, Any]) -> str | None:
    """Get the current wikitext from a revisions query, or None if missing."""
    pages = response.get("query", {}).get("pages", [])
    if not pages or pages[0].get("missing"):
        return None
    revisions = pages[0].get("revisions") or []
    if not revisions:
        return None
    return revisions[0].get("slots", {}).get("main", {}).get("content")


class EmergencyShutoff:
    """Polls a page and trips the client's shutoff flag on a match.

    Once tripped, every call on the client fails with ``mwcall-shutoff``.
    """

    def __init__(
        self,
        client: ApiClient,
        page: str,
        *,
        condition: ShutoffCondition = r"^\s*$",
        interval: float = 10.0,
        on_shutoff: Callable[[str], None] | None = None,
    ) -> None:
        self.client = client
        self.page = page
        self.matches = compile_condition(condition)
        self.interval = interval
        self.on_shutoff = on_shutoff
        self.active = False
        self._task: asyncio.Task | None = None

    async def fetch_text(self) -> str | None:
        response = await self.client.query(
            {
                "prop": "revisions",
                "titles": self.page,
                "rvprop": "content",
                "rvslots": "main",
                "formatversion": "2",
            }
        )
        return extract_page_text(response)

    async def check(self) -> bool:
        """Check the page once. Returns True if the shutoff tripped."""
        text = await self.fetch_text()
        if text is None or not self.matches(text):
            return False

        self.active = True
        logger.error("Emergency shutoff triggered by %s", self.page)
        if self.on_shutoff is not None:
            self.on_shutoff(text)
        return True

    async def _poll(self) -> None:
        while True:
            try:
                if await self.check():
                    return
            except (ApiError, httpx.HTTPError) as exc:
                logger.warning("Failed to check shutoff page %s: %s", self.page, exc)
            await asyncio.sleep(self.interval)

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._poll())

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None
