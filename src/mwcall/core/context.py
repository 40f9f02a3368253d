"""Per-call request context."""

from __future__ import annotations

from typing import Any
from typing import Literal

import msgspec

HttpMethod = Literal["GET", "POST"]


class RequestContext(msgspec.Struct, frozen=True):
    """State of one logical API call.

    ``attempt`` counts retries across every failure type, so the retry budget
    belongs to the logical call rather than to a particular error. Retries
    derive a new context instead of mutating this one.
    """

    params: dict[str, Any]
    method: HttpMethod | None = None
    headers: dict[str, str] = msgspec.field(default_factory=dict)
    attempt: int = 0

    def next_attempt(self, **params: Any) -> RequestContext:
        """Context for the next retry, with ``params`` merged in."""
        return msgspec.structs.replace(
            self,
            params={**self.params, **params},
            attempt=self.attempt + 1,
        )

    @property
    def action(self) -> str | None:
        action = self.params.get("action")
        return str(action) if action is not None else None

    def resolve_method(self) -> HttpMethod:
        """HTTP method for this call.

        Reads go over GET; everything else, including parse requests that
        carry the text to parse, goes over POST.
        """
        if self.method is not None:
            return self.method
        if self.action == "query":
            return "GET"
        if self.action == "parse" and not self.params.get("text"):
            return "GET"
        return "POST"
