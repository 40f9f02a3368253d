"""HTTP transport for mwcall.

Sends exactly one physical request per dispatch and knows nothing about the
API's error codes, only about HTTP-level failure.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from urllib.parse import urlencode

import httpx

from mwcall.core.params import NormalizedParams

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
MULTIPART_CONTENT_TYPE = "multipart/form-data"


def get_timeout_config(timeout: float) -> httpx.Timeout:
    """Get timeout configuration for a client."""
    return httpx.Timeout(timeout, connect=10.0)


@dataclass(frozen=True)
class DispatchResult:
    """A response that reached us with a usable body.

    ``payload`` is the decoded JSON, or the raw text if the body was not JSON.
    """

    payload: Any
    status: int
    headers: dict[str, str]


@dataclass(frozen=True)
class PreparedRequest:
    """A built request plus the url-encoded body it carries, if any."""

    request: httpx.Request
    form_body: str | None = None


class Transport:
    """Builds and sends requests over a pooled ``httpx.AsyncClient``."""

    def __init__(
        self,
        user_agent: str,
        timeout: float = 60.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.user_agent = user_agent
        self.timeout = get_timeout_config(timeout)
        if client is None:
            limits = httpx.Limits(
                max_connections=20,
                max_keepalive_connections=5,
            )
            client = httpx.AsyncClient(
                timeout=self.timeout,
                limits=limits,
                follow_redirects=True,
            )
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client

    def _base_headers(self, extra: dict[str, str] | None) -> dict[str, str]:
        headers = {
            "User-Agent": self.user_agent,
            "Accept-Encoding": "gzip",
        }
        if extra:
            headers.update(extra)
        return headers

    def build_request(
        self,
        method: str,
        url: str,
        form: NormalizedParams,
        headers: dict[str, str] | None = None,
    ) -> PreparedRequest:
        """Encode normalized parameters into a request.

        GET requests carry the parameters in the query string. POST requests
        use a url-encoded body unless multipart is requested, needed for a
        file, or worthwhile because of long fields.
        """
        headers = self._base_headers(headers)
        extensions = {"timeout": self.timeout.as_dict()}

        if method == "GET":
            request = httpx.Request(
                "GET", url, params=form.values, headers=headers, extensions=extensions
            )
            return PreparedRequest(request)

        values = dict(form.values)
        # Send the token last, so that a truncated body is never accepted
        if "token" in values:
            values["token"] = values.pop("token")

        if use_multipart(headers, form):
            headers.pop("Content-Type", None)
            parts: list[tuple[str, Any]] = [
                (key, (None, value)) for key, value in values.items()
            ]
            parts.extend(
                (key, (upload.filename, upload.stream))
                for key, upload in form.files.items()
            )
            request = httpx.Request(
                "POST", url, files=parts, headers=headers, extensions=extensions
            )
            return PreparedRequest(request)

        body = urlencode(values)
        headers["Content-Type"] = FORM_CONTENT_TYPE
        request = httpx.Request(
            "POST",
            url,
            content=body.encode("utf-8"),
            headers=headers,
            extensions=extensions,
        )
        return PreparedRequest(request, form_body=body)

    async def send(self, request: httpx.Request) -> httpx.Response:
        """Send one request.

        Raises:
            httpx.HTTPError: on connection failures and timeouts
        """
        return await self._client.send(request)

    async def aclose(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()


def use_multipart(headers: dict[str, str], form: NormalizedParams) -> bool:
    """Decide whether a POST body should be multipart/form-data."""
    if form.files:
        return True
    content_type = headers.get("Content-Type")
    if content_type == MULTIPART_CONTENT_TYPE:
        return True
    return form.has_long_fields and content_type is None


def decode_response(response: httpx.Response) -> DispatchResult:
    """Decode a response body.

    Raises:
        httpx.HTTPStatusError: if the status is not 2xx and the body is not JSON
    """
    try:
        payload = response.json()
    except ValueError:
        response.raise_for_status()
        payload = response.text

    return DispatchResult(
        payload=payload,
        status=response.status_code,
        headers=dict(response.headers),
    )
