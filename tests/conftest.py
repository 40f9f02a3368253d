"""Pytest configuration and shared fixtures for mwcall tests."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any
from typing import Generator
from unittest.mock import AsyncMock
from unittest.mock import patch
from urllib.parse import parse_qsl

import httpx
import pytest

from mwcall.config import settings
from mwcall.config.settings import ClientOptions
from mwcall.core.client import ApiClient
from mwcall.core.http import Transport

API_URL = "https://wiki.example.org/w/api.php"


def request_params(request: httpx.Request) -> dict[str, str]:
    """Decode the parameters of a GET or url-encoded POST request."""
    if request.method == "GET":
        return dict(request.url.params)
    return dict(parse_qsl(request.content.decode("utf-8"), keep_blank_values=True))


class ApiRecorder:
    """MockTransport handler that records requests and replays responses.

    Each response is a JSON-able payload, an ``httpx.Response``, an exception
    to raise, or a callable taking the request. The last response repeats.
    """

    def __init__(self, *responses: Any) -> None:
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        index = min(len(self.requests), len(self.responses)) - 1
        response = self.responses[index]
        if callable(response) and not isinstance(response, httpx.Response):
            response = response(request)
        if isinstance(response, Exception):
            raise response
        if isinstance(response, httpx.Response):
            return response
        return httpx.Response(200, json=response)

    @property
    def call_count(self) -> int:
        return len(self.requests)

    def params(self, index: int = -1) -> dict[str, str]:
        return request_params(self.requests[index])


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[Path, None, None]:
    """Point configuration at an empty directory and clear env overrides."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    monkeypatch.setenv("MWCALL_CONFIG_DIR", str(config_dir))
    for env_var in settings._ENV_OVERRIDES:
        monkeypatch.delenv(env_var, raising=False)
    settings._config = None
    yield config_dir
    settings._config = None


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    """Undo CLI logging setup so caplog sees mwcall records."""
    yield
    logger = logging.getLogger("mwcall")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def api_url() -> str:
    return API_URL


@pytest.fixture
def decode_params() -> Callable[[httpx.Request], dict[str, str]]:
    return request_params


@pytest.fixture
def recorder() -> type[ApiRecorder]:
    return ApiRecorder


@pytest.fixture
def make_client() -> Callable[..., ApiClient]:
    """Build an ApiClient whose requests go to a MockTransport handler."""

    def factory(handler: Callable[[httpx.Request], httpx.Response], **options: Any) -> ApiClient:
        options.setdefault("api_url", API_URL)
        transport = Transport(
            "mwcall-tests",
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )
        return ApiClient(ClientOptions(**options), transport=transport)

    return factory


@pytest.fixture
def no_sleep() -> Generator[AsyncMock, None, None]:
    """Patch asyncio.sleep so backoff waits return immediately."""
    with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        yield mock_sleep


@pytest.fixture
def tokens_response() -> dict:
    return {
        "batchcomplete": True,
        "query": {
            "tokens": {
                "csrftoken": "fresh+\\",
                "logintoken": "login+\\",
                "rollbacktoken": "rollback+\\",
            }
        },
    }
