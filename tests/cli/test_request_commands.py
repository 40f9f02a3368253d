"""Tests for cli/commands/request.py (call, continued and mass commands)."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, patch

import httpx
import pytest
import typer
from typer.testing import CliRunner

from mwcall.cli.app import ExitCode, app
from mwcall.cli.commands import request as request_module
from mwcall.cli.commands.request import open_client, parse_params, read_items
from mwcall.config.settings import ClientOptions, OAuthCredentials
from mwcall.core.client import ApiClient

runner = CliRunner()

SITEINFO = {"batchcomplete": True, "query": {"general": {"sitename": "Example"}}}


def invoke_with(client, args):
    with patch.object(request_module, "open_client", AsyncMock(return_value=client)) as mock_open:
        result = runner.invoke(app, args)
    return result, mock_open


class TestParseParams:
    """Tests for parse_params function."""

    def test_key_value_pairs(self):
        assert parse_params(["action=query", "meta=siteinfo"]) == {
            "action": "query",
            "meta": "siteinfo",
        }

    def test_repeated_keys_become_lists(self):
        assert parse_params(["titles=A", "titles=B", "titles=C"]) == {"titles": ["A", "B", "C"]}

    def test_value_may_contain_equals(self):
        assert parse_params(["text=a=b"]) == {"text": "a=b"}

    def test_empty_value(self):
        assert parse_params(["summary="]) == {"summary": ""}

    @pytest.mark.parametrize("pair", ["action", "=query"])
    def test_rejects_malformed_pairs(self, pair):
        with pytest.raises(typer.BadParameter):
            parse_params([pair])


class TestReadItems:
    """Tests for read_items function."""

    def test_skips_blank_lines(self, tmp_path):
        path = tmp_path / "titles.txt"
        path.write_text("Foo\n\n  Bar  \n")

        assert read_items(path) == ["Foo", "Bar"]


class TestOpenClient:
    """Tests for open_client function."""

    @pytest.mark.asyncio
    async def test_anonymous_client_does_not_log_in(self):
        with patch.object(ApiClient, "login", AsyncMock()) as mock_login:
            client = await open_client(ClientOptions(api_url="https://wiki.example.org/w/api.php"))

        mock_login.assert_not_awaited()
        await client.aclose()

    @pytest.mark.asyncio
    async def test_logs_in_with_username(self):
        options = ClientOptions(
            api_url="https://wiki.example.org/w/api.php", username="Bot", password="pw"
        )
        with patch.object(ApiClient, "login", AsyncMock()) as mock_login:
            client = await open_client(options)

        mock_login.assert_awaited_once()
        await client.aclose()

    @pytest.mark.asyncio
    async def test_oauth_fetches_tokens(self):
        options = ClientOptions(
            api_url="https://wiki.example.org/w/api.php",
            oauth=OAuthCredentials("a", "b", "c", "d"),
        )
        with patch.object(ApiClient, "get_tokens_and_site_info", AsyncMock()) as mock_fetch:
            client = await open_client(options)

        mock_fetch.assert_awaited_once()
        await client.aclose()

    @pytest.mark.asyncio
    async def test_closes_client_when_login_fails(self):
        options = ClientOptions(
            api_url="https://wiki.example.org/w/api.php", username="Bot", password="pw"
        )
        with patch.object(ApiClient, "login", AsyncMock(side_effect=RuntimeError("down"))):
            with patch.object(ApiClient, "aclose", AsyncMock()) as mock_close:
                with pytest.raises(RuntimeError):
                    await open_client(options)

        mock_close.assert_awaited_once()


class TestCallCommand:
    """Tests for the call command."""

    def test_prints_response_as_json(self, make_client, recorder):
        api = recorder(SITEINFO)
        client = make_client(api)

        result, _ = invoke_with(client, ["--quiet", "call", "action=query", "meta=siteinfo"])

        assert result.exit_code == 0
        assert json.loads(result.output) == SITEINFO
        assert api.params(0)["meta"] == "siteinfo"

    def test_api_url_option_reaches_client(self, make_client, recorder):
        client = make_client(recorder(SITEINFO))

        _, mock_open = invoke_with(
            client, ["--api-url", "https://other.example/w/api.php", "call", "action=query"]
        )

        options = mock_open.call_args.args[0]
        assert options.api_url == "https://other.example/w/api.php"

    def test_post_flag(self, make_client, recorder):
        api = recorder(SITEINFO)
        client = make_client(api)

        invoke_with(client, ["call", "--post", "action=query", "meta=siteinfo"])

        assert api.requests[0].method == "POST"

    def test_api_error_exit_code(self, make_client, recorder):
        api = recorder({"error": {"code": "protectedpage", "info": "This page has been protected."}})
        client = make_client(api)

        result, _ = invoke_with(client, ["call", "action=edit", "title=Foo"])

        assert result.exit_code == ExitCode.API_ERROR
        assert "protectedpage" in result.output

    def test_network_error_exit_code(self, make_client, recorder):
        client = make_client(recorder(httpx.ConnectError("Name or service not known")))

        result, _ = invoke_with(client, ["call", "action=query"])

        assert result.exit_code == ExitCode.NETWORK_ERROR

    def test_missing_url_is_config_error(self):
        result = runner.invoke(app, ["call", "action=query"])

        assert result.exit_code == ExitCode.CONFIG_ERROR
        assert "No URL provided" in result.output

    def test_quiet_suppresses_error_output(self):
        result = runner.invoke(app, ["--quiet", "call", "action=query"])

        assert result.exit_code == ExitCode.CONFIG_ERROR
        assert "No URL provided" not in result.output


class TestContinuedCommand:
    """Tests for the continued command."""

    def test_respects_limit(self, make_client, recorder):
        api = recorder({"continue": {"apcontinue": "B", "continue": "-||"}, "query": {"allpages": []}})
        client = make_client(api)

        result, _ = invoke_with(client, ["--quiet", "continued", "list=allpages", "--limit", "2"])

        assert result.exit_code == 0
        assert len(json.loads(result.output)) == 2
        assert api.call_count == 2


class TestMassCommand:
    """Tests for the mass command."""

    def test_splits_items_from_file(self, make_client, recorder, tmp_path):
        items = tmp_path / "titles.txt"
        items.write_text("\n".join(f"Page {n}" for n in range(120)))
        api = recorder({"query": {"pages": []}})
        client = make_client(api)

        result, _ = invoke_with(
            client, ["--quiet", "mass", "titles", "prop=info", "--items-file", str(items)]
        )

        assert result.exit_code == 0
        assert len(json.loads(result.output)) == 3
        assert api.params(0)["prop"] == "info"

    def test_failed_chunks_are_reported_inline(self, make_client, recorder, tmp_path):
        items = tmp_path / "titles.txt"
        items.write_text("A\nB\n")
        client = make_client(recorder({"error": {"code": "toomanyvalues", "info": "Too many."}}))

        result, _ = invoke_with(client, ["--quiet", "mass", "titles", "--items-file", str(items)])

        assert result.exit_code == 0
        assert json.loads(result.output) == [{"error": "toomanyvalues: Too many.", "code": "toomanyvalues"}]
