"""Tests for auth/base.py (authentication strategies)."""

from __future__ import annotations

import httpx
import pytest

from mwcall.auth.base import (
    AuthMode,
    OAuth1Auth,
    OAuth2Auth,
    SessionAuth,
    select_authenticator,
)
from mwcall.config.settings import ClientOptions, OAuthCredentials
from mwcall.errors.types import ConfigError

API_URL = "https://wiki.example.org/w/api.php"

CREDENTIALS = OAuthCredentials(
    consumer_token="consumer",
    consumer_secret="consumer-secret",
    access_token="access",
    access_secret="access-secret",
)


class TestSelectAuthenticator:
    """Tests for select_authenticator function."""

    def test_session_by_default(self):
        auth = select_authenticator(ClientOptions(api_url=API_URL))

        assert isinstance(auth, SessionAuth)
        assert auth.mode == AuthMode.SESSION
        assert not auth.mode.is_oauth

    def test_oauth1_from_credentials(self):
        auth = select_authenticator(ClientOptions(oauth=CREDENTIALS))

        assert isinstance(auth, OAuth1Auth)
        assert auth.mode.is_oauth

    def test_oauth2_wins(self):
        auth = select_authenticator(
            ClientOptions(oauth=CREDENTIALS, oauth2_access_token="bearer")
        )

        assert isinstance(auth, OAuth2Auth)

    def test_partial_oauth1_credentials_raise(self):
        with pytest.raises(ConfigError, match="Invalid OAuth config"):
            select_authenticator(
                ClientOptions(oauth=OAuthCredentials(consumer_token="c", access_token="a"))
            )


class TestSessionAuth:
    """Tests for SessionAuth."""

    def test_replays_stored_cookies(self):
        auth = SessionAuth()
        response = httpx.Response(
            200,
            headers={"Set-Cookie": "wiki_session=xyz; Path=/"},
            request=httpx.Request("POST", API_URL),
        )

        auth.store(response)
        request = httpx.Request("GET", API_URL)
        auth.apply(request)

        assert request.headers["Cookie"] == "wiki_session=xyz"

    def test_clear(self):
        auth = SessionAuth()
        auth.cookies.set("wiki_session", "xyz", domain="wiki.example.org")

        auth.clear()
        request = httpx.Request("GET", API_URL)
        auth.apply(request)

        assert "Cookie" not in request.headers


class TestOAuth1Auth:
    """Tests for OAuth1Auth."""

    def test_signs_get_request(self):
        auth = OAuth1Auth(CREDENTIALS)
        request = httpx.Request("GET", API_URL, params={"action": "query"})

        auth.apply(request)

        header = request.headers["Authorization"]
        assert header.startswith("OAuth ")
        assert 'oauth_consumer_key="consumer"' in header
        assert 'oauth_token="access"' in header
        assert 'oauth_signature_method="HMAC-SHA1"' in header

    def test_form_body_is_signed(self):
        auth = OAuth1Auth(CREDENTIALS)
        auth._client.nonce = "fixed-nonce"
        auth._client.timestamp = "1700000000"

        with_body = auth.authorization_header("POST", API_URL, "action=edit&title=Foo")
        same_body = auth.authorization_header("POST", API_URL, "action=edit&title=Foo")
        without_body = auth.authorization_header("POST", API_URL)

        assert with_body == same_body
        assert with_body != without_body


class TestOAuth2Auth:
    """Tests for OAuth2Auth."""

    def test_sets_bearer_header(self):
        auth = OAuth2Auth("secret-token")
        request = httpx.Request("GET", API_URL)

        auth.apply(request)

        assert request.headers["Authorization"] == "Bearer secret-token"
