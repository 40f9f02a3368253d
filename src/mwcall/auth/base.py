"""Authentication strategies for outgoing requests.

A client uses exactly one strategy, chosen once from its options. Each
strategy attaches its proof of identity to a built ``httpx.Request``; none of
them retries anything, failures surface as API errors handled by the
retry policy.
"""

from __future__ import annotations

from abc import ABC
from abc import abstractmethod
from enum import StrEnum

import httpx
from oauthlib.oauth1 import SIGNATURE_HMAC
from oauthlib.oauth1 import Client as OAuth1Client

from mwcall.config.settings import ClientOptions
from mwcall.config.settings import OAuthCredentials
from mwcall.errors.types import ConfigError

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class AuthMode(StrEnum):
    """Credential modes. Only one is active per client."""

    SESSION = "session"
    OAUTH1 = "oauth1"
    OAUTH2 = "oauth2"

    @property
    def is_oauth(self) -> bool:
        return self in (AuthMode.OAUTH1, AuthMode.OAUTH2)


class Authenticator(ABC):
    """Attaches credentials to requests."""

    mode: AuthMode

    @abstractmethod
    def apply(self, request: httpx.Request, form_body: str | None = None) -> None:
        """Attach credentials to ``request``.

        Args:
            request: The built request, modified in place
            form_body: The url-encoded body, if the request carries one
        """

    def store(self, response: httpx.Response) -> None:
        """Record credential state returned by the server."""


class SessionAuth(Authenticator):
    """Cookie-based session established by logging in."""

    mode = AuthMode.SESSION

    def __init__(self, cookies: httpx.Cookies | None = None) -> None:
        self.cookies = cookies if cookies is not None else httpx.Cookies()

    def apply(self, request: httpx.Request, form_body: str | None = None) -> None:
        self.cookies.set_cookie_header(request)

    def store(self, response: httpx.Response) -> None:
        self.cookies.extract_cookies(response)

    def clear(self) -> None:
        """Drop all session cookies."""
        self.cookies.clear()


class OAuth1Auth(Authenticator):
    """OAuth 1.0a request signing with HMAC-SHA1."""

    mode = AuthMode.OAUTH1

    def __init__(self, credentials: OAuthCredentials) -> None:
        if not credentials.is_complete():
            # The API would otherwise answer with a confusing
            # mwoauth-invalid-authorization error
            raise ConfigError("Invalid OAuth config")
        self.credentials = credentials
        self._client = OAuth1Client(
            credentials.consumer_token,
            client_secret=credentials.consumer_secret,
            resource_owner_key=credentials.access_token,
            resource_owner_secret=credentials.access_secret,
            signature_method=SIGNATURE_HMAC,
        )

    def authorization_header(
        self, method: str, url: str, form_body: str | None = None
    ) -> str:
        """Compute the Authorization header for a request.

        Only url-encoded bodies take part in the signature; multipart bodies
        are signed as if empty.
        """
        if form_body:
            _, headers, _ = self._client.sign(
                url,
                http_method=method,
                body=form_body,
                headers={"Content-Type": FORM_CONTENT_TYPE},
            )
        else:
            _, headers, _ = self._client.sign(url, http_method=method)
        return headers["Authorization"]

    def apply(self, request: httpx.Request, form_body: str | None = None) -> None:
        request.headers["Authorization"] = self.authorization_header(
            request.method, str(request.url), form_body
        )


class OAuth2Auth(Authenticator):
    """Bearer token authentication."""

    mode = AuthMode.OAUTH2

    def __init__(self, access_token: str) -> None:
        self.access_token = access_token

    def to_headers(self) -> dict[str, str]:
        """Return Authorization header."""
        return {"Authorization": f"Bearer {self.access_token}"}

    def apply(self, request: httpx.Request, form_body: str | None = None) -> None:
        request.headers.update(self.to_headers())


def select_authenticator(options: ClientOptions) -> Authenticator:
    """Pick the authentication strategy for a set of client options.

    An OAuth 2 token wins over OAuth 1 credentials, which win over a
    cookie session. Partially filled OAuth 1 credentials are an error.
    """
    if options.oauth2_access_token:
        return OAuth2Auth(options.oauth2_access_token)
    if not options.oauth.is_empty():
        return OAuth1Auth(options.oauth)
    return SessionAuth()
