"""API client: the single entry point for calls to the remote API."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from collections.abc import Awaitable
from collections.abc import Callable
from collections.abc import Iterable
from re import Pattern
from typing import Any

import httpx

from mwcall.auth.base import Authenticator
from mwcall.auth.base import AuthMode
from mwcall.auth.base import SessionAuth
from mwcall.auth.base import select_authenticator
from mwcall.auth.state import TOKEN_TYPES
from mwcall.auth.state import SessionState
from mwcall.config.settings import ClientOptions
from mwcall.config.settings import get_config
from mwcall.core import batch
from mwcall.core import paging
from mwcall.core.context import RequestContext
from mwcall.core.http import DispatchResult
from mwcall.core.http import Transport
from mwcall.core.http import decode_response
from mwcall.core.params import merge_params
from mwcall.core.params import normalize_params
from mwcall.core.retry import RetryAction
from mwcall.core.retry import classify_response
from mwcall.core.retry import log_warnings
from mwcall.core.retry import should_retry_transport
from mwcall.core.shutoff import EmergencyShutoff
from mwcall.errors.types import ApiError
from mwcall.errors.types import LocalErrorCode
from mwcall.errors.types import RemoteErrorCode

logger = logging.getLogger(__name__)

SITEINFO_PROPS = ["general", "namespaces", "namespacealiases"]

_ABORTED_LOGIN_REASONS = {
    "Cannot log in when using MediaWiki\\Session\\BotPasswordSessionProvider sessions.": (
        "Already logged in as {username}, logout first to re-login"
    ),
    "Cannot log in when using MediaWiki\\Extension\\OAuth\\SessionProvider sessions.": (
        "Cannot use login/logout while using OAuth"
    ),
}


class ApiClient:
    """Client for one API endpoint.

    Holds the session state (tokens, capability flags) and exactly one
    authentication strategy. Create one client per wiki.

    Usage:
        async with await ApiClient.create(options) as client:
            data = await client.query({"meta": "siteinfo"})
    """

    def __init__(
        self,
        options: ClientOptions | None = None,
        *,
        transport: Transport | None = None,
        authenticator: Authenticator | None = None,
    ) -> None:
        self.options = options if options is not None else get_config()
        self.auth = (
            authenticator
            if authenticator is not None
            else select_authenticator(self.options)
        )
        self.transport = transport or Transport(
            self.options.user_agent, self.options.timeout
        )
        self.state = SessionState()
        self.shutoff: EmergencyShutoff | None = None

    @classmethod
    async def create(cls, options: ClientOptions | None = None, **kwargs: Any) -> ApiClient:
        """Create a client ready for use.

        Logs in for session authentication; under OAuth, fetches tokens and
        site info instead.
        """
        client = cls(options, **kwargs)
        if client.auth_mode.is_oauth:
            await client.get_tokens_and_site_info()
        else:
            await client.login()
        return client

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Stop background work and close the transport."""
        self.disable_emergency_shutoff()
        await self.transport.aclose()

    @property
    def auth_mode(self) -> AuthMode:
        return self.auth.mode

    # Core requests

    async def call(
        self,
        params: dict[str, Any],
        *,
        method: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """Execute one logical API call.

        Retryable conditions (bad token, maxlag, read-only wiki, lost
        session, transient network errors) are resolved here within the
        ``max_retries`` budget.

        Args:
            params: API parameters, merged over the default parameters
            method: Force "GET" or "POST"
            headers: Extra request headers

        Returns:
            The decoded response

        Raises:
            ApiError: if the API reports an error that cannot be recovered
            httpx.HTTPError: if the request cannot be delivered
        """
        if self.shutoff is not None and self.shutoff.active:
            raise ApiError(
                LocalErrorCode.SHUTOFF,
                f"Client was shut off (check {self.shutoff.page})",
            )

        ctx = RequestContext(
            params=merge_params(self.options.default_params, params),
            method=method.upper() if method else None,
            headers=dict(headers or {}),
        )

        if not self.options.api_url:
            raise ApiError(
                LocalErrorCode.NO_URL,
                "No URL provided for API request!",
                request=ctx,
                disable_retry=True,
            )

        return await self._execute(ctx)

    async def query(
        self, params: dict[str, Any] | None = None, **kwargs: Any
    ) -> dict[str, Any]:
        """Execute an ``action=query`` call."""
        return await self.call({"action": "query", **(params or {})}, **kwargs)

    async def _dispatch(self, ctx: RequestContext) -> DispatchResult:
        form = normalize_params(ctx.params)
        method = "POST" if form.files else ctx.resolve_method()

        prepared = self.transport.build_request(
            method, self.options.api_url, form, ctx.headers
        )
        self.auth.apply(prepared.request, prepared.form_body)

        response = await self.transport.send(prepared.request)
        self.auth.store(response)
        return decode_response(response)

    async def _execute(self, ctx: RequestContext) -> dict[str, Any]:
        options = self.options

        while True:
            try:
                result = await self._dispatch(ctx)
            except httpx.HTTPError as exc:
                if not should_retry_transport(exc, ctx.attempt, options.max_retries):
                    raise
                logger.warning(
                    "Encountered %r, retrying in %s seconds", exc, options.retry_pause
                )
                await asyncio.sleep(options.retry_pause)
                ctx = ctx.next_attempt()
                continue

            if isinstance(result.payload, dict) and not options.suppress_api_warnings:
                log_warnings(result.payload)

            decision = classify_response(
                result,
                ctx,
                max_retries=options.max_retries,
                auth_mode=self.auth_mode,
                retry_pause=options.retry_pause,
            )
            error = decision.error

            match decision.action:
                case RetryAction.ACCEPT:
                    return result.payload

                case RetryAction.RETRY_TOKEN:
                    logger.warning(
                        "Encountered badtoken error, fetching new token and retrying"
                    )
                    token = await self._fresh_token(ctx, error)
                    ctx = ctx.next_attempt(token=token)

                case RetryAction.RETRY_BACKOFF:
                    if error.code == RemoteErrorCode.MAXLAG:
                        logger.warning(
                            "Encountered maxlag: %s seconds lagged. Waiting for %s seconds before retrying",
                            error.details.get("lag"),
                            decision.pause,
                        )
                    else:
                        logger.warning(
                            "Encountered %s error, waiting for %s seconds before retrying",
                            error.code,
                            decision.pause,
                        )
                    await asyncio.sleep(decision.pause)
                    ctx = ctx.next_attempt()

                case RetryAction.RETRY_REAUTH:
                    logger.warning(
                        "Received %s, attempting to log in and retry", error.code
                    )
                    await self.login()
                    if "token" in ctx.params:
                        ctx = ctx.next_attempt(token=await self._fresh_token(ctx, error))
                    else:
                        ctx = ctx.next_attempt()

                case RetryAction.RETRY_OAUTH_NONCE:
                    logger.warning(
                        "Retrying failed OAuth authentication in %s seconds",
                        decision.pause,
                    )
                    await asyncio.sleep(decision.pause)
                    ctx = ctx.next_attempt()

                case _:
                    raise error

    async def _fresh_token(self, ctx: RequestContext, error: ApiError) -> str:
        """Refresh tokens and return the one required by the pending action.

        Raises ``error`` if no such token can be obtained.
        """
        try:
            token_type, _ = await asyncio.gather(
                self.get_token_type(ctx.action),
                self.get_tokens(),
            )
        except (ApiError, httpx.HTTPError) as exc:
            raise error from exc

        token = self.state.token(token_type) if token_type else None
        if not token:
            raise error
        return token

    # Session and token management

    async def login(
        self, username: str | None = None, password: str | None = None
    ) -> dict[str, Any]:
        """Log in with a bot password.

        Fetches a login token, posts the credentials, then refreshes tokens
        and site info.

        Raises:
            ApiError: on missing credentials or a rejected login
        """
        if self.auth_mode.is_oauth:
            raise ApiError(
                LocalErrorCode.OAUTH_SESSION, "Cannot use login/logout while using OAuth"
            )

        self.options = self.options.merged(username=username, password=password)
        username = self.options.username
        password = self.options.password
        api_url = self.options.api_url
        if not username or not password or not api_url:
            raise ApiError(
                LocalErrorCode.NO_LOGIN_CREDENTIALS, "Incomplete login credentials!"
            )

        login_string = f"{username}@{api_url.replace('/api.php', '')}"

        # assert would fail until the login completes
        token_response = await self.call(
            {
                "action": "query",
                "meta": "tokens",
                "type": "login",
                "assert": None,
            }
        )
        tokens = token_response.get("query", {}).get("tokens", {})
        login_token = tokens.get("logintoken")
        if not login_token:
            logger.error("Login failed with invalid response: %s", login_string)
            raise ApiError(
                LocalErrorCode.NO_TOKEN,
                "Failed to get login token",
                response=token_response,
            )
        self.state.update_tokens(tokens)

        response = await self.call(
            {
                "action": "login",
                "lgname": username,
                "lgpassword": password,
                "lgtoken": login_token,
                "assert": None,
            }
        )

        reason = None
        data = response.get("login")
        if data:
            result = data.get("result")
            if result == "Success":
                self.state.login_result = data
                self.state.logged_in = True
                if not self.options.silent:
                    logger.info("Login successful: %s", login_string)
                try:
                    await self.get_tokens_and_site_info()
                except (ApiError, httpx.HTTPError) as exc:
                    logger.warning("Failed fetching tokens and siteinfo: %s", exc)
                return data

            server_reason = data.get("reason")
            if result == "Aborted" and server_reason in _ABORTED_LOGIN_REASONS:
                reason = _ABORTED_LOGIN_REASONS[server_reason].format(username=username)
            elif result and server_reason:
                reason = f"{result}: {server_reason}"

        raise ApiError(
            LocalErrorCode.FAILED_LOGIN,
            reason or "Login failed",
            response=response,
        )

    async def logout(self) -> None:
        """Log out, clearing tokens and session cookies."""
        if self.auth_mode.is_oauth:
            raise ApiError(
                LocalErrorCode.OAUTH_SESSION, "Can't use logout() while using OAuth"
            )

        await self.call({"action": "logout", "token": self.state.csrf_token})
        self.state.reset()
        if isinstance(self.auth, SessionAuth):
            self.auth.clear()

    def _store_tokens(self, response: dict[str, Any]) -> None:
        tokens = response.get("query", {}).get("tokens")
        if not tokens:
            raise ApiError(
                LocalErrorCode.NO_TOKEN, "Could not get token", response=response
            )
        self.state.update_tokens(tokens)

    async def get_tokens(self) -> None:
        """Fetch all token types and store them in the session state."""
        response = await self.query({"meta": "tokens", "type": list(TOKEN_TYPES)})
        self._store_tokens(response)

    async def get_csrf_token(self) -> str:
        """Fetch tokens and return the CSRF (edit) token."""
        await self.get_tokens()
        return self.state.csrf_token

    async def get_tokens_and_site_info(self) -> None:
        """Fetch tokens, site info and user rights in a single request.

        Sets the high-limit flag if the account has the ``apihighlimits``
        right.
        """
        response = await self.query(
            {
                "meta": ["tokens", "siteinfo", "userinfo"],
                "type": list(TOKEN_TYPES),
                "siprop": SITEINFO_PROPS,
                "uiprop": "rights",
            }
        )
        query = response.get("query", {})
        self.state.site_info = {key: query[key] for key in SITEINFO_PROPS if key in query}
        self.state.update_user_info(query.get("userinfo", {}))
        self._store_tokens(response)

    async def get_site_info(self) -> dict[str, Any]:
        """Fetch namespace and general site information."""
        response = await self.query({"meta": "siteinfo", "siprop": SITEINFO_PROPS})
        query = response.get("query", {})
        self.state.site_info = {key: query[key] for key in SITEINFO_PROPS if key in query}
        return self.state.site_info

    async def get_token_type(self, action: str | None) -> str | None:
        """Get the type of token an API action requires, if any."""
        response = await self.call({"action": "paraminfo", "modules": action})
        modules = response.get("paraminfo", {}).get("modules", [])
        if not modules:
            return None
        for param in modules[0].get("parameters", []):
            if param.get("name") == "token":
                return param.get("tokentype")
        return None

    async def userinfo(self, **params: Any) -> dict[str, Any]:
        """Get basic info about the logged-in user."""
        response = await self.query({"meta": "userinfo", **params})
        return response["query"]["userinfo"]

    # Bulk operations

    async def continued_query(
        self, query: dict[str, Any] | None = None, limit: int = 10
    ) -> list[dict[str, Any]]:
        """See :func:`mwcall.core.paging.continued_query`."""
        return await paging.continued_query(self, query, limit)

    def continued_query_gen(
        self, query: dict[str, Any] | None = None, limit: int | None = None
    ) -> AsyncIterator[dict[str, Any]]:
        """See :func:`mwcall.core.paging.continued_query_gen`."""
        return paging.continued_query_gen(self, query, limit)

    async def mass_query(
        self, query: dict[str, Any], batch_field: str = "titles"
    ) -> list[dict[str, Any] | Exception]:
        """See :func:`mwcall.core.paging.mass_query`."""
        return await paging.mass_query(self, query, batch_field)

    def mass_query_gen(
        self,
        query: dict[str, Any],
        batch_field: str = "titles",
        batch_size: int | None = None,
    ) -> AsyncIterator[dict[str, Any]]:
        """See :func:`mwcall.core.paging.mass_query_gen`."""
        return paging.mass_query_gen(self, query, batch_field, batch_size)

    async def batch_operation(
        self,
        items: Iterable[Any],
        worker: Callable[[Any, int], Awaitable[Any]],
        concurrency: int = 5,
        retries: int = 0,
    ) -> batch.BatchResult:
        """See :func:`mwcall.core.batch.batch_operation`."""
        return await batch.batch_operation(
            items, worker, concurrency, retries, silent=self.options.silent
        )

    async def series_batch_operation(
        self,
        items: Iterable[Any],
        worker: Callable[[Any, int], Awaitable[Any]],
        delay: float = 5.0,
        retries: int = 0,
    ) -> batch.BatchResult:
        """See :func:`mwcall.core.batch.series_batch_operation`."""
        return await batch.series_batch_operation(
            items, worker, delay, retries, silent=self.options.silent
        )

    # Emergency shutoff

    def enable_emergency_shutoff(
        self,
        page: str,
        condition: str | Pattern[str] | Callable[[str], bool] = r"^\s*$",
        interval: float = 10.0,
        on_shutoff: Callable[[str], None] | None = None,
    ) -> EmergencyShutoff:
        """Poll ``page`` and stop all calls once its text meets ``condition``.

        Must be called from a running event loop.
        """
        self.disable_emergency_shutoff()
        self.shutoff = EmergencyShutoff(
            self, page, condition=condition, interval=interval, on_shutoff=on_shutoff
        )
        self.shutoff.start()
        return self.shutoff

    def disable_emergency_shutoff(self) -> None:
        """Stop polling the shutoff page. Does not clear a triggered shutoff."""
        if self.shutoff is not None:
            self.shutoff.stop()
