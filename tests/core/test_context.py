"""Tests for core/context.py (per-call request context)."""

from __future__ import annotations

import msgspec
import pytest

from mwcall.core.context import RequestContext


class TestNextAttempt:
    """Tests for RequestContext.next_attempt."""

    def test_increments_attempt(self):
        ctx = RequestContext(params={"action": "edit"})

        assert ctx.next_attempt().attempt == 1
        assert ctx.next_attempt().next_attempt().attempt == 2

    def test_original_is_unchanged(self):
        ctx = RequestContext(params={"action": "edit", "token": "old"})

        retry = ctx.next_attempt(token="new")

        assert ctx.params["token"] == "old"
        assert ctx.attempt == 0
        assert retry.params == {"action": "edit", "token": "new"}

    def test_keeps_method_and_headers(self):
        ctx = RequestContext(params={}, method="POST", headers={"X-Test": "1"})

        retry = ctx.next_attempt()

        assert retry.method == "POST"
        assert retry.headers == {"X-Test": "1"}

    def test_context_is_frozen(self):
        ctx = RequestContext(params={})

        with pytest.raises(AttributeError):
            ctx.attempt = 5  # type: ignore[misc]


class TestResolveMethod:
    """Tests for RequestContext.resolve_method."""

    @pytest.mark.parametrize(
        "params,expected",
        [
            ({"action": "query", "meta": "siteinfo"}, "GET"),
            ({"action": "parse", "page": "Main Page"}, "GET"),
            ({"action": "parse", "text": "''hi''"}, "POST"),
            ({"action": "edit", "title": "Foo"}, "POST"),
            ({"action": "paraminfo"}, "POST"),
        ],
    )
    def test_default_method(self, params, expected):
        assert RequestContext(params=params).resolve_method() == expected

    def test_explicit_method_wins(self):
        ctx = RequestContext(params={"action": "query"}, method="POST")

        assert ctx.resolve_method() == "POST"

    def test_action_property(self):
        assert RequestContext(params={"action": "edit"}).action == "edit"
        assert RequestContext(params={}).action is None

    def test_is_a_msgspec_struct(self):
        ctx = RequestContext(params={"action": "query"})

        assert msgspec.structs.asdict(ctx)["attempt"] == 0
