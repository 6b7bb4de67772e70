"""Tests for the token lifecycle: code exchange, refresh and the auth guard."""
import time
from unittest.mock import patch

import httpx
import pytest

from mood_proxy.auth import complete_authorization, ensure_fresh, require_authenticated, start_authorization
from mood_proxy.errors import (
    AuthorizationDenied,
    InvalidState,
    NotAuthenticated,
    RefreshFailed,
    TokenExchangeFailed,
    ValidationFailed,
)
from mood_proxy.token_store import TokenRecord


class MockTokenResponse:
    status_code = 200
    headers = {"content-type": "application/json"}

    def json(self):
        return {
            "access_token": "at",
            "token_type": "Bearer",
            "expires_in": 3600,
            "scope": "playlist-modify-public",
            "refresh_token": "rt",
        }


class MockRefreshResponse:
    status_code = 200
    headers = {"content-type": "application/json"}

    def json(self):
        return {"access_token": "new-at", "token_type": "Bearer", "expires_in": 3600}


class MockErrorResponse:
    status_code = 400
    headers = {"content-type": "application/json"}
    text = '{"error": "invalid_grant"}'

    def json(self):
        return {"error": "invalid_grant", "error_description": "Invalid authorization code"}


class MockHtmlResponse:
    status_code = 200
    headers = {"content-type": "text/html"}
    text = "<html><body>Proxy login</body></html>"

    def json(self):
        raise ValueError("Expecting value: line 1 column 1 (char 0)")


def _state_from(url: str) -> str:
    return httpx.URL(url).params["state"]


def test_start_authorization_records_state(ctx):
    url = start_authorization(ctx)
    assert url.startswith("https://accounts.example/authorize?")
    assert _state_from(url) in ctx.states


def test_complete_authorization_stores_tokens(ctx):
    state = _state_from(start_authorization(ctx))
    with patch("mood_proxy.auth.httpx.post", return_value=MockTokenResponse()) as post:
        record = complete_authorization(ctx, "auth-code", state)
    assert record.access_token == "at"
    assert ctx.tokens.get().refresh_token == "rt"
    assert ctx.tokens.get().expires_at > time.time() + 3500

    _, kwargs = post.call_args
    assert post.call_args[0][0] == "https://accounts.example/api/token"
    assert kwargs["auth"] == ("test-client", "test-secret")
    assert kwargs["data"]["grant_type"] == "authorization_code"
    assert kwargs["data"]["code"] == "auth-code"
    assert kwargs["data"]["redirect_uri"] == "http://127.0.0.1:3000/callback"


def test_unknown_state_never_contacts_token_endpoint(ctx):
    with patch("mood_proxy.auth.httpx.post") as post:
        with pytest.raises(InvalidState):
            complete_authorization(ctx, "code", "never-issued")
        with pytest.raises(InvalidState):
            complete_authorization(ctx, "code", None)
    post.assert_not_called()


def test_state_is_accepted_once(ctx):
    state = _state_from(start_authorization(ctx))
    with patch("mood_proxy.auth.httpx.post", return_value=MockTokenResponse()):
        complete_authorization(ctx, "code", state)
        with pytest.raises(InvalidState):
            complete_authorization(ctx, "code", state)


def test_state_consumed_even_when_exchange_fails(ctx):
    state = _state_from(start_authorization(ctx))
    with patch("mood_proxy.auth.httpx.post", return_value=MockErrorResponse()):
        with pytest.raises(TokenExchangeFailed) as exc_info:
            complete_authorization(ctx, "bad-code", state)
    assert exc_info.value.upstream_status == 400
    assert exc_info.value.payload["error"] == "invalid_grant"
    assert state not in ctx.states
    assert ctx.tokens.get() is None


def test_exchange_transport_error(ctx):
    state = _state_from(start_authorization(ctx))
    with patch("mood_proxy.auth.httpx.post", side_effect=httpx.ConnectError("refused")):
        with pytest.raises(TokenExchangeFailed):
            complete_authorization(ctx, "code", state)


def test_missing_code(ctx):
    state = _state_from(start_authorization(ctx))
    with pytest.raises(ValidationFailed):
        complete_authorization(ctx, None, state)
    assert state not in ctx.states


def test_denied_consent(ctx):
    state = _state_from(start_authorization(ctx))
    with pytest.raises(AuthorizationDenied) as exc_info:
        complete_authorization(ctx, None, state, error="access_denied")
    assert exc_info.value.error == "access_denied"
    assert state not in ctx.states


def test_ensure_fresh_noop_when_valid(ctx):
    ctx.tokens.store(access_token="at", refresh_token="rt", expires_in=3600)
    with patch("mood_proxy.auth.httpx.post") as post:
        assert ensure_fresh(ctx) is False
    post.assert_not_called()


def test_ensure_fresh_noop_without_refresh_token(ctx):
    ctx.tokens.store(access_token="at", refresh_token=None, expires_in=0)
    with patch("mood_proxy.auth.httpx.post") as post:
        assert ensure_fresh(ctx) is False
    post.assert_not_called()


def test_ensure_fresh_refreshes_near_expiry(ctx):
    ctx.tokens.store(access_token="old-at", refresh_token="rt", expires_in=5)
    with patch("mood_proxy.auth.httpx.post", return_value=MockRefreshResponse()) as post:
        assert ensure_fresh(ctx) is True
    assert post.call_count == 1
    assert post.call_args[1]["data"] == {"grant_type": "refresh_token", "refresh_token": "rt"}
    record = ctx.tokens.get()
    assert record.access_token == "new-at"
    assert record.refresh_token == "rt"
    assert record.expires_at > time.time() + 3500


def test_ensure_fresh_failure_keeps_stored_token(ctx):
    ctx.tokens._record = TokenRecord(access_token="old-at", refresh_token="rt", expires_at=time.time() - 1)
    before = ctx.tokens.get()
    with patch("mood_proxy.auth.httpx.post", return_value=MockErrorResponse()) as post:
        with pytest.raises(RefreshFailed):
            ensure_fresh(ctx)
    assert post.call_count == 1
    assert ctx.tokens.get() is before
    assert ctx.tokens.get().access_token == "old-at"


def test_require_authenticated_before_login(ctx):
    with patch("mood_proxy.auth.httpx.post") as post:
        with pytest.raises(NotAuthenticated):
            require_authenticated(ctx)
    post.assert_not_called()


def test_require_authenticated_returns_fresh_token(ctx):
    ctx.tokens.store(access_token="old-at", refresh_token="rt", expires_in=0)
    with patch("mood_proxy.auth.httpx.post", return_value=MockRefreshResponse()):
        assert require_authenticated(ctx) == "new-at"


def test_exchange_non_json_body(ctx):
    state = _state_from(start_authorization(ctx))
    with patch("mood_proxy.auth.httpx.post", return_value=MockHtmlResponse()):
        with pytest.raises(TokenExchangeFailed) as exc_info:
            complete_authorization(ctx, "code", state)
    assert exc_info.value.upstream_status == 200
    assert "Proxy login" in exc_info.value.payload
    assert ctx.tokens.get() is None


def test_refresh_non_json_body_keeps_stored_token(ctx):
    ctx.tokens._record = TokenRecord(access_token="old-at", refresh_token="rt", expires_at=time.time() - 1)
    with patch("mood_proxy.auth.httpx.post", return_value=MockHtmlResponse()):
        with pytest.raises(RefreshFailed) as exc_info:
            ensure_fresh(ctx)
    assert "Proxy login" in exc_info.value.payload
    assert ctx.tokens.get().access_token == "old-at"
