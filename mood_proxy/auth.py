"""
Token lifecycle: authorization start, code exchange, proactive refresh and the auth guard.
Token endpoint calls authenticate the client with HTTP Basic (client_id:client_secret).
"""
import logging

import httpx

from mood_proxy.context import AppContext
from mood_proxy.errors import (
    AuthorizationDenied,
    InvalidState,
    NotAuthenticated,
    RefreshFailed,
    TokenExchangeFailed,
    ValidationFailed,
    upstream_payload,
)
from mood_proxy.oauth import build_authorize_url, generate_state
from mood_proxy.token_store import TokenRecord

logger = logging.getLogger(__name__)


def start_authorization(ctx: AppContext) -> str:
    """Record a fresh state and return the upstream authorize URL to redirect to."""
    settings = ctx.settings
    state = generate_state()
    ctx.states.add(state)
    logger.info("Authorization started (%d pending)", len(ctx.states))
    return build_authorize_url(
        authorize_url=settings.authorize_url,
        client_id=settings.client_id,
        redirect_uri=settings.redirect_uri,
        scope=settings.scope,
        state=state,
    )


def _token_request(ctx: AppContext, data: dict) -> httpx.Response:
    settings = ctx.settings
    return httpx.post(
        settings.token_url,
        data=data,
        auth=(settings.client_id, settings.client_secret),
        headers={"Accept": "application/json"},
    )


def _token_payload(r: httpx.Response, error_cls: type) -> dict:
    """Parsed token response; a body that is not a JSON object with access_token raises error_cls."""
    try:
        data = r.json()
    except ValueError:
        raise error_cls(
            "Token endpoint returned a non-JSON body", upstream_status=r.status_code, payload=upstream_payload(r)
        ) from None
    if not isinstance(data, dict) or not data.get("access_token"):
        raise error_cls("Token response has no access_token", upstream_status=r.status_code, payload=data)
    return data


def complete_authorization(
    ctx: AppContext,
    code: str | None,
    state: str | None,
    error: str | None = None,
    error_description: str | None = None,
) -> TokenRecord:
    """
    Validate and consume state, then exchange code for tokens.
    Unknown state never reaches the token endpoint.
    """
    if not state or not ctx.states.consume(state):
        raise InvalidState()
    if error:
        raise AuthorizationDenied(error, error_description or "")
    if not code:
        raise ValidationFailed("Missing code parameter.")

    try:
        r = _token_request(
            ctx,
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": ctx.settings.redirect_uri,
            },
        )
    except httpx.HTTPError as e:
        raise TokenExchangeFailed(f"Token endpoint unreachable: {e}") from e

    if not 200 <= r.status_code < 300:
        raise TokenExchangeFailed(upstream_status=r.status_code, payload=upstream_payload(r))

    data = _token_payload(r, TokenExchangeFailed)
    record = ctx.tokens.store(
        access_token=data["access_token"],
        refresh_token=data.get("refresh_token"),
        expires_in=int(data.get("expires_in", 3600)),
        scope=data.get("scope", ""),
    )
    logger.info("Authorization completed; access token valid for %ss", data.get("expires_in", 3600))
    return record


def ensure_fresh(ctx: AppContext) -> bool:
    """
    Refresh the access token if it is within the refresh buffer of expiry.
    Returns True if a refresh happened. On failure the stored token is left as is.
    """
    record = ctx.tokens.get()
    if record is None or not record.refresh_token:
        return False
    if not record.expiring(buffer_seconds=ctx.settings.refresh_buffer):
        return False

    try:
        r = _token_request(
            ctx,
            {
                "grant_type": "refresh_token",
                "refresh_token": record.refresh_token,
            },
        )
    except httpx.HTTPError as e:
        raise RefreshFailed(f"Token endpoint unreachable: {e}") from e

    if not 200 <= r.status_code < 300:
        raise RefreshFailed(upstream_status=r.status_code, payload=upstream_payload(r))

    data = _token_payload(r, RefreshFailed)
    ctx.tokens.update(
        access_token=data["access_token"],
        expires_in=int(data.get("expires_in", 3600)),
        refresh_token=data.get("refresh_token"),
    )
    logger.info("Access token refreshed")
    return True


def require_authenticated(ctx: AppContext) -> str:
    """Guard for API routes: a usable access token, or NotAuthenticated / RefreshFailed."""
    if ctx.tokens.get() is None:
        raise NotAuthenticated()
    ensure_fresh(ctx)
    return ctx.tokens.get().access_token
