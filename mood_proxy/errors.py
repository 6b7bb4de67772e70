"""
Failure types raised by the token lifecycle, the forwarder and the routes.
Each carries the HTTP status and OAuth-style error code used in the JSON error body.
"""
from typing import Any


class MoodProxyError(Exception):
    """Base for every failure converted to an error response at the route boundary."""

    status_code = 500
    error = "server_error"

    def __init__(self, description: str = "", *, upstream_status: int | None = None, payload: Any = None) -> None:
        self.description = description or self.__class__.__doc__ or self.error
        self.upstream_status = upstream_status
        self.payload = payload
        super().__init__(self.description)

    def to_dict(self) -> dict:
        body = {"error": self.error, "error_description": self.description}
        if self.upstream_status is not None:
            body["upstream_status"] = self.upstream_status
        if self.payload is not None:
            body["upstream_error"] = self.payload
        return body


class NotAuthenticated(MoodProxyError):
    """Not logged in. Visit /login first."""

    status_code = 401
    error = "not_authenticated"


class InvalidState(MoodProxyError):
    """Invalid or expired state. Please try logging in again."""

    status_code = 400
    error = "invalid_state"


class AuthorizationDenied(MoodProxyError):
    """Authorization was not granted."""

    status_code = 400
    error = "access_denied"

    def __init__(self, error: str, description: str = "") -> None:
        self.error = error or self.error
        super().__init__(description or error)


class ValidationFailed(MoodProxyError):
    """Request is missing a required field."""

    status_code = 400
    error = "validation_failed"


class TrackNotFound(MoodProxyError):
    """No track matched the search."""

    status_code = 404
    error = "track_not_found"


class TokenExchangeFailed(MoodProxyError):
    """Exchanging the authorization code for tokens failed."""

    error = "token_exchange_failed"


class RefreshFailed(MoodProxyError):
    """Refreshing the access token failed."""

    error = "refresh_failed"


class UpstreamRequestFailed(MoodProxyError):
    """Upstream API request failed."""

    error = "upstream_request_failed"


def upstream_payload(response) -> Any:
    """Error body from an upstream response: parsed JSON when possible, else raw text."""
    if response.headers.get("content-type", "").startswith("application/json"):
        try:
            return response.json()
        except ValueError:
            pass
    return response.text or None
