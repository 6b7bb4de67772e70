"""
Forwarding calls to the Spotify Web API with the stored Bearer token.
One request per operation; no retries or caching. Non-2xx becomes UpstreamRequestFailed.
"""
import logging
from typing import Any

import httpx

from mood_proxy.config import API_BASE_URL
from mood_proxy.errors import TrackNotFound, UpstreamRequestFailed, ValidationFailed, upstream_payload

logger = logging.getLogger(__name__)

# POST /playlists/{id}/tracks accepts at most 100 URIs per call
MAX_TRACKS_PER_ADD = 100


def _request(
    method: str,
    token: str,
    path: str,
    *,
    params: dict | None = None,
    json: dict | None = None,
    base_url: str = API_BASE_URL,
) -> Any:
    try:
        r = httpx.request(
            method,
            f"{base_url}{path}",
            params=params,
            json=json,
            headers={"Authorization": f"Bearer {token}"},
        )
    except httpx.HTTPError as e:
        raise UpstreamRequestFailed(f"{method} {path} failed: {e}") from e

    if not 200 <= r.status_code < 300:
        raise UpstreamRequestFailed(
            f"{method} {path} returned {r.status_code}",
            upstream_status=r.status_code,
            payload=upstream_payload(r),
        )
    if r.status_code == 204 or not r.headers.get("content-type", "").startswith("application/json"):
        return None
    return r.json()


def get_recommendations(token: str, seeds: list[str], limit: int = 20, *, base_url: str = API_BASE_URL) -> list[dict]:
    data = _request(
        "GET",
        token,
        "/recommendations",
        params={"seed_genres": ",".join(seeds), "limit": limit},
        base_url=base_url,
    )
    return (data or {}).get("tracks", [])


def get_current_user(token: str, *, base_url: str = API_BASE_URL) -> dict:
    return _request("GET", token, "/me", base_url=base_url) or {}


def create_playlist(
    token: str,
    user_id: str,
    name: str,
    description: str = "",
    public: bool = True,
    *,
    base_url: str = API_BASE_URL,
) -> dict:
    return _request(
        "POST",
        token,
        f"/users/{user_id}/playlists",
        json={"name": name, "description": description, "public": public},
        base_url=base_url,
    ) or {}


def add_tracks_to_playlist(token: str, playlist_id: str, uris: list[str], *, base_url: str = API_BASE_URL) -> int:
    """Append uris in chunks; returns how many were sent."""
    for i in range(0, len(uris), MAX_TRACKS_PER_ADD):
        _request(
            "POST",
            token,
            f"/playlists/{playlist_id}/tracks",
            json={"uris": uris[i : i + MAX_TRACKS_PER_ADD]},
            base_url=base_url,
        )
    return len(uris)


def search_track(token: str, query: str, *, base_url: str = API_BASE_URL) -> dict | None:
    """First track matching query, or None."""
    data = _request(
        "GET",
        token,
        "/search",
        params={"q": query, "type": "track", "limit": 1},
        base_url=base_url,
    )
    items = ((data or {}).get("tracks") or {}).get("items") or []
    return items[0] if items else None


def queue_track(token: str, uri: str, device_id: str | None = None, *, base_url: str = API_BASE_URL) -> None:
    params = {"uri": uri}
    if device_id:
        params["device_id"] = device_id
    _request("POST", token, "/me/player/queue", params=params, base_url=base_url)


def resolve_and_queue(
    token: str,
    uri: str | None = None,
    track_name: str | None = None,
    device_id: str | None = None,
    *,
    base_url: str = API_BASE_URL,
) -> dict:
    """Queue by uri, or search track_name first. Returns {"uri", "name"} of the queued track."""
    name = None
    if not uri:
        if not track_name:
            raise ValidationFailed("Provide uri or track_name.")
        track = search_track(token, track_name, base_url=base_url)
        if track is None:
            raise TrackNotFound(f"No track found for '{track_name}'")
        uri = track["uri"]
        name = track.get("name")
    queue_track(token, uri, device_id, base_url=base_url)
    logger.info("Queued %s", uri)
    return {"uri": uri, "name": name}
