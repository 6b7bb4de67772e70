"""
mood_proxy web app.
GET /login and /callback run the Spotify authorization-code flow; /api/* turn a mood prompt
into genre seeds and forward to the Spotify Web API with the stored token.
"""
import html
import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from pydantic import BaseModel

from mood_proxy import spotify
from mood_proxy.auth import complete_authorization, require_authenticated, start_authorization
from mood_proxy.config import HOST, LOG_LEVEL, PORT, Settings, warn_missing
from mood_proxy.context import AppContext, get_context
from mood_proxy.errors import MoodProxyError, UpstreamRequestFailed, ValidationFailed
from mood_proxy.moods import map_prompt_to_seeds

logger = logging.getLogger(__name__)


def configure_logging(level: str = LOG_LEVEL) -> None:
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the shared context once; warn (but keep going) when credentials are missing."""
    configure_logging()
    if getattr(app.state, "context", None) is None:
        app.state.context = AppContext(settings=Settings())
    warn_missing(app.state.context.settings)
    yield


app = FastAPI(title="Mood Proxy", version="0.1.0", lifespan=lifespan)
app.state.context = None


@app.exception_handler(MoodProxyError)
async def mood_proxy_error_handler(request: Request, exc: MoodProxyError):
    """Single boundary for failures: log once, answer with a JSON error body."""
    if exc.status_code >= 500:
        logger.error(
            "%s %s failed: %s (upstream status %s)",
            request.method,
            request.url.path,
            exc.description,
            exc.upstream_status,
        )
    else:
        logger.warning("%s %s rejected: %s", request.method, request.url.path, exc.error)
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed query or body values answer 400 validation_failed like the explicit checks."""
    problems = []
    for err in exc.errors():
        where = ".".join(str(p) for p in err.get("loc", ()))
        problems.append(f"{where}: {err.get('msg', 'invalid')}")
    return await mood_proxy_error_handler(request, ValidationFailed("; ".join(problems) or "Invalid request."))


def authenticated(ctx: AppContext = Depends(get_context)) -> str:
    """Dependency: access token for /api/* routes, refreshed when close to expiry."""
    return require_authenticated(ctx)


class PlaylistRequest(BaseModel):
    name: str | None = None
    prompt: str | None = None
    description: str | None = None
    public: bool = True
    limit: int = 20


class QueueRequest(BaseModel):
    uri: str | None = None
    track_name: str | None = None
    device_id: str | None = None


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "ok", "service": "mood_proxy"}


@app.get("/", response_class=HTMLResponse)
def home():
    """Home page with link to start login."""
    return HTMLResponse(
        """<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>Mood Proxy</title></head>
<body>
  <h1>Mood Proxy</h1>
  <p><a href="/login">Log in with Spotify</a></p>
  <p><a href="/api/recommendations?prompt=calm">Calm recommendations</a> (requires login)</p>
</body>
</html>"""
    )


@app.get("/login")
def login(ctx: AppContext = Depends(get_context)):
    """Store a new state and redirect to the Spotify authorize page."""
    return RedirectResponse(url=start_authorization(ctx), status_code=302)


@app.get("/callback", response_class=HTMLResponse)
def callback(
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
    error_description: str | None = None,
    ctx: AppContext = Depends(get_context),
):
    """
    Handle redirect from Spotify. Validates and consumes state, then exchanges code for tokens.
    Tokens are kept server-side and not shown.
    """
    record = complete_authorization(ctx, code, state, error=error, error_description=error_description)
    return HTMLResponse(
        f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>Login success</title></head>
<body>
  <h1>Login success</h1>
  <p>Access token received.</p>
  <p>Scope: <code>{html.escape(record.scope)}</code></p>
  <p><a href="/">Home</a></p>
</body>
</html>"""
    )


@app.get("/api/recommendations")
def recommendations(
    prompt: str | None = None,
    limit: int = 20,
    token: str = Depends(authenticated),
    ctx: AppContext = Depends(get_context),
):
    """Mood prompt -> seed genres -> Spotify recommendations."""
    if not 1 <= limit <= 100:
        raise ValidationFailed("limit must be between 1 and 100.")
    mood = map_prompt_to_seeds(prompt)
    tracks = spotify.get_recommendations(token, mood.seeds, limit, base_url=ctx.settings.api_base_url)
    return {"tracks": tracks, "description": mood.label, "seeds": mood.seeds}


@app.post("/api/playlist", status_code=201)
def playlist(
    body: PlaylistRequest | None = None,
    token: str = Depends(authenticated),
    ctx: AppContext = Depends(get_context),
):
    """Create a playlist and fill it with recommendations for the prompt's mood."""
    body = body or PlaylistRequest()
    if not body.name or not body.name.strip():
        raise ValidationFailed("Playlist name is required.")
    if not 1 <= body.limit <= 100:
        raise ValidationFailed("limit must be between 1 and 100.")
    base_url = ctx.settings.api_base_url
    mood = map_prompt_to_seeds(body.prompt)
    description = body.description or f"{mood.label.capitalize()} mix: {', '.join(mood.seeds)}"

    tracks = spotify.get_recommendations(token, mood.seeds, body.limit, base_url=base_url)
    user = spotify.get_current_user(token, base_url=base_url)
    if not user.get("id"):
        raise UpstreamRequestFailed("Current user has no id", payload=user or None)
    created = spotify.create_playlist(
        token, user["id"], body.name.strip(), description, body.public, base_url=base_url
    )
    uris = [t["uri"] for t in tracks if t.get("uri")]
    added = 0
    if uris and created.get("id"):
        added = spotify.add_tracks_to_playlist(token, created["id"], uris, base_url=base_url)
    logger.info("Created playlist %s with %d tracks", created.get("id"), added)
    return {
        "playlist": {
            "id": created.get("id"),
            "name": created.get("name", body.name.strip()),
            "url": (created.get("external_urls") or {}).get("spotify"),
        },
        "tracks_added": added,
        "description": mood.label,
        "seeds": mood.seeds,
    }


@app.post("/api/queue")
def queue(
    body: QueueRequest | None = None,
    token: str = Depends(authenticated),
    ctx: AppContext = Depends(get_context),
):
    """Queue a track on the active device, by uri or by searching track_name."""
    body = body or QueueRequest()
    if not body.uri and not (body.track_name and body.track_name.strip()):
        raise ValidationFailed("Provide uri or track_name.")
    queued = spotify.resolve_and_queue(
        token,
        uri=body.uri,
        track_name=body.track_name.strip() if body.track_name else None,
        device_id=body.device_id,
        base_url=ctx.settings.api_base_url,
    )
    return {"queued": True, **queued}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "mood_proxy.main:app",
        host=HOST,
        port=PORT,
    )
