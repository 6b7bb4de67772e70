"""
mood_proxy configuration. Values come from the environment (optionally a .env file).
Client credentials are never hardcoded; missing ones only produce a startup warning.
"""
import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

load_dotenv()

# Spotify app credentials (developer dashboard)
CLIENT_ID = os.environ.get("SPOTIFY_CLIENT_ID", "")
CLIENT_SECRET = os.environ.get("SPOTIFY_CLIENT_SECRET", "")

# Must match a redirect URI registered for the app, e.g. http://127.0.0.1:3000/callback
REDIRECT_URI = os.environ.get("REDIRECT_URI", os.environ.get("SPOTIFY_REDIRECT_URI", ""))

HOST = os.environ.get("HOST", "127.0.0.1")
PORT = int(os.environ.get("PORT", "3000"))

AUTHORIZE_URL = os.environ.get("SPOTIFY_AUTHORIZE_URL", "https://accounts.spotify.com/authorize")
TOKEN_URL = os.environ.get("SPOTIFY_TOKEN_URL", "https://accounts.spotify.com/api/token")
API_BASE_URL = os.environ.get("SPOTIFY_API_BASE_URL", "https://api.spotify.com/v1").rstrip("/")

# Playback read/modify for the queue, public playlist modify for /api/playlist
DEFAULT_SCOPE = os.environ.get(
    "SPOTIFY_SCOPE",
    "user-read-playback-state user-modify-playback-state playlist-modify-public",
)

# Pending login states older than this are treated as unknown and purged
STATE_TTL_SECONDS = int(os.environ.get("STATE_TTL_SECONDS", "600"))

# Access token is refreshed once it is this close to expiry
REFRESH_BUFFER_SECONDS = 10

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()


@dataclass(frozen=True)
class Settings:
    client_id: str = CLIENT_ID
    client_secret: str = CLIENT_SECRET
    redirect_uri: str = REDIRECT_URI
    authorize_url: str = AUTHORIZE_URL
    token_url: str = TOKEN_URL
    api_base_url: str = API_BASE_URL
    scope: str = DEFAULT_SCOPE
    state_ttl: int = STATE_TTL_SECONDS
    refresh_buffer: int = REFRESH_BUFFER_SECONDS

    def missing(self) -> list[str]:
        """Names of the credential settings that are unset."""
        required = {
            "SPOTIFY_CLIENT_ID": self.client_id,
            "SPOTIFY_CLIENT_SECRET": self.client_secret,
            "REDIRECT_URI": self.redirect_uri,
        }
        return [name for name, value in required.items() if not value]


def warn_missing(settings: Settings) -> None:
    for name in settings.missing():
        logger.warning("%s is not set; the login flow will not work until it is configured", name)
