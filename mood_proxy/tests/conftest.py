"""
Pytest configuration for mood_proxy. Each test gets a fresh context with fake credentials,
so no real .env values or Spotify endpoints are used.
"""
import pytest

from mood_proxy.config import Settings
from mood_proxy.context import AppContext
from mood_proxy.main import app

TEST_SETTINGS = Settings(
    client_id="test-client",
    client_secret="test-secret",
    redirect_uri="http://127.0.0.1:3000/callback",
    authorize_url="https://accounts.example/authorize",
    token_url="https://accounts.example/api/token",
    api_base_url="https://api.example/v1",
)


@pytest.fixture
def ctx():
    context = AppContext(settings=TEST_SETTINGS)
    app.state.context = context
    yield context
    app.state.context = None
