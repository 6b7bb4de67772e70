"""
Process-wide context: settings, the token record and the pending login states.
Built once in the app lifespan and handed to handlers through get_context.
"""
from dataclasses import dataclass, field

from fastapi import Request

from mood_proxy.config import Settings
from mood_proxy.state_store import PendingStates
from mood_proxy.token_store import TokenStore


@dataclass
class AppContext:
    settings: Settings = field(default_factory=Settings)
    tokens: TokenStore = field(default_factory=TokenStore)
    states: PendingStates | None = None

    def __post_init__(self) -> None:
        if self.states is None:
            self.states = PendingStates(ttl=self.settings.state_ttl)


def get_context(request: Request) -> AppContext:
    """Dependency: the context attached to the running app."""
    return request.app.state.context
