"""
In-memory store for pending login states (state -> created_at).
Filled by /login and consumed by /callback. TTL to avoid unbounded growth from abandoned logins.
"""
import time


class PendingStates:
    """Single-use anti-forgery values issued at login start."""

    def __init__(self, ttl: int = 600) -> None:
        self.ttl = ttl
        self._pending: dict[str, float] = {}

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, state: str) -> bool:
        created_at = self._pending.get(state)
        return created_at is not None and not self._expired(created_at, time.monotonic())

    def add(self, state: str) -> None:
        self._clean_expired()
        self._pending[state] = time.monotonic()

    def consume(self, state: str) -> bool:
        """Remove state; True only if it was pending and not expired."""
        created_at = self._pending.pop(state, None)
        if created_at is None:
            return False
        return not self._expired(created_at, time.monotonic())

    def _expired(self, created_at: float, now: float) -> bool:
        return (now - created_at) > self.ttl

    def _clean_expired(self) -> None:
        now = time.monotonic()
        expired = [s for s, created_at in self._pending.items() if self._expired(created_at, now)]
        for s in expired:
            del self._pending[s]
