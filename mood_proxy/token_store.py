"""
In-memory token record for the single logged-in account.
Holds access_token, refresh_token, expires_at (epoch seconds) and scope. Lost on restart.
"""
import time
from dataclasses import dataclass


@dataclass
class TokenRecord:
    access_token: str
    refresh_token: str | None
    expires_at: float
    scope: str = ""

    def expiring(self, buffer_seconds: int = 10, now: float | None = None) -> bool:
        """True once now >= expires_at - buffer_seconds."""
        if now is None:
            now = time.time()
        return now >= self.expires_at - buffer_seconds


class TokenStore:
    """Holds at most one TokenRecord; replaced only after a successful exchange or refresh."""

    def __init__(self) -> None:
        self._record: TokenRecord | None = None

    def get(self) -> TokenRecord | None:
        return self._record

    def store(
        self,
        access_token: str,
        refresh_token: str | None,
        expires_in: int,
        scope: str = "",
    ) -> TokenRecord:
        self._record = TokenRecord(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=time.time() + expires_in,
            scope=scope,
        )
        return self._record

    def update(self, access_token: str, expires_in: int, refresh_token: str | None = None) -> TokenRecord:
        """Apply a refresh response; the refresh token is kept unless a new one was issued."""
        current = self._record
        if current is None:
            return self.store(access_token, refresh_token, expires_in)
        self._record = TokenRecord(
            access_token=access_token,
            refresh_token=refresh_token or current.refresh_token,
            expires_at=time.time() + expires_in,
            scope=current.scope,
        )
        return self._record
