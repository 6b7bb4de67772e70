"""Tests for token_store: expiry window and refresh updates."""
import time

from mood_proxy.token_store import TokenRecord, TokenStore


def test_fresh_token_not_expiring():
    t = TokenRecord(access_token="at", refresh_token="rt", expires_at=time.time() + 3600)
    assert t.expiring(buffer_seconds=10) is False


def test_token_inside_buffer_is_expiring():
    """5s left with a 10s buffer: refresh before use."""
    t = TokenRecord(access_token="at", refresh_token="rt", expires_at=time.time() + 5)
    assert t.expiring(buffer_seconds=10) is True


def test_buffer_boundary():
    t = TokenRecord(access_token="at", refresh_token="rt", expires_at=1000.0)
    assert t.expiring(buffer_seconds=10, now=989.9) is False
    assert t.expiring(buffer_seconds=10, now=990.0) is True


def test_expired_token_is_expiring():
    t = TokenRecord(access_token="at", refresh_token="rt", expires_at=time.time() - 1)
    assert t.expiring() is True


def test_store_computes_expires_at():
    store = TokenStore()
    before = time.time()
    record = store.store(access_token="at", refresh_token="rt", expires_in=3600, scope="s")
    assert store.get() is record
    assert before + 3600 <= record.expires_at <= time.time() + 3600


def test_update_keeps_refresh_token_when_none_issued():
    store = TokenStore()
    store.store(access_token="at", refresh_token="rt", expires_in=1, scope="s")
    record = store.update(access_token="at2", expires_in=3600)
    assert record.access_token == "at2"
    assert record.refresh_token == "rt"
    assert record.scope == "s"


def test_update_replaces_refresh_token_when_issued():
    store = TokenStore()
    store.store(access_token="at", refresh_token="rt", expires_in=1)
    record = store.update(access_token="at2", expires_in=3600, refresh_token="rt2")
    assert record.refresh_token == "rt2"
