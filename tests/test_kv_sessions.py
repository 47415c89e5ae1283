import pytest

from coursedesk.core.kv import MemoryKVStore, RedisKVStore, kv_from_url
from coursedesk.core.sessions import SessionStore, refresh_key, session_key


def test_memory_kv_put_get_delete(kv):
    kv.put("a", {"x": 1})
    assert kv.get("a") == {"x": 1}
    kv.delete("a")
    assert kv.get("a") is None
    kv.delete("a")  # idempotente


def test_memory_kv_ttl(kv, clock):
    kv.put("short", {"v": True}, ttl_seconds=10)
    clock.advance(9)
    assert kv.get("short") == {"v": True}
    clock.advance(1)
    assert kv.get("short") is None
    assert len(kv) == 0


def test_memory_kv_overwrite_resets_ttl(kv, clock):
    kv.put("k", {"n": 1}, ttl_seconds=5)
    clock.advance(4)
    kv.put("k", {"n": 2}, ttl_seconds=5)
    clock.advance(4)
    assert kv.get("k") == {"n": 2}


def test_kv_from_url():
    assert isinstance(kv_from_url("memory://"), MemoryKVStore)
    assert isinstance(kv_from_url(""), MemoryKVStore)
    # Redis.from_url não conecta até o primeiro comando
    assert isinstance(kv_from_url("redis://localhost:6379/0"), RedisKVStore)
    with pytest.raises(ValueError):
        kv_from_url("mongodb://nope")


def test_keys_use_last_32_characters():
    token = "x" * 40 + "0123456789abcdef0123456789abcdef"
    assert session_key(token) == "session:0123456789abcdef0123456789abcdef"
    assert refresh_key(token) == "refresh:0123456789abcdef0123456789abcdef"
    assert session_key("short") == "session:short"


def test_session_lifecycle(kv, clock):
    store = SessionStore(kv, session_ttl=100, refresh_ttl=1000)
    store.create_session("access-token-value", tenant_id=1, user_id=2, email="a@b.example.com")

    record = store.get_session("access-token-value")
    assert (record.tenant_id, record.user_id, record.email) == (1, 2, "a@b.example.com")
    assert kv.get(session_key("access-token-value"))["tenantId"] == 1

    store.revoke_session("access-token-value")
    assert store.get_session("access-token-value") is None


def test_session_expires_with_ttl(kv, clock):
    store = SessionStore(kv, session_ttl=100, refresh_ttl=1000)
    store.create_session("tok", tenant_id=1, user_id=0, email=None)
    store.create_refresh("ref", tenant_id=1, user_id=0)
    clock.advance(100)
    assert store.get_session("tok") is None
    assert store.get_refresh("ref") is not None
    clock.advance(900)
    assert store.get_refresh("ref") is None


def test_malformed_records_are_ignored(kv):
    store = SessionStore(kv)
    kv.put(session_key("tok"), {"tenantId": "not-a-number"})
    kv.put(refresh_key("ref"), {"unexpected": True})
    assert store.get_session("tok") is None
    assert store.get_refresh("ref") is None
