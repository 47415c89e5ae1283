# coursedesk/core/kv.py
"""
Armazenamento chave-valor para sessões e assinaturas.

O backend de produção é um Redis replicado: leituras em uma réplica podem não ver
uma escrita recente feita em outra. Nada aqui oferece check-then-act atômico e
nenhum chamador deve depender disso.
"""
from __future__ import annotations

import json
import threading
import time
from typing import Any, Callable, Dict, Optional, Protocol, Tuple

from redis import Redis

Record = Dict[str, Any]


class KVStore(Protocol):
    def get(self, key: str) -> Optional[Record]: ...

    def put(self, key: str, record: Record, ttl_seconds: Optional[int] = None) -> None: ...

    def delete(self, key: str) -> None: ...

    def ping(self) -> bool: ...


def _encode(record: Record) -> str:
    return json.dumps(record, separators=(",", ":"), default=str)


def _decode(raw: Optional[str]) -> Optional[Record]:
    if raw is None:
        return None
    try:
        value = json.loads(raw)
    except ValueError:
        return None
    return value if isinstance(value, dict) else None


class RedisKVStore:
    """Registros JSON em Redis com TTL nativo (SET ... EX)."""

    def __init__(self, url: str, *, socket_timeout: float = 5.0):
        self.url = url
        self.client = Redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )

    def get(self, key: str) -> Optional[Record]:
        return _decode(self.client.get(key))

    def put(self, key: str, record: Record, ttl_seconds: Optional[int] = None) -> None:
        if ttl_seconds is not None:
            self.client.set(key, _encode(record), ex=max(1, int(ttl_seconds)))
        else:
            self.client.set(key, _encode(record))

    def delete(self, key: str) -> None:
        self.client.delete(key)

    def ping(self) -> bool:
        return bool(self.client.ping())


class MemoryKVStore:
    """Implementação em processo (dev/testes). Mesma semântica de TTL do Redis."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._data: Dict[str, Tuple[str, Optional[float]]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Record]:
        with self._lock:
            item = self._data.get(key)
            if item is None:
                return None
            raw, expires_at = item
            if expires_at is not None and expires_at <= self._clock():
                del self._data[key]
                return None
        return _decode(raw)

    def put(self, key: str, record: Record, ttl_seconds: Optional[int] = None) -> None:
        expires_at = None if ttl_seconds is None else self._clock() + max(1, int(ttl_seconds))
        with self._lock:
            self._data[key] = (_encode(record), expires_at)

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def ping(self) -> bool:
        return True

    def __len__(self) -> int:
        with self._lock:
            now = self._clock()
            return sum(1 for _, exp in self._data.values() if exp is None or exp > now)


def kv_from_url(url: str) -> KVStore:
    if not url or url.startswith("memory://"):
        return MemoryKVStore()
    if url.startswith(("redis://", "rediss://", "unix://")):
        return RedisKVStore(url)
    raise ValueError(f"Unsupported KV_URL scheme: {url}")
