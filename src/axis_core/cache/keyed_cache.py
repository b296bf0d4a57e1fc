"""JSON cache with fingerprint keys and advisory locks over a backend."""

from __future__ import annotations

import hashlib
import json
import logging
import uuid
from collections.abc import Sequence
from typing import Any

from axis_core.cache.backends import (
    CacheBackend,
    InMemoryCacheBackend,
    RedisCacheBackend,
)
from axis_core.core.settings import Settings

logger = logging.getLogger(__name__)

LOCK_PREFIX = "lock:"


def lock_key(key: str) -> str:
    return f"{LOCK_PREFIX}{key}"


class KeyedCache:
    """Get/set/delete JSON values by key, plus acquire-with-expiry locks.

    Backend failures surface as ``CacheUnavailableError``; each caller decides
    whether it can fall back to the source of truth.
    """

    def __init__(
        self,
        backend: CacheBackend,
        *,
        default_ttl_seconds: int = 300,
    ) -> None:
        self._backend = backend
        self._default_ttl_seconds = default_ttl_seconds

    @property
    def backend(self) -> CacheBackend:
        return self._backend

    @staticmethod
    def generate_key(value: Any, prefix: str) -> str:
        """Return ``prefix:sha256`` of an order-independent JSON rendering."""

        serialized = json.dumps(
            value,
            sort_keys=True,
            separators=(",", ":"),
            default=str,
        )
        digest = hashlib.sha256(serialized.encode("utf-8")).hexdigest()
        return f"{prefix}:{digest}"

    def get(self, key: str) -> Any | None:
        raw = self._backend.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("cache_entry_corrupted", extra={"cache_key": key})
            return None

    def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        ttl = self._default_ttl_seconds if ttl_seconds is None else ttl_seconds
        self._backend.set(key, json.dumps(value), ttl * 1000)

    def add(self, key: str, value: Any, ttl_seconds: int) -> bool:
        """Store ``value`` only if ``key`` is absent; return whether it was stored."""

        return self._backend.set_if_absent(key, json.dumps(value), ttl_seconds * 1000)

    def delete(self, keys: str | Sequence[str]) -> int:
        if isinstance(keys, str):
            return self._backend.delete(keys)
        return self._backend.delete(*keys)

    def acquire_lock(self, key: str, timeout_ms: int) -> str | None:
        """Take the advisory lock on ``key``; return its owner token or None."""

        token = uuid.uuid4().hex
        if self._backend.set_if_absent(lock_key(key), token, timeout_ms):
            return token
        return None

    def release_lock(self, key: str, token: str) -> bool:
        """Release the lock only if ``token`` still owns it."""

        return self._backend.delete_if_equals(lock_key(key), token)

    def is_locked(self, key: str) -> bool:
        return self._backend.exists(lock_key(key))

    def ping(self) -> bool:
        return self._backend.ping()


def create_cache(settings: Settings) -> KeyedCache:
    """Build the cache configured for this process."""

    backend: CacheBackend
    if settings.cache_backend == "memory":
        backend = InMemoryCacheBackend()
    else:
        backend = RedisCacheBackend.from_url(settings.redis_url)
    logger.info("cache_backend_selected", extra={"backend": settings.cache_backend})
    return KeyedCache(backend, default_ttl_seconds=settings.cache_default_ttl_seconds)
