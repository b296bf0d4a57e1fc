"""Cache storage backends: Redis for shared deployments, memory for one process."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from typing import Protocol

import redis

from axis_core.domain.errors import CacheUnavailableError, compose_error_message

logger = logging.getLogger(__name__)

_COMPARE_AND_DELETE = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""


class CacheBackend(Protocol):
    """String key/value store with TTLs and atomic conditional writes."""

    def get(self, key: str) -> str | None: ...
    def set(self, key: str, value: str, ttl_ms: int | None) -> None: ...
    def set_if_absent(self, key: str, value: str, ttl_ms: int) -> bool: ...
    def delete(self, *keys: str) -> int: ...
    def delete_if_equals(self, key: str, value: str) -> bool: ...
    def exists(self, key: str) -> bool: ...
    def ping(self) -> bool: ...


def _unavailable(operation: str, exc: Exception) -> CacheUnavailableError:
    logger.warning(
        "cache_backend_error",
        extra={"operation": operation, "error_type": type(exc).__name__},
    )
    return CacheUnavailableError(
        message=compose_error_message(
            cause=f"Cache backend failed during {operation}.",
            action="Retry later.",
        ),
        details={"operation": operation},
    )


class RedisCacheBackend:
    """Backend over a shared Redis server."""

    def __init__(self, client: redis.Redis) -> None:
        self._client = client
        self._compare_and_delete = client.register_script(_COMPARE_AND_DELETE)

    @classmethod
    def from_url(cls, url: str, *, socket_timeout: float = 2.0) -> RedisCacheBackend:
        client = redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )
        return cls(client)

    def get(self, key: str) -> str | None:
        try:
            value = self._client.get(key)
        except redis.RedisError as exc:
            raise _unavailable("get", exc) from exc
        return None if value is None else str(value)

    def set(self, key: str, value: str, ttl_ms: int | None) -> None:
        try:
            self._client.set(key, value, px=ttl_ms)
        except redis.RedisError as exc:
            raise _unavailable("set", exc) from exc

    def set_if_absent(self, key: str, value: str, ttl_ms: int) -> bool:
        try:
            return bool(self._client.set(key, value, nx=True, px=ttl_ms))
        except redis.RedisError as exc:
            raise _unavailable("set_if_absent", exc) from exc

    def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        try:
            return int(self._client.delete(*keys))
        except redis.RedisError as exc:
            raise _unavailable("delete", exc) from exc

    def delete_if_equals(self, key: str, value: str) -> bool:
        try:
            return bool(self._compare_and_delete(keys=[key], args=[value]))
        except redis.RedisError as exc:
            raise _unavailable("delete_if_equals", exc) from exc

    def exists(self, key: str) -> bool:
        try:
            return bool(self._client.exists(key))
        except redis.RedisError as exc:
            raise _unavailable("exists", exc) from exc

    def ping(self) -> bool:
        try:
            return bool(self._client.ping())
        except redis.RedisError as exc:
            raise _unavailable("ping", exc) from exc


class InMemoryCacheBackend:
    """Thread-safe in-process backend with TTL expiry.

    Locks taken here only exclude threads of the same process; use the
    Redis backend when several service instances share work.
    """

    def __init__(self, *, monotonic: Callable[[], float] = time.monotonic) -> None:
        self._entries: dict[str, tuple[str, float | None]] = {}
        self._lock = threading.Lock()
        self._monotonic = monotonic

    def _expires_at(self, ttl_ms: int | None) -> float | None:
        if ttl_ms is None:
            return None
        return self._monotonic() + ttl_ms / 1000

    def _live_value(self, key: str) -> str | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and expires_at <= self._monotonic():
            del self._entries[key]
            return None
        return value

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._live_value(key)

    def set(self, key: str, value: str, ttl_ms: int | None) -> None:
        with self._lock:
            self._entries[key] = (value, self._expires_at(ttl_ms))

    def set_if_absent(self, key: str, value: str, ttl_ms: int) -> bool:
        with self._lock:
            if self._live_value(key) is not None:
                return False
            self._entries[key] = (value, self._expires_at(ttl_ms))
            return True

    def delete(self, *keys: str) -> int:
        with self._lock:
            removed = 0
            for key in keys:
                if self._live_value(key) is not None:
                    del self._entries[key]
                    removed += 1
            return removed

    def delete_if_equals(self, key: str, value: str) -> bool:
        with self._lock:
            if self._live_value(key) != value:
                return False
            del self._entries[key]
            return True

    def exists(self, key: str) -> bool:
        with self._lock:
            return self._live_value(key) is not None

    def ping(self) -> bool:
        return True
