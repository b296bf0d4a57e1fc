"""At-most-once computation per key across concurrent callers.

``remember_with_lock`` caches the result of an expensive factory and uses the
cache's advisory lock so that a burst of callers sharing a key triggers a
single execution. Waiters never block past the lock timeout: after it they
take one more shot at the lock and then compute locally.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any, TypeVar

from axis_core.cache.keyed_cache import KeyedCache
from axis_core.domain.clock import utc_now
from axis_core.domain.errors import CacheUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")

COMPLETED = "completed"
_MISS = object()


class SingleFlight:
    def __init__(
        self,
        cache: KeyedCache,
        *,
        poll_interval: float = 0.05,
        max_poll_interval: float = 0.2,
        sleep: Callable[[float], None] = time.sleep,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self._cache = cache
        self._poll_interval = poll_interval
        self._max_poll_interval = max_poll_interval
        self._sleep = sleep
        self._monotonic = monotonic

    def remember_with_lock(
        self,
        key: str,
        factory: Callable[[], T],
        *,
        ttl: int,
        lock_timeout_ms: int,
    ) -> T:
        """Return the cached value for ``key`` or compute it at most once.

        ``factory`` must return a JSON-serializable value. Its errors are
        propagated and never cached.
        """

        try:
            cached = self._lookup(key)
            if cached is not _MISS:
                return cached
            token = self._cache.acquire_lock(key, lock_timeout_ms)
        except CacheUnavailableError:
            logger.warning("single_flight_cache_unavailable", extra={"cache_key": key})
            return factory()

        if token is None:
            try:
                cached, token = self._wait_for_leader(key, lock_timeout_ms)
            except CacheUnavailableError:
                logger.warning(
                    "single_flight_cache_unavailable",
                    extra={"cache_key": key},
                )
                return factory()
            if cached is not _MISS:
                return cached
            if token is None:
                logger.warning(
                    "single_flight_lock_wait_exhausted",
                    extra={"cache_key": key, "lock_timeout_ms": lock_timeout_ms},
                )
                return factory()

        return self._compute(key, token, factory, ttl)

    def _lookup(self, key: str) -> Any:
        entry = self._cache.get(key)
        if isinstance(entry, dict) and entry.get("status") == COMPLETED:
            return entry.get("value")
        return _MISS

    def _wait_for_leader(
        self,
        key: str,
        lock_timeout_ms: int,
    ) -> tuple[Any, str | None]:
        """Poll until the holder finishes, then retry the lock once."""

        deadline = self._monotonic() + lock_timeout_ms / 1000
        interval = self._poll_interval
        while self._monotonic() < deadline:
            self._sleep(interval)
            cached = self._lookup(key)
            if cached is not _MISS:
                return cached, None
            if not self._cache.is_locked(key):
                break
            interval = min(interval * 2, self._max_poll_interval)

        cached = self._lookup(key)
        if cached is not _MISS:
            return cached, None
        return _MISS, self._cache.acquire_lock(key, lock_timeout_ms)

    def _compute(
        self,
        key: str,
        token: str,
        factory: Callable[[], T],
        ttl: int,
    ) -> T:
        try:
            try:
                cached = self._lookup(key)
            except CacheUnavailableError:
                cached = _MISS
            if cached is not _MISS:
                return cached
            value = factory()
            entry = {
                "status": COMPLETED,
                "value": value,
                "timestamp": utc_now().isoformat(),
            }
            try:
                self._cache.set(key, entry, ttl)
            except CacheUnavailableError:
                logger.warning(
                    "single_flight_cache_write_failed",
                    extra={"cache_key": key},
                )
            return value
        finally:
            try:
                self._cache.release_lock(key, token)
            except CacheUnavailableError:
                logger.warning(
                    "single_flight_lock_release_failed",
                    extra={"cache_key": key},
                )
