"""Retry-safe execution of side-effecting requests keyed by a client token.

Each (method, path, token) moves through ``absent -> processing -> completed``.
A failed handler removes its marker so the client may retry. When the cache
is unreachable the guard either runs the handler unprotected (fail open) or
rejects the request, depending on configuration; failing open can duplicate
side effects while the cache is down.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from axis_core.cache.keyed_cache import KeyedCache
from axis_core.domain.clock import utc_now
from axis_core.domain.errors import (
    CacheUnavailableError,
    IdempotencyConflictError,
    MissingIdempotencyKeyError,
)

logger = logging.getLogger(__name__)

PROCESSING = "processing"
COMPLETED = "completed"
KEY_PREFIX = "idempotency"


@dataclass(slots=True, frozen=True)
class StoredResponse:
    status_code: int
    body: Any
    replayed: bool = False


class RequestIdempotencyGuard:
    def __init__(
        self,
        cache: KeyedCache,
        *,
        ttl_seconds: int = 86400,
        fail_open: bool = True,
    ) -> None:
        self._cache = cache
        self._ttl_seconds = ttl_seconds
        self._fail_open = fail_open

    @staticmethod
    def cache_key(method: str, path: str, token: str) -> str:
        return f"{KEY_PREFIX}:{method.upper()}:{path}:{token}"

    def execute(
        self,
        *,
        method: str,
        path: str,
        token: str | None,
        handler: Callable[[], StoredResponse],
    ) -> StoredResponse:
        if token is None or not token.strip():
            raise MissingIdempotencyKeyError()
        key = self.cache_key(method, path, token.strip())

        try:
            replay = self._claim(key)
        except CacheUnavailableError:
            if not self._fail_open:
                raise
            logger.warning(
                "idempotency_guard_fail_open",
                extra={"method": method, "path": path},
            )
            return handler()

        if replay is not None:
            logger.info(
                "idempotency_guard_replayed",
                extra={"method": method, "path": path},
            )
            return replay

        try:
            response = handler()
        except Exception:
            self._release(key)
            raise

        self._complete(key, response)
        return response

    def _claim(self, key: str) -> StoredResponse | None:
        """Write the processing marker or return the stored response."""

        marker = {"status": PROCESSING, "timestamp": utc_now().isoformat()}
        for _ in range(2):
            if self._cache.add(key, marker, self._ttl_seconds):
                return None
            entry = self._cache.get(key)
            if entry is None:
                # Expired between the two calls.
                continue
            if isinstance(entry, dict) and entry.get("status") == COMPLETED:
                return StoredResponse(
                    status_code=int(entry["status_code"]),
                    body=entry.get("body"),
                    replayed=True,
                )
            raise IdempotencyConflictError(details={"cache_key": key})
        raise IdempotencyConflictError(details={"cache_key": key})

    def _release(self, key: str) -> None:
        try:
            self._cache.delete(key)
        except CacheUnavailableError:
            logger.warning(
                "idempotency_marker_release_failed",
                extra={"cache_key": key},
            )

    def _complete(self, key: str, response: StoredResponse) -> None:
        entry = {
            "status": COMPLETED,
            "status_code": response.status_code,
            "body": response.body,
            "timestamp": utc_now().isoformat(),
        }
        try:
            self._cache.set(key, entry, self._ttl_seconds)
        except CacheUnavailableError:
            logger.warning(
                "idempotency_marker_complete_failed",
                extra={"cache_key": key},
            )
