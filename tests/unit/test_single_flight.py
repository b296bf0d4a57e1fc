from __future__ import annotations

import threading
import time
from typing import Any

import pytest

from axis_core.cache.backends import InMemoryCacheBackend
from axis_core.cache.keyed_cache import KeyedCache
from axis_core.cache.single_flight import SingleFlight
from axis_core.domain.errors import CacheUnavailableError


class BrokenBackend(InMemoryCacheBackend):
    def get(self, key: str) -> str | None:
        raise CacheUnavailableError()


def test_concurrent_callers_run_factory_once() -> None:
    cache = KeyedCache(InMemoryCacheBackend())
    single_flight = SingleFlight(cache, poll_interval=0.01)
    calls = 0
    calls_lock = threading.Lock()
    start = threading.Barrier(10)
    results: list[Any] = []

    def factory() -> dict[str, int]:
        nonlocal calls
        with calls_lock:
            calls += 1
        time.sleep(0.1)
        return {"answer": 42}

    def worker() -> None:
        start.wait()
        value = single_flight.remember_with_lock(
            "expensive",
            factory,
            ttl=60,
            lock_timeout_ms=2000,
        )
        with calls_lock:
            results.append(value)

    threads = [threading.Thread(target=worker) for _ in range(10)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert calls == 1
    assert results == [{"answer": 42}] * 10
    assert not cache.is_locked("expensive")


def test_cached_value_is_returned_without_calling_factory() -> None:
    cache = KeyedCache(InMemoryCacheBackend())
    single_flight = SingleFlight(cache)
    single_flight.remember_with_lock("key", lambda: 1, ttl=60, lock_timeout_ms=100)

    value = single_flight.remember_with_lock(
        "key",
        lambda: 2,
        ttl=60,
        lock_timeout_ms=100,
    )

    assert value == 1


def test_factory_errors_are_not_cached_and_release_the_lock() -> None:
    cache = KeyedCache(InMemoryCacheBackend())
    single_flight = SingleFlight(cache)

    def failing() -> int:
        raise ValueError("nope")

    with pytest.raises(ValueError, match="nope"):
        single_flight.remember_with_lock("key", failing, ttl=60, lock_timeout_ms=100)

    assert not cache.is_locked("key")
    assert cache.get("key") is None
    assert (
        single_flight.remember_with_lock("key", lambda: 3, ttl=60, lock_timeout_ms=100)
        == 3
    )


def test_waiter_computes_locally_when_lock_never_frees() -> None:
    cache = KeyedCache(InMemoryCacheBackend())
    cache.acquire_lock("key", timeout_ms=60_000)
    ticks = iter(float(step) for step in range(100))
    single_flight = SingleFlight(
        cache,
        sleep=lambda _: None,
        monotonic=lambda: next(ticks),
    )

    value = single_flight.remember_with_lock(
        "key",
        lambda: "local",
        ttl=60,
        lock_timeout_ms=3000,
    )

    assert value == "local"


def test_unavailable_cache_falls_back_to_factory() -> None:
    single_flight = SingleFlight(KeyedCache(BrokenBackend()))

    value = single_flight.remember_with_lock(
        "key",
        lambda: "direct",
        ttl=60,
        lock_timeout_ms=100,
    )

    assert value == "direct"
