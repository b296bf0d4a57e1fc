from __future__ import annotations

from unittest.mock import MagicMock

from fastapi.testclient import TestClient

from axis_core.api.dependencies import get_cache
from axis_core.domain.errors import CacheUnavailableError


def test_live_probe_needs_no_dependencies(client: TestClient) -> None:
    response = client.get("/health/live")

    assert response.status_code == 200
    assert response.json() == {"status": "alive"}


def test_ready_probe_reports_ready_with_database_and_cache(
    client: TestClient,
) -> None:
    response = client.get("/health/ready")

    assert response.status_code == 200
    assert response.json() == {"status": "ready"}


def test_ready_probe_fails_when_cache_is_down(client: TestClient) -> None:
    broken = MagicMock()
    broken.ping.side_effect = CacheUnavailableError()
    client.app.dependency_overrides[get_cache] = lambda: broken

    response = client.get("/health/ready")

    assert response.status_code == 503
    assert response.json() == {"detail": "Cache is unavailable"}
