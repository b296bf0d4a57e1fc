"""Liveness and readiness probes."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from axis_core.api.dependencies import get_cache
from axis_core.cache.keyed_cache import KeyedCache
from axis_core.db.session import get_db_session
from axis_core.domain.errors import CacheUnavailableError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", include_in_schema=False)


def _not_ready(component: str) -> HTTPException:
    logger.warning("readiness_failed", extra={"component": component})
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=f"{component.capitalize()} is unavailable",
    )


@router.get("/live")
def live() -> dict[str, str]:
    return {"status": "alive"}


@router.get("/ready")
def ready(
    session: Annotated[Session, Depends(get_db_session)],
    cache: Annotated[KeyedCache, Depends(get_cache)],
) -> dict[str, str]:
    """Ready once both the database and the cache answer."""
    try:
        session.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        raise _not_ready("database") from exc
    try:
        cache_answers = cache.ping()
    except CacheUnavailableError:
        cache_answers = False
    if not cache_answers:
        raise _not_ready("cache")
    return {"status": "ready"}
