"""Database engine wiring shared by the API and the batch commands."""

from collections.abc import Iterator

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from axis_core.core.settings import get_settings

POOL_RECYCLE_SECONDS = 1800


def build_engine(database_url: str) -> Engine:
    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_recycle=POOL_RECYCLE_SECONDS,
    )


# Services commit explicitly; rows stay readable after commit for responses.
SessionFactory = sessionmaker(
    bind=build_engine(get_settings().database_url),
    autoflush=False,
    expire_on_commit=False,
)


def get_db_session() -> Iterator[Session]:
    """Request-scoped session, closed when the response is sent."""

    with SessionFactory() as session:
        yield session
