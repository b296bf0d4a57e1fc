from __future__ import annotations

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool
from support import COMPANY_ID, seed_api_key, seed_company

from axis_core.api.app import create_app
from axis_core.api.dependencies import get_cache, get_id_generator
from axis_core.cache.backends import InMemoryCacheBackend
from axis_core.cache.keyed_cache import KeyedCache
from axis_core.db.base import Base, import_orm_models
from axis_core.db.session import get_db_session
from axis_core.domain.ids import UniqueIdGenerator


@pytest.fixture
def sqlite_session_factory() -> Generator[sessionmaker[Session], None, None]:
    import_orm_models()
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(
        bind=engine,
        class_=Session,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )
    try:
        yield factory
    finally:
        Base.metadata.drop_all(engine)


@pytest.fixture
def memory_cache() -> KeyedCache:
    return KeyedCache(InMemoryCacheBackend())


@pytest.fixture
def id_generator() -> UniqueIdGenerator:
    return UniqueIdGenerator(1)


@pytest.fixture
def company(sqlite_session_factory: sessionmaker[Session]) -> str:
    with sqlite_session_factory() as session:
        seed_company(session)
        seed_api_key(session)
    return COMPANY_ID


@pytest.fixture
def client(
    sqlite_session_factory: sessionmaker[Session],
    memory_cache: KeyedCache,
    id_generator: UniqueIdGenerator,
) -> Generator[TestClient, None, None]:
    app = create_app()

    def override_get_db_session() -> Generator[Session, None, None]:
        with sqlite_session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_get_db_session
    app.dependency_overrides[get_cache] = lambda: memory_cache
    app.dependency_overrides[get_id_generator] = lambda: id_generator
    with TestClient(app) as test_client:
        yield test_client
