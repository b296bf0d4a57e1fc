"""Alembic environment for the axis-core schema."""

from __future__ import annotations

import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

from axis_core.core.settings import get_settings
from axis_core.db.base import Base, import_orm_models

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

import_orm_models()
target_metadata = Base.metadata


def database_url() -> str:
    """DATABASE_URL from the shell wins over the application settings."""

    return os.environ.get("DATABASE_URL") or get_settings().database_url


def configure_context(**options: object) -> None:
    context.configure(target_metadata=target_metadata, compare_type=True, **options)
    with context.begin_transaction():
        context.run_migrations()


if context.is_offline_mode():
    configure_context(
        url=database_url(),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
else:
    engine = create_engine(database_url(), poolclass=pool.NullPool)
    with engine.connect() as connection:
        configure_context(connection=connection)
