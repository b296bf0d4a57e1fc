"""Multi-row inserts that skip rows violating a unique constraint."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sqlalchemy import inspect
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from axis_core.db.base import Base


def insert_skip_duplicates(
    session: Session,
    model: type[Base],
    rows: Sequence[dict[str, Any]],
) -> int:
    """Insert ``rows`` ignoring conflicts and return how many were created."""

    if not rows:
        return 0

    dialect_name = session.get_bind().dialect.name
    if dialect_name == "postgresql":
        statement = postgresql.insert(model)
    elif dialect_name == "sqlite":
        statement = sqlite.insert(model)
    else:
        msg = f"Bulk insert with conflict skipping is not supported on {dialect_name}."
        raise NotImplementedError(msg)

    primary_key = inspect(model).primary_key[0]
    statement = (
        statement.values(list(rows)).on_conflict_do_nothing().returning(primary_key)
    )
    return len(session.execute(statement).all())
