"""SQLAlchemy base metadata and model registration utilities."""

import enum
from importlib import import_module

from sqlalchemy import JSON, Enum
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase

JSONType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """Base class for ORM models."""


def enum_type(enum_cls: type[enum.StrEnum], name: str) -> Enum:
    """Database enum storing member values."""

    return Enum(
        enum_cls,
        name=name,
        values_callable=lambda enum_cls: [member.value for member in enum_cls],
        validate_strings=True,
    )


def import_orm_models() -> None:
    """Import ORM models so metadata is fully populated."""

    modules = (
        "axis_core.db.models.company",
        "axis_core.db.models.api_key",
        "axis_core.db.models.transaction",
        "axis_core.db.models.wallet",
        "axis_core.db.models.release_schedule",
        "axis_core.db.models.anticipation",
        "axis_core.db.models.queue_task",
    )
    for module_name in modules:
        import_module(module_name)
