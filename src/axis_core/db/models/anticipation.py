"""Anticipation aggregate ORM model."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import BigInteger, DateTime, Index, Numeric, String, text
from sqlalchemy.orm import Mapped, mapped_column

from axis_core.db.base import Base, JSONType, enum_type
from axis_core.domain.enums import AnticipationStatus, Currency, ReleaseScheduleType

OPEN_ANTICIPATION_INDEX = "uq_anticipations_company_open"
OPEN_STATUS_PREDICATE = text("status IN ('PENDING', 'PROCESSING')")


class Anticipation(Base):
    """Discounted early release of a set of scheduled releases."""

    __tablename__ = "anticipations"
    __table_args__ = (
        Index(
            OPEN_ANTICIPATION_INDEX,
            "company_id",
            unique=True,
            postgresql_where=OPEN_STATUS_PREDICATE,
            sqlite_where=OPEN_STATUS_PREDICATE,
        ),
        Index("ix_anticipations_company_created_at", "company_id", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    company_id: Mapped[str] = mapped_column(String(36), nullable=False)
    group_payments_id: Mapped[str] = mapped_column(String(64), nullable=False)
    type: Mapped[ReleaseScheduleType] = mapped_column(
        enum_type(ReleaseScheduleType, "release_schedule_type"),
        nullable=False,
    )
    currency: Mapped[Currency] = mapped_column(
        enum_type(Currency, "currency"),
        nullable=False,
    )
    total_amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    amount_net: Mapped[int] = mapped_column(BigInteger, nullable=False)
    amount_fee: Mapped[int] = mapped_column(BigInteger, nullable=False)
    amount_organization: Mapped[int] = mapped_column(BigInteger, nullable=False)
    tax: Mapped[Decimal] = mapped_column(Numeric(10, 4), nullable=False)
    fee: Mapped[int] = mapped_column(BigInteger, nullable=False)
    status: Mapped[AnticipationStatus] = mapped_column(
        enum_type(AnticipationStatus, "anticipation_status"),
        nullable=False,
        default=AnticipationStatus.PENDING,
    )
    payments_ids: Mapped[list[str]] = mapped_column(JSONType, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )


def is_open_anticipation_violation(error_text: str) -> bool:
    """Whether a unique violation comes from the one-open-per-company index."""

    return (
        OPEN_ANTICIPATION_INDEX in error_text
        or "anticipations.company_id" in error_text
    )
