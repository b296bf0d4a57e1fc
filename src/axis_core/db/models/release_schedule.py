"""Future balance release ORM model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from axis_core.db.base import Base, enum_type
from axis_core.domain.enums import (
    Currency,
    PaymentMethod,
    ReleaseScheduleStatus,
    ReleaseScheduleType,
)


class PaymentReleaseSchedule(Base):
    """One future release of a payment's balance.

    ``idempotency_key`` is derived from company, payment, type and installment so a
    replayed approval cannot schedule the same release twice.
    """

    __tablename__ = "payment_release_schedules"
    __table_args__ = (
        Index(
            "ix_payment_release_schedules_due",
            "status",
            "scheduled_date",
            "id",
        ),
        Index(
            "ix_payment_release_schedules_company_eligibility",
            "company_id",
            "status",
            "type",
            "currency",
        ),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    payment_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    idempotency_key: Mapped[str] = mapped_column(
        String(160),
        nullable=False,
        unique=True,
    )
    company_id: Mapped[str] = mapped_column(String(36), nullable=False)
    type: Mapped[ReleaseScheduleType] = mapped_column(
        enum_type(ReleaseScheduleType, "release_schedule_type"),
        nullable=False,
    )
    amount_gross: Mapped[int] = mapped_column(BigInteger, nullable=False)
    amount_fee: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    amount_net: Mapped[int] = mapped_column(BigInteger, nullable=False)
    currency: Mapped[Currency] = mapped_column(
        enum_type(Currency, "currency"),
        nullable=False,
    )
    method: Mapped[PaymentMethod] = mapped_column(
        enum_type(PaymentMethod, "payment_method"),
        nullable=False,
    )
    provider_name: Mapped[str | None] = mapped_column(String(64), nullable=True)
    scheduled_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    is_anticipation_available_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    is_anticipatable: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )
    status: Mapped[ReleaseScheduleStatus] = mapped_column(
        enum_type(ReleaseScheduleStatus, "release_schedule_status"),
        nullable=False,
        default=ReleaseScheduleStatus.SCHEDULED,
    )
    retry_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    installment_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    total_installments: Mapped[int | None] = mapped_column(Integer, nullable=True)
    processed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )


def release_idempotency_key(
    company_id: str,
    payment_id: str,
    schedule_type: ReleaseScheduleType,
    installment_number: int | None,
) -> str:
    return (
        f"{company_id}:{payment_id}-{schedule_type.value}-{installment_number or 0}"
    )
