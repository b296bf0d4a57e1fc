"""Immutable ledger entry ORM model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, CheckConstraint, DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from axis_core.db.base import Base, enum_type
from axis_core.domain.enums import (
    AccountType,
    Currency,
    MovementType,
    OperationType,
    PaymentMethod,
)


class Transaction(Base):
    """One money movement; inserted once, never updated or deleted."""

    __tablename__ = "transactions"
    __table_args__ = (
        CheckConstraint(
            "amount_net = amount - amount_fee",
            name="ck_transactions_net_amount",
        ),
        Index(
            "ix_transactions_wallet_key",
            "company_id",
            "account_type",
            "currency",
            "id",
        ),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    source_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    description: Mapped[str | None] = mapped_column(String(280), nullable=True)
    visible: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    amount_fee: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    amount_net: Mapped[int] = mapped_column(BigInteger, nullable=False)
    idempotency_key: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
    )
    currency: Mapped[Currency] = mapped_column(
        enum_type(Currency, "currency"),
        nullable=False,
    )
    operation_type: Mapped[OperationType] = mapped_column(
        enum_type(OperationType, "transaction_operation_type"),
        nullable=False,
    )
    account_type: Mapped[AccountType] = mapped_column(
        enum_type(AccountType, "transaction_account_type"),
        nullable=False,
    )
    movement_type: Mapped[MovementType] = mapped_column(
        enum_type(MovementType, "transaction_movement_type"),
        nullable=False,
    )
    company_id: Mapped[str] = mapped_column(String(36), nullable=False)
    method: Mapped[PaymentMethod | None] = mapped_column(
        enum_type(PaymentMethod, "payment_method"),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
