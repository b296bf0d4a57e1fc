"""Wallet balance projection ORM model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from axis_core.db.base import Base, enum_type
from axis_core.domain.enums import AccountType, Currency


class Wallet(Base):
    """Balance of one account, folded from the ledger up to ``last_entry_id``."""

    __tablename__ = "wallets"
    __table_args__ = (
        UniqueConstraint(
            "company_id",
            "account_type",
            "currency",
            name="uq_wallets_company_account_currency",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    company_id: Mapped[str] = mapped_column(String(36), nullable=False)
    account_type: Mapped[AccountType] = mapped_column(
        enum_type(AccountType, "transaction_account_type"),
        nullable=False,
    )
    currency: Mapped[Currency] = mapped_column(
        enum_type(Currency, "currency"),
        nullable=False,
    )
    balance: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    last_entry_id: Mapped[str | None] = mapped_column(String(32), nullable=True)
    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
