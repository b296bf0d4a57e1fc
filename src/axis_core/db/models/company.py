"""Company and per-currency tax configuration ORM models."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from axis_core.db.base import Base, enum_type
from axis_core.domain.enums import CompanyStatus, Currency


class Company(Base):
    """Merchant account owning balances, schedules and API keys."""

    __tablename__ = "companies"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(160), nullable=False)
    status: Mapped[CompanyStatus] = mapped_column(
        enum_type(CompanyStatus, "company_status"),
        nullable=False,
        default=CompanyStatus.ACTIVE,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    tax_configs: Mapped[list[CompanyTaxConfig]] = relationship(
        back_populates="company",
    )


class CompanyTaxConfig(Base):
    """Anticipation pricing for one company and currency."""

    __tablename__ = "company_tax_configs"
    __table_args__ = (
        UniqueConstraint(
            "company_id",
            "currency",
            name="uq_company_tax_configs_company_currency",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    company_id: Mapped[str] = mapped_column(
        ForeignKey("companies.id"),
        nullable=False,
    )
    currency: Mapped[Currency] = mapped_column(
        enum_type(Currency, "currency"),
        nullable=False,
    )
    tax_rate_anticipation: Mapped[Decimal] = mapped_column(
        Numeric(10, 4),
        nullable=False,
    )
    tax_fee_anticipation: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )
    available_days_anticipation: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    company: Mapped[Company] = relationship(back_populates="tax_configs")
