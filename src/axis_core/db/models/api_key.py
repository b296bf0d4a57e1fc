"""API key credential ORM model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from axis_core.db.base import Base
from axis_core.db.models.company import Company


class ApiKey(Base):
    """Public/secret key pair with one column per granted permission.

    Only the SHA-256 digest of the secret is stored.
    """

    __tablename__ = "api_keys"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    company_id: Mapped[str] = mapped_column(
        ForeignKey("companies.id"),
        nullable=False,
        index=True,
    )
    public_key: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    secret_key_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    read_infraction: Mapped[bool] = mapped_column(Boolean, default=False)
    read_payment: Mapped[bool] = mapped_column(Boolean, default=False)
    read_withdrawal: Mapped[bool] = mapped_column(Boolean, default=False)
    read_balance: Mapped[bool] = mapped_column(Boolean, default=False)
    write_payment: Mapped[bool] = mapped_column(Boolean, default=False)
    write_withdrawal: Mapped[bool] = mapped_column(Boolean, default=False)
    write_infraction: Mapped[bool] = mapped_column(Boolean, default=False)
    refund_payment: Mapped[bool] = mapped_column(Boolean, default=False)
    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    company: Mapped[Company] = relationship()
