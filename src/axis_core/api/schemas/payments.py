"""Schemas for payment event endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, model_validator

from axis_core.domain.enums import Currency, PaymentMethod
from axis_core.domain.payment_approval import ApprovedPayment
from axis_core.services.payment_events_service import PaymentConfirmation


class PaymentApprovedRequest(BaseModel):
    """Approved payment notification; amounts are in minor units."""

    payment_id: str = Field(min_length=1, max_length=64)
    method: PaymentMethod
    currency: Currency
    amount: int = Field(gt=0)
    amount_fee: int = Field(default=0, ge=0)
    amount_reserve: int = Field(default=0, ge=0)
    installments: int | None = Field(default=None, ge=1, le=24)
    provider_name: str | None = Field(default=None, max_length=64)
    approved_at: datetime | None = None
    completed_available_date: datetime | None = None
    completed_reserve_available_date: datetime | None = None

    @model_validator(mode="after")
    def validate_installments(self) -> PaymentApprovedRequest:
        if self.method is PaymentMethod.CREDIT_CARD and self.installments is None:
            raise ValueError("Card payments require installments.")
        return self

    def to_domain(self, *, company_id: str, now: datetime) -> ApprovedPayment:
        return ApprovedPayment(
            payment_id=self.payment_id.strip(),
            company_id=company_id,
            method=self.method,
            currency=self.currency,
            amount=self.amount,
            amount_fee=self.amount_fee,
            amount_reserve=self.amount_reserve,
            installments=self.installments,
            provider_name=self.provider_name,
            approved_at=self.approved_at or now,
            completed_available_date=self.completed_available_date,
            completed_reserve_available_date=self.completed_reserve_available_date,
        )


class PaymentConfirmationResponse(BaseModel):
    payment_id: str
    ledger_created: int
    ledger_duplicates: int
    schedules_created: int
    schedules_duplicates: int
    available_anticipation_at: datetime | None

    @classmethod
    def from_confirmation(
        cls,
        confirmation: PaymentConfirmation,
    ) -> PaymentConfirmationResponse:
        return cls(
            payment_id=confirmation.payment_id,
            ledger_created=confirmation.ledger_created,
            ledger_duplicates=confirmation.ledger_duplicates,
            schedules_created=confirmation.schedules_created,
            schedules_duplicates=confirmation.schedules_duplicates,
            available_anticipation_at=confirmation.available_anticipation_at,
        )


class RefundResponse(BaseModel):
    payment_id: str
    cancelled_releases: int
