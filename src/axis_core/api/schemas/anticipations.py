"""Schemas for anticipation endpoints."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

from axis_core.db.models.anticipation import Anticipation
from axis_core.domain.anticipation_quote import AnticipationQuote
from axis_core.domain.enums import AnticipationStatus, Currency, ReleaseScheduleType
from axis_core.services.anticipation_service import (
    AnticipationPage,
    AvailableBucket,
    AvailableSummary,
)

AnticipatableType = Literal["INSTALLMENT", "PENDING_TO_AVAILABLE"]


class AnticipationRequest(BaseModel):
    """Payload shared by simulate and create."""

    schedule_type: AnticipatableType
    currency: Currency

    @property
    def release_type(self) -> ReleaseScheduleType:
        return ReleaseScheduleType(self.schedule_type)


class AvailableBucketResponse(BaseModel):
    count: int
    total_amount: int
    next_release_date: datetime | None

    @classmethod
    def from_bucket(cls, bucket: AvailableBucket) -> AvailableBucketResponse:
        return cls(
            count=bucket.count,
            total_amount=bucket.total_amount,
            next_release_date=bucket.next_release_date,
        )


class AvailableTotalResponse(BaseModel):
    count: int
    total_amount: int


class AvailableResponse(BaseModel):
    installments: AvailableBucketResponse
    pending_to_available: AvailableBucketResponse
    total: AvailableTotalResponse

    @classmethod
    def from_summary(cls, summary: AvailableSummary) -> AvailableResponse:
        return cls(
            installments=AvailableBucketResponse.from_bucket(summary.installments),
            pending_to_available=AvailableBucketResponse.from_bucket(
                summary.pending_to_available
            ),
            total=AvailableTotalResponse(
                count=summary.total_count,
                total_amount=summary.total_amount,
            ),
        )


class QuotedScheduleResponse(BaseModel):
    schedule_id: str
    payment_id: str
    type: ReleaseScheduleType
    original_amount: int
    discount: int
    net_amount: int
    days_anticipated: int
    scheduled_date: datetime
    installment_info: str | None


class QuoteSummaryResponse(BaseModel):
    total_gross: int
    total_discount: int
    total_net: int
    anticipation_rate: Decimal
    schedules_count: int


class QuoteFeesResponse(BaseModel):
    tax_rate_anticipation: Decimal
    tax_fee_anticipation: int


class SimulationResponse(BaseModel):
    """Priced anticipation of every eligible schedule."""

    schedules: list[QuotedScheduleResponse]
    summary: QuoteSummaryResponse
    payments_ids: list[str]
    fees: QuoteFeesResponse

    @classmethod
    def from_quote(cls, quote: AnticipationQuote) -> SimulationResponse:
        return cls(
            schedules=[
                QuotedScheduleResponse(
                    schedule_id=item.schedule_id,
                    payment_id=item.payment_id,
                    type=item.type,
                    original_amount=item.original_amount,
                    discount=item.discount,
                    net_amount=item.net_amount,
                    days_anticipated=item.days_anticipated,
                    scheduled_date=item.scheduled_date,
                    installment_info=item.installment_info,
                )
                for item in quote.schedules
            ],
            summary=QuoteSummaryResponse(
                total_gross=quote.summary.total_gross,
                total_discount=quote.summary.total_discount,
                total_net=quote.summary.total_net,
                anticipation_rate=quote.summary.anticipation_rate,
                schedules_count=quote.summary.schedules_count,
            ),
            payments_ids=list(quote.payments_ids),
            fees=QuoteFeesResponse(
                tax_rate_anticipation=quote.rate.monthly_rate,
                tax_fee_anticipation=quote.rate.fixed_fee,
            ),
        )


class AnticipationResponse(BaseModel):
    id: str
    company_id: str
    group_payments_id: str
    type: ReleaseScheduleType
    currency: Currency
    status: AnticipationStatus
    total_amount: int
    amount_net: int
    amount_fee: int
    tax: Decimal
    fee: int
    payments_ids: list[str]
    created_at: datetime

    @classmethod
    def from_model(cls, anticipation: Anticipation) -> AnticipationResponse:
        return cls(
            id=anticipation.id,
            company_id=anticipation.company_id,
            group_payments_id=anticipation.group_payments_id,
            type=anticipation.type,
            currency=anticipation.currency,
            status=anticipation.status,
            total_amount=anticipation.total_amount,
            amount_net=anticipation.amount_net,
            amount_fee=anticipation.amount_fee,
            tax=anticipation.tax,
            fee=anticipation.fee,
            payments_ids=list(anticipation.payments_ids),
            created_at=anticipation.created_at,
        )


class AnticipationListResponse(BaseModel):
    data: list[AnticipationResponse]
    total: int = Field(ge=0)
    page: int = Field(ge=1)
    limit: int = Field(ge=1)
    last_page: int = Field(ge=0)

    @classmethod
    def from_page(cls, page: AnticipationPage) -> AnticipationListResponse:
        return cls(
            data=[AnticipationResponse.from_model(item) for item in page.items],
            total=page.total,
            page=page.page,
            limit=page.limit,
            last_page=page.last_page,
        )
