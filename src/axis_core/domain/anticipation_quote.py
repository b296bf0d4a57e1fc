"""Present-value discounting of scheduled releases."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Protocol

from axis_core.domain.clock import ensure_utc
from axis_core.domain.enums import ReleaseScheduleType
from axis_core.domain.money import floor_amount

ONE_DAY = timedelta(days=1)
DAYS_PER_MONTH = Decimal("30")
PERCENT = Decimal("100")


class AnticipatableSchedule(Protocol):
    """Fields of a release schedule needed to price its anticipation."""

    id: str
    payment_id: str
    type: ReleaseScheduleType
    amount_net: int
    scheduled_date: datetime
    installment_number: int | None
    total_installments: int | None


@dataclass(slots=True, frozen=True)
class AnticipationRate:
    """Company pricing: monthly percent rate plus fixed fee per release."""

    monthly_rate: Decimal
    fixed_fee: int

    @property
    def daily_rate(self) -> Decimal:
        return self.monthly_rate / PERCENT / DAYS_PER_MONTH


@dataclass(slots=True, frozen=True)
class QuotedSchedule:
    schedule_id: str
    payment_id: str
    type: ReleaseScheduleType
    original_amount: int
    discount: int
    net_amount: int
    days_anticipated: int
    scheduled_date: datetime
    installment_info: str | None


@dataclass(slots=True, frozen=True)
class QuoteSummary:
    total_gross: int
    total_discount: int
    total_net: int
    anticipation_rate: Decimal
    schedules_count: int


@dataclass(slots=True, frozen=True)
class AnticipationQuote:
    schedules: tuple[QuotedSchedule, ...]
    summary: QuoteSummary
    payments_ids: tuple[str, ...]
    rate: AnticipationRate


def days_until(scheduled_date: datetime, now: datetime) -> int:
    """Whole days until release, any partial day counting as a full one."""

    return -((now - scheduled_date) // ONE_DAY)


def discount_for(amount_net: int, days: int, rate: AnticipationRate) -> int:
    """Return ``floor(amount_net * daily_rate * days) + fixed_fee``.

    The product is evaluated over the undivided monthly rate so the floor
    applies to the exact value, not to a rounded daily rate.
    """

    exact = (
        Decimal(amount_net) * rate.monthly_rate * Decimal(days)
    ) / (PERCENT * DAYS_PER_MONTH)
    return floor_amount(exact) + rate.fixed_fee


def installment_label(schedule: AnticipatableSchedule) -> str | None:
    if not schedule.installment_number:
        return None
    return f"{schedule.installment_number}/{schedule.total_installments}"


def quote_schedule(
    schedule: AnticipatableSchedule,
    *,
    now: datetime,
    rate: AnticipationRate,
) -> QuotedSchedule:
    scheduled_date = ensure_utc(schedule.scheduled_date)
    days = days_until(scheduled_date, now)
    discount = discount_for(schedule.amount_net, days, rate)
    return QuotedSchedule(
        schedule_id=schedule.id,
        payment_id=schedule.payment_id,
        type=schedule.type,
        original_amount=schedule.amount_net,
        discount=discount,
        net_amount=schedule.amount_net - discount,
        days_anticipated=days,
        scheduled_date=scheduled_date,
        installment_info=installment_label(schedule),
    )


def build_quote(
    schedules: Iterable[AnticipatableSchedule],
    *,
    now: datetime,
    rate: AnticipationRate,
) -> AnticipationQuote:
    """Price every schedule and aggregate the totals."""

    quoted: Sequence[QuotedSchedule] = [
        quote_schedule(schedule, now=now, rate=rate) for schedule in schedules
    ]
    total_gross = sum(item.original_amount for item in quoted)
    total_discount = sum(item.discount for item in quoted)
    return AnticipationQuote(
        schedules=tuple(quoted),
        summary=QuoteSummary(
            total_gross=total_gross,
            total_discount=total_discount,
            total_net=total_gross - total_discount,
            anticipation_rate=rate.monthly_rate,
            schedules_count=len(quoted),
        ),
        payments_ids=tuple(item.payment_id for item in quoted),
        rate=rate,
    )
