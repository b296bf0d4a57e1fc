"""Payment release schedule persistence operations."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from axis_core.db.bulk import insert_skip_duplicates
from axis_core.db.models.release_schedule import PaymentReleaseSchedule
from axis_core.domain.enums import (
    ANTICIPATABLE_SCHEDULE_TYPES,
    Currency,
    ReleaseScheduleStatus,
    ReleaseScheduleType,
)


@dataclass(slots=True, frozen=True)
class DueRelease:
    id: str
    company_id: str
    provider_name: str | None


@dataclass(slots=True, frozen=True)
class AvailableGroup:
    type: ReleaseScheduleType
    count: int
    total_amount: int
    next_release_date: datetime | None


class ReleaseScheduleRepository:
    """Repository for schedule creation, scanning and eligibility queries."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def insert_many(self, rows: Sequence[dict[str, Any]]) -> int:
        return insert_skip_duplicates(self._session, PaymentReleaseSchedule, rows)

    def fetch_due_page(
        self,
        *,
        now: datetime,
        after_id: str | None,
        limit: int,
    ) -> list[DueRelease]:
        """Return up to ``limit`` due SCHEDULED rows with id above the cursor."""

        statement = (
            select(
                PaymentReleaseSchedule.id,
                PaymentReleaseSchedule.company_id,
                PaymentReleaseSchedule.provider_name,
            )
            .where(
                PaymentReleaseSchedule.status == ReleaseScheduleStatus.SCHEDULED,
                PaymentReleaseSchedule.scheduled_date <= now,
            )
            .order_by(PaymentReleaseSchedule.id.asc())
            .limit(limit)
        )
        if after_id is not None:
            statement = statement.where(PaymentReleaseSchedule.id > after_id)
        return [
            DueRelease(
                id=row.id,
                company_id=row.company_id,
                provider_name=row.provider_name,
            )
            for row in self._session.execute(statement)
        ]

    def _eligibility_filters(
        self,
        *,
        company_id: str,
        now: datetime,
        currency: Currency,
    ) -> tuple[Any, ...]:
        return (
            PaymentReleaseSchedule.company_id == company_id,
            PaymentReleaseSchedule.status == ReleaseScheduleStatus.SCHEDULED,
            PaymentReleaseSchedule.is_anticipatable.is_(True),
            PaymentReleaseSchedule.scheduled_date > now,
            PaymentReleaseSchedule.is_anticipation_available_date < now,
            PaymentReleaseSchedule.currency == currency,
        )

    def list_eligible(
        self,
        *,
        company_id: str,
        now: datetime,
        schedule_type: ReleaseScheduleType,
        currency: Currency,
    ) -> list[PaymentReleaseSchedule]:
        statement = (
            select(PaymentReleaseSchedule)
            .where(
                *self._eligibility_filters(
                    company_id=company_id,
                    now=now,
                    currency=currency,
                ),
                PaymentReleaseSchedule.type == schedule_type,
            )
            .order_by(
                PaymentReleaseSchedule.scheduled_date.asc(),
                PaymentReleaseSchedule.amount_net.desc(),
                PaymentReleaseSchedule.id.asc(),
            )
        )
        return list(self._session.scalars(statement).all())

    def available_groups(
        self,
        *,
        company_id: str,
        now: datetime,
        currency: Currency,
    ) -> list[AvailableGroup]:
        statement = (
            select(
                PaymentReleaseSchedule.type,
                func.count(PaymentReleaseSchedule.id),
                func.coalesce(func.sum(PaymentReleaseSchedule.amount_net), 0),
                func.min(PaymentReleaseSchedule.scheduled_date),
            )
            .where(
                *self._eligibility_filters(
                    company_id=company_id,
                    now=now,
                    currency=currency,
                ),
                PaymentReleaseSchedule.type.in_(ANTICIPATABLE_SCHEDULE_TYPES),
            )
            .group_by(PaymentReleaseSchedule.type)
        )
        return [
            AvailableGroup(
                type=schedule_type,
                count=int(count),
                total_amount=int(total),
                next_release_date=next_date,
            )
            for schedule_type, count, total, next_date in self._session.execute(
                statement
            )
        ]

    def cancel_scheduled_by_payment(
        self,
        payment_id: str,
        *,
        company_id: str | None = None,
    ) -> int:
        conditions = [
            PaymentReleaseSchedule.payment_id == payment_id,
            PaymentReleaseSchedule.status == ReleaseScheduleStatus.SCHEDULED,
        ]
        if company_id is not None:
            conditions.append(PaymentReleaseSchedule.company_id == company_id)
        statement = (
            update(PaymentReleaseSchedule)
            .where(*conditions)
            .values(status=ReleaseScheduleStatus.CANCELLED)
            .execution_options(synchronize_session=False)
        )
        result = self._session.execute(statement)
        return int(result.rowcount or 0)
