"""Anticipation persistence operations."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from axis_core.db.models.anticipation import Anticipation
from axis_core.domain.enums import OPEN_ANTICIPATION_STATUSES, AnticipationStatus


@dataclass(slots=True, frozen=True)
class AnticipationFilters:
    company_id: str
    status: AnticipationStatus | None = None
    from_date: datetime | None = None
    to_date: datetime | None = None
    limit: int = 20
    offset: int = 0


class AnticipationRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def count_open(self, company_id: str) -> int:
        statement = (
            select(func.count())
            .select_from(Anticipation)
            .where(
                Anticipation.company_id == company_id,
                Anticipation.status.in_(OPEN_ANTICIPATION_STATUSES),
            )
        )
        return int(self._session.scalar(statement) or 0)

    def add(self, anticipation: Anticipation) -> Anticipation:
        self._session.add(anticipation)
        self._session.flush()
        return anticipation

    def get_for_update(self, anticipation_id: str) -> Anticipation | None:
        statement = (
            select(Anticipation)
            .where(Anticipation.id == anticipation_id)
            .with_for_update()
        )
        return self._session.scalar(statement)

    def list_by_company(
        self,
        filters: AnticipationFilters,
    ) -> tuple[list[Anticipation], int]:
        conditions = [Anticipation.company_id == filters.company_id]
        if filters.status is not None:
            conditions.append(Anticipation.status == filters.status)
        if filters.from_date is not None:
            conditions.append(Anticipation.created_at >= filters.from_date)
        if filters.to_date is not None:
            conditions.append(Anticipation.created_at <= filters.to_date)

        total_statement = (
            select(func.count()).select_from(Anticipation).where(*conditions)
        )
        total = int(self._session.scalar(total_statement) or 0)

        statement = (
            select(Anticipation)
            .where(*conditions)
            .order_by(Anticipation.created_at.desc(), Anticipation.id.desc())
            .limit(filters.limit)
            .offset(filters.offset)
        )
        return list(self._session.scalars(statement).all()), total
