"""Quote and execute anticipations of future scheduled releases."""

from __future__ import annotations

import logging
import math
import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Protocol

from sqlalchemy.exc import IntegrityError

from axis_core.db.models.anticipation import (
    Anticipation,
    is_open_anticipation_violation,
)
from axis_core.db.models.company import CompanyTaxConfig
from axis_core.db.models.queue_task import QueueTask, anticipation_dedup_key
from axis_core.db.models.release_schedule import PaymentReleaseSchedule
from axis_core.domain.anticipation_quote import (
    AnticipationQuote,
    AnticipationRate,
    build_quote,
)
from axis_core.domain.clock import Clock, ensure_utc, utc_now
from axis_core.domain.enums import (
    ANTICIPATABLE_SCHEDULE_TYPES,
    AnticipationStatus,
    Currency,
    QueueTaskStatus,
    QueueTaskType,
    ReleaseScheduleType,
)
from axis_core.domain.errors import (
    AnticipationBelowMinimumError,
    ConfigurationError,
    InvalidRequestError,
    InvalidStatusTransitionError,
    NoEligibleSchedulesError,
    NotFoundError,
    PendingAnticipationExistsError,
    compose_error_message,
)
from axis_core.domain.ids import UniqueIdGenerator
from axis_core.repositories.anticipation_repository import AnticipationFilters
from axis_core.repositories.release_schedule_repository import AvailableGroup

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[AnticipationStatus, frozenset[AnticipationStatus]] = {
    AnticipationStatus.PENDING: frozenset(
        {AnticipationStatus.APPROVED, AnticipationStatus.REJECTED}
    ),
    AnticipationStatus.APPROVED: frozenset({AnticipationStatus.PROCESSING}),
    AnticipationStatus.PROCESSING: frozenset({AnticipationStatus.COMPLETED}),
    AnticipationStatus.REJECTED: frozenset(),
    AnticipationStatus.COMPLETED: frozenset(),
}


class SessionProtocol(Protocol):
    """Subset of SQLAlchemy session APIs used by this service."""

    def commit(self) -> None: ...
    def rollback(self) -> None: ...


class ScheduleRepositoryProtocol(Protocol):
    def list_eligible(
        self,
        *,
        company_id: str,
        now: datetime,
        schedule_type: ReleaseScheduleType,
        currency: Currency,
    ) -> list[PaymentReleaseSchedule]: ...

    def available_groups(
        self,
        *,
        company_id: str,
        now: datetime,
        currency: Currency,
    ) -> list[AvailableGroup]: ...


class AnticipationRepositoryProtocol(Protocol):
    def count_open(self, company_id: str) -> int: ...
    def add(self, anticipation: Anticipation) -> Anticipation: ...
    def get_for_update(self, anticipation_id: str) -> Anticipation | None: ...
    def list_by_company(
        self,
        filters: AnticipationFilters,
    ) -> tuple[list[Anticipation], int]: ...


class QueueRepositoryProtocol(Protocol):
    def add(self, task: QueueTask) -> QueueTask: ...


class TaxConfigRepositoryProtocol(Protocol):
    def get_tax_config(
        self,
        company_id: str,
        currency: Currency,
    ) -> CompanyTaxConfig | None: ...


@dataclass(slots=True, frozen=True)
class AvailableBucket:
    count: int
    total_amount: int
    next_release_date: datetime | None


@dataclass(slots=True, frozen=True)
class AvailableSummary:
    installments: AvailableBucket
    pending_to_available: AvailableBucket
    total_count: int
    total_amount: int


@dataclass(slots=True, frozen=True)
class AnticipationPage:
    items: Sequence[Anticipation]
    total: int
    page: int
    limit: int
    last_page: int


class AnticipationService:
    """Selects eligible releases, prices them and records anticipations.

    Creating an anticipation writes the aggregate row and its queue item in
    one transaction. The anticipated schedules are left untouched; the queue
    consumer re-validates eligibility before moving them.
    """

    def __init__(
        self,
        *,
        schedule_repository: ScheduleRepositoryProtocol,
        anticipation_repository: AnticipationRepositoryProtocol,
        queue_repository: QueueRepositoryProtocol,
        tax_config_repository: TaxConfigRepositoryProtocol,
        session: SessionProtocol,
        id_generator: UniqueIdGenerator,
        min_net_amount: int = 1000,
        clock: Clock = utc_now,
    ) -> None:
        self._schedule_repository = schedule_repository
        self._anticipation_repository = anticipation_repository
        self._queue_repository = queue_repository
        self._tax_config_repository = tax_config_repository
        self._session = session
        self._id_generator = id_generator
        self._min_net_amount = min_net_amount
        self._clock = clock

    def get_available(self, company_id: str, currency: Currency) -> AvailableSummary:
        groups = {
            group.type: group
            for group in self._schedule_repository.available_groups(
                company_id=company_id,
                now=self._clock(),
                currency=currency,
            )
        }
        installments = _bucket(groups.get(ReleaseScheduleType.INSTALLMENT))
        pending = _bucket(groups.get(ReleaseScheduleType.PENDING_TO_AVAILABLE))
        return AvailableSummary(
            installments=installments,
            pending_to_available=pending,
            total_count=installments.count + pending.count,
            total_amount=installments.total_amount + pending.total_amount,
        )

    def simulate(
        self,
        company_id: str,
        schedule_type: ReleaseScheduleType,
        currency: Currency,
    ) -> AnticipationQuote:
        if schedule_type not in ANTICIPATABLE_SCHEDULE_TYPES:
            raise InvalidRequestError(
                message=compose_error_message(
                    cause=f"Schedule type {schedule_type.value} cannot be anticipated.",
                    action="Use INSTALLMENT or PENDING_TO_AVAILABLE.",
                ),
                details={"schedule_type": schedule_type.value},
            )

        now = self._clock()
        eligible = self._schedule_repository.list_eligible(
            company_id=company_id,
            now=now,
            schedule_type=schedule_type,
            currency=currency,
        )
        if not eligible:
            raise NoEligibleSchedulesError(
                details={
                    "schedule_type": schedule_type.value,
                    "currency": currency.value,
                }
            )

        tax_config = self._tax_config_repository.get_tax_config(company_id, currency)
        if tax_config is None:
            raise ConfigurationError(
                message=compose_error_message(
                    cause="Company tax configuration not found for this currency.",
                    action="Configure anticipation taxes for the currency.",
                ),
                details={"currency": currency.value},
            )

        rate = AnticipationRate(
            monthly_rate=Decimal(tax_config.tax_rate_anticipation),
            fixed_fee=tax_config.tax_fee_anticipation or 0,
        )
        return build_quote(eligible, now=now, rate=rate)

    def create(
        self,
        company_id: str,
        schedule_type: ReleaseScheduleType,
        currency: Currency,
    ) -> Anticipation:
        if self._anticipation_repository.count_open(company_id) >= 1:
            raise PendingAnticipationExistsError(details={"company_id": company_id})

        quote = self.simulate(company_id, schedule_type, currency)
        if quote.summary.total_net < self._min_net_amount:
            raise AnticipationBelowMinimumError(
                details={
                    "total_net": quote.summary.total_net,
                    "minimum": self._min_net_amount,
                }
            )

        now = self._clock()
        try:
            anticipation = self._anticipation_repository.add(
                Anticipation(
                    id=self._id_generator.generate(),
                    company_id=company_id,
                    group_payments_id=f"grp_{uuid.uuid4()}",
                    type=schedule_type,
                    currency=currency,
                    total_amount=quote.summary.total_gross,
                    amount_net=quote.summary.total_net,
                    amount_fee=quote.summary.total_discount,
                    amount_organization=quote.summary.total_discount,
                    tax=quote.rate.monthly_rate,
                    fee=quote.rate.fixed_fee,
                    status=AnticipationStatus.PENDING,
                    payments_ids=list(quote.payments_ids),
                    created_at=now,
                    updated_at=now,
                )
            )
            self._queue_repository.add(
                QueueTask(
                    id=self._id_generator.generate(),
                    type=QueueTaskType.ANTICIPATION,
                    dedup_key=anticipation_dedup_key(anticipation.id),
                    payload={"anticipation_id": anticipation.id},
                    company_id=company_id,
                    anticipation_id=anticipation.id,
                    status=QueueTaskStatus.PENDING,
                    created_at=now,
                )
            )
            self._session.commit()
        except IntegrityError as exc:
            self._session.rollback()
            if is_open_anticipation_violation(str(exc.orig)):
                raise PendingAnticipationExistsError(
                    details={"company_id": company_id}
                ) from exc
            raise
        except Exception:
            self._session.rollback()
            raise

        logger.info(
            "anticipation_created",
            extra={
                "anticipation_id": anticipation.id,
                "company_id": company_id,
                "schedules": quote.summary.schedules_count,
                "total_net": quote.summary.total_net,
            },
        )
        return anticipation

    def list(
        self,
        company_id: str,
        *,
        status: AnticipationStatus | None = None,
        from_date: datetime | None = None,
        to_date: datetime | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> AnticipationPage:
        if page < 1 or limit < 1:
            raise InvalidRequestError(
                message=compose_error_message(
                    cause="page and limit must be positive.",
                    action="Send page >= 1 and limit >= 1.",
                )
            )
        items, total = self._anticipation_repository.list_by_company(
            AnticipationFilters(
                company_id=company_id,
                status=status,
                from_date=from_date,
                to_date=to_date,
                limit=limit,
                offset=(page - 1) * limit,
            )
        )
        return AnticipationPage(
            items=items,
            total=total,
            page=page,
            limit=limit,
            last_page=math.ceil(total / limit),
        )

    def update_status(
        self,
        anticipation_id: str,
        status: AnticipationStatus,
    ) -> Anticipation:
        try:
            anticipation = self._anticipation_repository.get_for_update(
                anticipation_id
            )
            if anticipation is None:
                raise NotFoundError(
                    message=compose_error_message(
                        cause="Anticipation not found.",
                        action="Verify the anticipation id.",
                    ),
                    details={"anticipation_id": anticipation_id},
                )
            current = AnticipationStatus(anticipation.status)
            if status not in ALLOWED_TRANSITIONS[current]:
                raise InvalidStatusTransitionError(
                    details={"from": current.value, "to": status.value}
                )
            anticipation.status = status
            anticipation.updated_at = self._clock()
            self._session.commit()
        except IntegrityError as exc:
            # Another anticipation of the company opened while this one was
            # APPROVED; re-entering PROCESSING would make two open at once.
            self._session.rollback()
            if is_open_anticipation_violation(str(exc.orig)):
                raise PendingAnticipationExistsError(
                    details={"anticipation_id": anticipation_id, "to": status.value}
                ) from exc
            raise
        except Exception:
            self._session.rollback()
            raise

        logger.info(
            "anticipation_status_changed",
            extra={
                "anticipation_id": anticipation_id,
                "from": current.value,
                "to": status.value,
            },
        )
        return anticipation


def _bucket(group: AvailableGroup | None) -> AvailableBucket:
    if group is None:
        return AvailableBucket(count=0, total_amount=0, next_release_date=None)
    next_date = group.next_release_date
    return AvailableBucket(
        count=group.count,
        total_amount=group.total_amount,
        next_release_date=ensure_utc(next_date) if next_date is not None else None,
    )
