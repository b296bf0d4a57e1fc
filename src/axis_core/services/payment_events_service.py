"""Apply upstream payment events to the ledger and release schedules."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol

from axis_core.db.models.company import CompanyTaxConfig
from axis_core.db.models.release_schedule import release_idempotency_key
from axis_core.domain.clock import Clock, utc_now
from axis_core.domain.enums import Currency, PaymentMethod, ReleaseScheduleStatus
from axis_core.domain.errors import ConfigurationError, compose_error_message
from axis_core.domain.ids import UniqueIdGenerator
from axis_core.domain.payment_approval import (
    ApprovedPayment,
    ReleaseScheduleDraft,
    plan_payment_approval,
)
from axis_core.services.ledger_service import IdempotentLedger

logger = logging.getLogger(__name__)


class SessionProtocol(Protocol):
    def commit(self) -> None: ...
    def rollback(self) -> None: ...


class ScheduleWriterProtocol(Protocol):
    def insert_many(self, rows: Sequence[dict[str, Any]]) -> int: ...
    def cancel_scheduled_by_payment(
        self, payment_id: str, *, company_id: str | None = None
    ) -> int: ...


class TaxConfigRepositoryProtocol(Protocol):
    def get_tax_config(
        self,
        company_id: str,
        currency: Currency,
    ) -> CompanyTaxConfig | None: ...


@dataclass(slots=True, frozen=True)
class PaymentConfirmation:
    payment_id: str
    ledger_created: int
    ledger_duplicates: int
    schedules_created: int
    schedules_duplicates: int
    available_anticipation_at: datetime | None


class PaymentEventsService:
    def __init__(
        self,
        *,
        ledger: IdempotentLedger,
        schedule_repository: ScheduleWriterProtocol,
        tax_config_repository: TaxConfigRepositoryProtocol,
        session: SessionProtocol,
        id_generator: UniqueIdGenerator,
        clock: Clock = utc_now,
    ) -> None:
        self._ledger = ledger
        self._schedule_repository = schedule_repository
        self._tax_config_repository = tax_config_repository
        self._session = session
        self._id_generator = id_generator
        self._clock = clock

    def confirm_payment(self, payment: ApprovedPayment) -> PaymentConfirmation:
        """Record an approved payment; replaying the same event is a no-op."""

        now = self._clock()
        plan = plan_payment_approval(
            payment,
            available_days_anticipation=self._available_days(payment),
            now=now,
        )
        schedule_rows = [self._schedule_row(draft, now) for draft in plan.schedules]

        try:
            ledger_result = self._ledger.record(plan.entries)
            schedules_created = self._schedule_repository.insert_many(schedule_rows)
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise

        confirmation = PaymentConfirmation(
            payment_id=payment.payment_id,
            ledger_created=ledger_result.created,
            ledger_duplicates=ledger_result.duplicates,
            schedules_created=schedules_created,
            schedules_duplicates=len(schedule_rows) - schedules_created,
            available_anticipation_at=plan.available_anticipation_at,
        )
        logger.info(
            "payment_confirmed",
            extra={
                "payment_id": payment.payment_id,
                "company_id": payment.company_id,
                "ledger_created": confirmation.ledger_created,
                "ledger_duplicates": confirmation.ledger_duplicates,
                "schedules_created": confirmation.schedules_created,
            },
        )
        return confirmation

    def refund_payment(self, payment_id: str, *, company_id: str | None = None) -> int:
        """Cancel every release of the payment that has not started yet."""

        try:
            cancelled = self._schedule_repository.cancel_scheduled_by_payment(
                payment_id, company_id=company_id
            )
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise
        logger.info(
            "payment_releases_cancelled",
            extra={"payment_id": payment_id, "cancelled": cancelled},
        )
        return cancelled

    def _available_days(self, payment: ApprovedPayment) -> int:
        if payment.method is not PaymentMethod.CREDIT_CARD:
            return 0
        tax_config = self._tax_config_repository.get_tax_config(
            payment.company_id,
            payment.currency,
        )
        if tax_config is None:
            raise ConfigurationError(
                message=compose_error_message(
                    cause="Company tax configuration not found for this currency.",
                    action="Configure anticipation taxes before approving cards.",
                ),
                details={
                    "company_id": payment.company_id,
                    "currency": payment.currency.value,
                },
            )
        return tax_config.available_days_anticipation

    def _schedule_row(
        self,
        draft: ReleaseScheduleDraft,
        now: datetime,
    ) -> dict[str, Any]:
        return {
            "id": self._id_generator.generate(),
            "payment_id": draft.payment_id,
            "idempotency_key": release_idempotency_key(
                draft.company_id,
                draft.payment_id,
                draft.type,
                draft.installment_number,
            ),
            "company_id": draft.company_id,
            "type": draft.type,
            "amount_gross": draft.amount_gross,
            "amount_fee": draft.amount_fee,
            "amount_net": draft.amount_net,
            "currency": draft.currency,
            "method": draft.method,
            "provider_name": draft.provider_name,
            "scheduled_date": draft.scheduled_date,
            "is_anticipation_available_date": draft.is_anticipation_available_date,
            "is_anticipatable": draft.is_anticipatable,
            "status": ReleaseScheduleStatus.SCHEDULED,
            "retry_count": 0,
            "error_message": None,
            "installment_number": draft.installment_number,
            "total_installments": draft.total_installments,
            "processed_at": None,
            "created_at": now,
        }
