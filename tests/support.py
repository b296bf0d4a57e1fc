"""Seed and lookup helpers shared by integration and contract tests."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from axis_core.db.models.api_key import ApiKey
from axis_core.db.models.company import Company, CompanyTaxConfig
from axis_core.db.models.queue_task import QueueTask
from axis_core.db.models.release_schedule import (
    PaymentReleaseSchedule,
    release_idempotency_key,
)
from axis_core.db.models.transaction import Transaction
from axis_core.domain.enums import (
    CompanyStatus,
    Currency,
    PaymentMethod,
    QueueTaskType,
    ReleaseScheduleStatus,
    ReleaseScheduleType,
)
from axis_core.services.identity_service import hash_secret

COMPANY_ID = "company-1"
PUBLIC_KEY = "pk_test_company_1"
SECRET_KEY = "sk_test_company_1"
AUTH_HEADERS = {
    "x-api-key-public": PUBLIC_KEY,
    "x-api-key-secret": SECRET_KEY,
}


def seed_company(
    session: Session,
    *,
    company_id: str = COMPANY_ID,
    status: CompanyStatus = CompanyStatus.ACTIVE,
    tax_rate: str = "6",
    tax_fee: int = 50,
    available_days: int = 0,
) -> Company:
    company = Company(id=company_id, name="Acme", status=status)
    session.add(company)
    session.add(
        CompanyTaxConfig(
            company_id=company_id,
            currency=Currency.BRL,
            tax_rate_anticipation=Decimal(tax_rate),
            tax_fee_anticipation=tax_fee,
            available_days_anticipation=available_days,
        )
    )
    session.commit()
    return company


def seed_api_key(
    session: Session,
    *,
    company_id: str = COMPANY_ID,
    public_key: str = PUBLIC_KEY,
    secret_key: str = SECRET_KEY,
    write_payment: bool = True,
    refund_payment: bool = True,
    deleted_at: datetime | None = None,
) -> ApiKey:
    api_key = ApiKey(
        id=f"key-{public_key}",
        company_id=company_id,
        public_key=public_key,
        secret_key_hash=hash_secret(secret_key),
        write_payment=write_payment,
        refund_payment=refund_payment,
        deleted_at=deleted_at,
    )
    session.add(api_key)
    session.commit()
    return api_key


def seed_schedule(
    session: Session,
    *,
    schedule_id: str,
    payment_id: str,
    amount_net: int,
    scheduled_date: datetime,
    company_id: str = COMPANY_ID,
    schedule_type: ReleaseScheduleType = ReleaseScheduleType.INSTALLMENT,
    status: ReleaseScheduleStatus = ReleaseScheduleStatus.SCHEDULED,
    is_anticipatable: bool = True,
    available_from: datetime | None = None,
    installment_number: int | None = 1,
    total_installments: int | None = 1,
) -> PaymentReleaseSchedule:
    schedule = PaymentReleaseSchedule(
        id=schedule_id,
        payment_id=payment_id,
        idempotency_key=release_idempotency_key(
            company_id, payment_id, schedule_type, installment_number
        ),
        company_id=company_id,
        type=schedule_type,
        amount_gross=amount_net,
        amount_fee=0,
        amount_net=amount_net,
        currency=Currency.BRL,
        method=PaymentMethod.CREDIT_CARD,
        provider_name="acquirer",
        scheduled_date=scheduled_date,
        is_anticipation_available_date=(
            available_from or datetime.now(tz=UTC) - timedelta(days=1)
        ),
        is_anticipatable=is_anticipatable,
        status=status,
        installment_number=installment_number,
        total_installments=total_installments,
    )
    session.add(schedule)
    session.commit()
    return schedule




def count_ledger_entries(
    session: Session,
    source_id: str,
    *,
    company_id: str = COMPANY_ID,
) -> int:
    statement = (
        select(func.count())
        .select_from(Transaction)
        .where(Transaction.source_id == source_id)
        .where(Transaction.company_id == company_id)
    )
    return int(session.scalar(statement) or 0)


def schedules_of_payment(
    session: Session,
    payment_id: str,
    *,
    company_id: str = COMPANY_ID,
) -> list[PaymentReleaseSchedule]:
    statement = (
        select(PaymentReleaseSchedule)
        .where(PaymentReleaseSchedule.payment_id == payment_id)
        .where(PaymentReleaseSchedule.company_id == company_id)
        .order_by(PaymentReleaseSchedule.id.asc())
    )
    return list(session.scalars(statement).all())


def queue_tasks_of_type(session: Session, task_type: QueueTaskType) -> list[QueueTask]:
    statement = (
        select(QueueTask).where(QueueTask.type == task_type).order_by(QueueTask.id)
    )
    return list(session.scalars(statement).all())
