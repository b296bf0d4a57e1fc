"""Turn an approved payment into ledger entries and future release schedules."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from axis_core.domain.enums import (
    AccountType,
    Currency,
    MovementType,
    OperationType,
    PaymentMethod,
    PaymentStatus,
    ReleaseScheduleType,
)
from axis_core.domain.errors import InvalidRequestError, compose_error_message
from axis_core.domain.ledger import LedgerEntryDraft
from axis_core.domain.money import split_evenly

INSTALLMENT_INTERVAL = timedelta(days=30)


@dataclass(slots=True, frozen=True)
class ApprovedPayment:
    payment_id: str
    company_id: str
    method: PaymentMethod
    currency: Currency
    amount: int
    amount_fee: int
    approved_at: datetime
    amount_reserve: int = 0
    installments: int | None = None
    provider_name: str | None = None
    completed_available_date: datetime | None = None
    completed_reserve_available_date: datetime | None = None


@dataclass(slots=True, frozen=True)
class ReleaseScheduleDraft:
    payment_id: str
    company_id: str
    type: ReleaseScheduleType
    amount_gross: int
    amount_fee: int
    amount_net: int
    currency: Currency
    method: PaymentMethod
    scheduled_date: datetime
    is_anticipatable: bool
    is_anticipation_available_date: datetime | None
    provider_name: str | None = None
    installment_number: int | None = None
    total_installments: int | None = None


@dataclass(slots=True)
class ApprovalPlan:
    entries: list[LedgerEntryDraft] = field(default_factory=list)
    schedules: list[ReleaseScheduleDraft] = field(default_factory=list)
    available_anticipation_at: datetime | None = None


def plan_payment_approval(
    payment: ApprovedPayment,
    *,
    available_days_anticipation: int,
    now: datetime,
) -> ApprovalPlan:
    """Build the ledger entries and release schedules of an approved payment.

    Card payments credit the pending balance and release it in monthly
    installments; PIX and billet payments credit the pending balance when
    settlement is still in the future and the available balance otherwise.
    Reserves are moved into the reserve account and released on their own
    date.
    """

    _validate(payment)
    plan = ApprovalPlan()
    if payment.method is PaymentMethod.CREDIT_CARD:
        plan.available_anticipation_at = now + timedelta(
            days=available_days_anticipation
        )
        _plan_card(payment, plan)
    else:
        _plan_instant(payment, plan, now=now)
    return plan


def _validate(payment: ApprovedPayment) -> None:
    if payment.amount <= 0 or payment.amount_fee < 0 or payment.amount_reserve < 0:
        raise InvalidRequestError(
            message=compose_error_message(
                cause="Payment amounts must be positive and fees non-negative.",
                action="Send the payment amounts in minor units.",
            ),
            details={"payment_id": payment.payment_id},
        )
    if payment.amount_fee + payment.amount_reserve > payment.amount:
        raise InvalidRequestError(
            message=compose_error_message(
                cause="Fee plus reserve exceeds the payment amount.",
                action="Review the fee and reserve amounts.",
            ),
            details={"payment_id": payment.payment_id},
        )
    missing_reserve_date = payment.completed_reserve_available_date is None
    if payment.amount_reserve > 0 and missing_reserve_date:
        raise InvalidRequestError(
            message=compose_error_message(
                cause="A reserve was informed without its release date.",
                action="Send completed_reserve_available_date.",
            ),
            details={"payment_id": payment.payment_id},
        )
    if payment.method is PaymentMethod.CREDIT_CARD and not payment.installments:
        raise InvalidRequestError(
            message=compose_error_message(
                cause="Card payments require the number of installments.",
                action="Send installments greater than zero.",
            ),
            details={"payment_id": payment.payment_id},
        )


def _entry(
    payment: ApprovedPayment,
    *,
    account_type: AccountType,
    movement_type: MovementType,
    operation_type: OperationType,
    amount: int,
    amount_fee: int,
    description: str,
) -> LedgerEntryDraft:
    return LedgerEntryDraft(
        source_id=payment.payment_id,
        status=PaymentStatus.APPROVED,
        operation_type=operation_type,
        account_type=account_type,
        movement_type=movement_type,
        amount=amount,
        amount_fee=amount_fee,
        amount_net=amount - amount_fee,
        currency=payment.currency,
        company_id=payment.company_id,
        method=payment.method,
        description=description,
    )


def _payment_credit(
    payment: ApprovedPayment,
    account_type: AccountType,
) -> LedgerEntryDraft:
    return _entry(
        payment,
        account_type=account_type,
        movement_type=MovementType.CREDIT,
        operation_type=OperationType.PAYMENT,
        amount=payment.amount,
        amount_fee=payment.amount_fee,
        description=f"Payment received - {payment.payment_id}",
    )


def _reserve_transfer(
    payment: ApprovedPayment,
    source_account: AccountType,
) -> list[LedgerEntryDraft]:
    label = "Available"
    if source_account is AccountType.BALANCE_PENDING:
        label = "Pending"
    description = f"{label} > Reserve - {payment.payment_id}"
    return [
        _entry(
            payment,
            account_type=source_account,
            movement_type=MovementType.DEBIT,
            operation_type=OperationType.RESERVE,
            amount=-payment.amount_reserve,
            amount_fee=0,
            description=description,
        ),
        _entry(
            payment,
            account_type=AccountType.BALANCE_RESERVE,
            movement_type=MovementType.CREDIT,
            operation_type=OperationType.RESERVE,
            amount=payment.amount_reserve,
            amount_fee=0,
            description=description,
        ),
    ]


def _reserve_release(
    payment: ApprovedPayment,
    release_date: datetime,
) -> ReleaseScheduleDraft:
    return ReleaseScheduleDraft(
        payment_id=payment.payment_id,
        company_id=payment.company_id,
        type=ReleaseScheduleType.RESERVE_RELEASE,
        amount_gross=payment.amount_reserve,
        amount_fee=0,
        amount_net=payment.amount_reserve,
        currency=payment.currency,
        method=payment.method,
        scheduled_date=release_date,
        is_anticipatable=False,
        is_anticipation_available_date=None,
        provider_name=payment.provider_name,
    )


def _plan_instant(
    payment: ApprovedPayment,
    plan: ApprovalPlan,
    *,
    now: datetime,
) -> None:
    available_date = payment.completed_available_date
    settles_later = available_date is not None and now < available_date
    if available_date is not None and settles_later:
        plan.schedules.append(
            ReleaseScheduleDraft(
                payment_id=payment.payment_id,
                company_id=payment.company_id,
                type=ReleaseScheduleType.PENDING_TO_AVAILABLE,
                amount_gross=payment.amount,
                amount_fee=payment.amount_fee,
                amount_net=payment.amount - payment.amount_fee,
                currency=payment.currency,
                method=payment.method,
                scheduled_date=available_date,
                is_anticipatable=False,
                is_anticipation_available_date=None,
                provider_name=payment.provider_name,
            )
        )
        plan.entries.append(_payment_credit(payment, AccountType.BALANCE_PENDING))
    else:
        plan.entries.append(_payment_credit(payment, AccountType.BALANCE_AVAILABLE))

    reserve_date = payment.completed_reserve_available_date
    if payment.amount_reserve > 0 and reserve_date is not None:
        source_account = AccountType.BALANCE_AVAILABLE
        if settles_later:
            source_account = AccountType.BALANCE_PENDING
        plan.schedules.append(_reserve_release(payment, reserve_date))
        plan.entries.extend(_reserve_transfer(payment, source_account))


def _plan_card(payment: ApprovedPayment, plan: ApprovalPlan) -> None:
    installments = payment.installments or 1
    base_net = payment.amount - payment.amount_fee - payment.amount_reserve
    gross_shares = split_evenly(payment.amount, installments)
    fee_shares = split_evenly(payment.amount_fee, installments)
    net_shares = split_evenly(base_net, installments)

    for index in range(installments):
        number = index + 1
        plan.schedules.append(
            ReleaseScheduleDraft(
                payment_id=payment.payment_id,
                company_id=payment.company_id,
                type=ReleaseScheduleType.INSTALLMENT,
                amount_gross=gross_shares[index],
                amount_fee=fee_shares[index],
                amount_net=net_shares[index],
                currency=payment.currency,
                method=payment.method,
                scheduled_date=payment.approved_at + INSTALLMENT_INTERVAL * number,
                is_anticipatable=True,
                is_anticipation_available_date=plan.available_anticipation_at,
                provider_name=payment.provider_name,
                installment_number=number,
                total_installments=installments,
            )
        )

    plan.entries.append(_payment_credit(payment, AccountType.BALANCE_PENDING))
    reserve_date = payment.completed_reserve_available_date
    if payment.amount_reserve > 0 and reserve_date is not None:
        plan.schedules.append(_reserve_release(payment, reserve_date))
        plan.entries.extend(_reserve_transfer(payment, AccountType.BALANCE_PENDING))
