from datetime import UTC, datetime, timedelta

import pytest

from axis_core.domain.enums import (
    AccountType,
    Currency,
    MovementType,
    OperationType,
    PaymentMethod,
    ReleaseScheduleType,
)
from axis_core.domain.errors import InvalidRequestError
from axis_core.domain.payment_approval import ApprovedPayment, plan_payment_approval

NOW = datetime(2026, 5, 4, 10, 0, tzinfo=UTC)


def _payment(**overrides: object) -> ApprovedPayment:
    values: dict[str, object] = {
        "payment_id": "pay_1",
        "company_id": "company-1",
        "method": PaymentMethod.CREDIT_CARD,
        "currency": Currency.BRL,
        "amount": 10000,
        "amount_fee": 100,
        "approved_at": NOW,
        "installments": 3,
    }
    values.update(overrides)
    return ApprovedPayment(**values)  # type: ignore[arg-type]


def test_card_payment_splits_installments_with_remainder_on_last() -> None:
    plan = plan_payment_approval(_payment(), available_days_anticipation=2, now=NOW)

    installments = [
        schedule
        for schedule in plan.schedules
        if schedule.type is ReleaseScheduleType.INSTALLMENT
    ]
    assert [item.amount_gross for item in installments] == [3333, 3333, 3334]
    assert [item.amount_fee for item in installments] == [33, 33, 34]
    assert [item.amount_net for item in installments] == [3300, 3300, 3300]
    assert [item.scheduled_date for item in installments] == [
        NOW + timedelta(days=30),
        NOW + timedelta(days=60),
        NOW + timedelta(days=90),
    ]
    assert all(item.is_anticipatable for item in installments)
    assert plan.available_anticipation_at == NOW + timedelta(days=2)
    assert installments[0].is_anticipation_available_date == NOW + timedelta(days=2)


def test_card_payment_credits_pending_balance() -> None:
    plan = plan_payment_approval(_payment(), available_days_anticipation=0, now=NOW)

    (entry,) = plan.entries
    assert entry.account_type is AccountType.BALANCE_PENDING
    assert entry.movement_type is MovementType.CREDIT
    assert entry.amount_net == 9900


def test_card_reserve_moves_from_pending_to_reserve() -> None:
    reserve_date = NOW + timedelta(days=120)
    plan = plan_payment_approval(
        _payment(amount_reserve=1000, completed_reserve_available_date=reserve_date),
        available_days_anticipation=0,
        now=NOW,
    )

    reserve_entries = [
        entry for entry in plan.entries if entry.operation_type is OperationType.RESERVE
    ]
    assert [(entry.account_type, entry.amount) for entry in reserve_entries] == [
        (AccountType.BALANCE_PENDING, -1000),
        (AccountType.BALANCE_RESERVE, 1000),
    ]
    release = plan.schedules[-1]
    assert release.type is ReleaseScheduleType.RESERVE_RELEASE
    assert release.scheduled_date == reserve_date
    assert not release.is_anticipatable
    net_shares = [
        schedule.amount_net
        for schedule in plan.schedules
        if schedule.type is ReleaseScheduleType.INSTALLMENT
    ]
    assert sum(net_shares) == 8900


def test_pix_settling_later_goes_to_pending_with_release_schedule() -> None:
    settles_at = NOW + timedelta(days=1)
    plan = plan_payment_approval(
        _payment(
            method=PaymentMethod.PIX,
            installments=None,
            completed_available_date=settles_at,
        ),
        available_days_anticipation=0,
        now=NOW,
    )

    (schedule,) = plan.schedules
    assert schedule.type is ReleaseScheduleType.PENDING_TO_AVAILABLE
    assert schedule.scheduled_date == settles_at
    assert plan.entries[0].account_type is AccountType.BALANCE_PENDING
    assert plan.available_anticipation_at is None


def test_pix_already_settled_credits_available_balance() -> None:
    plan = plan_payment_approval(
        _payment(
            method=PaymentMethod.PIX,
            installments=None,
            completed_available_date=NOW - timedelta(minutes=5),
        ),
        available_days_anticipation=0,
        now=NOW,
    )

    assert plan.schedules == []
    assert plan.entries[0].account_type is AccountType.BALANCE_AVAILABLE


def test_billet_reserve_after_settlement_debits_available_balance() -> None:
    plan = plan_payment_approval(
        _payment(
            method=PaymentMethod.BILLET,
            installments=None,
            amount_reserve=500,
            completed_reserve_available_date=NOW + timedelta(days=60),
        ),
        available_days_anticipation=0,
        now=NOW,
    )

    debit = plan.entries[1]
    assert debit.account_type is AccountType.BALANCE_AVAILABLE
    assert debit.movement_type is MovementType.DEBIT
    assert debit.amount == -500


@pytest.mark.parametrize(
    "overrides",
    [
        {"amount": 0},
        {"amount_fee": -1},
        {"amount_fee": 6000, "amount_reserve": 5000},
        {"amount_reserve": 100},
        {"installments": None},
    ],
)
def test_invalid_payments_are_rejected(overrides: dict[str, object]) -> None:
    with pytest.raises(InvalidRequestError):
        plan_payment_approval(
            _payment(**overrides),
            available_days_anticipation=0,
            now=NOW,
        )
