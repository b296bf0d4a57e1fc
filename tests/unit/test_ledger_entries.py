from datetime import UTC, datetime

import pytest

from axis_core.domain.enums import (
    AccountType,
    Currency,
    MovementType,
    OperationType,
    PaymentStatus,
)
from axis_core.domain.errors import InvalidRequestError, LedgerInvariantError
from axis_core.domain.ledger import (
    LedgerEntryDraft,
    build_idempotency_key,
    build_ledger_row,
)

NOW = datetime(2026, 1, 10, tzinfo=UTC)


def _draft(**overrides: object) -> LedgerEntryDraft:
    values: dict[str, object] = {
        "source_id": "pay_123",
        "status": PaymentStatus.APPROVED,
        "operation_type": OperationType.PAYMENT,
        "account_type": AccountType.BALANCE_PENDING,
        "movement_type": MovementType.CREDIT,
        "amount": 10000,
        "amount_fee": 250,
        "amount_net": 9750,
        "currency": Currency.BRL,
        "company_id": "company-1",
    }
    values.update(overrides)
    return LedgerEntryDraft(**values)  # type: ignore[arg-type]


def test_idempotency_key_joins_event_fields() -> None:
    key = build_idempotency_key(
        company_id="company-1",
        source_id="pay_123",
        status=PaymentStatus.APPROVED,
        operation_type=OperationType.PAYMENT,
        account_type=AccountType.BALANCE_PENDING,
        movement_type=MovementType.CREDIT,
    )

    assert key == "company-1:pay_123-APPROVED-PAYMENT-BALANCE_PENDING-CREDIT"


def test_idempotency_key_appends_installment_number() -> None:
    key = build_idempotency_key(
        company_id="company-1",
        source_id="pay_123",
        status=PaymentStatus.APPROVED,
        operation_type=OperationType.RELEASE,
        account_type=AccountType.BALANCE_AVAILABLE,
        movement_type=MovementType.CREDIT,
        installment_number=3,
    )

    assert key.endswith("-CREDIT-3")


def test_idempotency_key_longer_than_column_is_rejected() -> None:
    with pytest.raises(InvalidRequestError):
        build_idempotency_key(
            company_id="company-1",
            source_id="x" * 250,
            status=PaymentStatus.APPROVED,
            operation_type=OperationType.PAYMENT,
            account_type=AccountType.BALANCE_PENDING,
            movement_type=MovementType.CREDIT,
        )


def test_build_ledger_row_rejects_inconsistent_net_amount() -> None:
    with pytest.raises(LedgerInvariantError) as exc_info:
        build_ledger_row(_draft(amount_net=9000), entry_id="1", created_at=NOW)

    assert exc_info.value.status_code == 500


def test_build_ledger_row_carries_key_and_amounts() -> None:
    row = build_ledger_row(_draft(), entry_id="42", created_at=NOW)

    assert row["id"] == "42"
    assert row["amount_net"] == 9750
    assert row["idempotency_key"].startswith("company-1:pay_123-APPROVED")
    assert row["created_at"] == NOW


def test_same_source_id_yields_distinct_keys_per_company() -> None:
    first = build_ledger_row(_draft(), entry_id="1", created_at=NOW)
    second = build_ledger_row(
        _draft(company_id="company-2"), entry_id="2", created_at=NOW
    )

    assert first["idempotency_key"] != second["idempotency_key"]
