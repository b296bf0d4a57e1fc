from __future__ import annotations

import pytest
from sqlalchemy.orm import Session, sessionmaker
from support import count_ledger_entries

from axis_core.domain.enums import (
    AccountType,
    Currency,
    MovementType,
    OperationType,
    PaymentStatus,
)
from axis_core.domain.errors import LedgerInvariantError
from axis_core.domain.ids import UniqueIdGenerator
from axis_core.domain.ledger import LedgerEntryDraft
from axis_core.repositories.transaction_repository import TransactionRepository
from axis_core.services.ledger_service import IdempotentLedger

def _entries(source_id: str = "pay_1") -> list[LedgerEntryDraft]:
    common = {
        "source_id": source_id,
        "status": PaymentStatus.APPROVED,
        "currency": Currency.BRL,
        "company_id": "company-1",
    }
    return [
        LedgerEntryDraft(
            operation_type=OperationType.PAYMENT,
            account_type=AccountType.BALANCE_PENDING,
            movement_type=MovementType.CREDIT,
            amount=10000,
            amount_fee=300,
            amount_net=9700,
            **common,  # type: ignore[arg-type]
        ),
        LedgerEntryDraft(
            operation_type=OperationType.RESERVE,
            account_type=AccountType.BALANCE_RESERVE,
            movement_type=MovementType.CREDIT,
            amount=500,
            amount_fee=0,
            amount_net=500,
            **common,  # type: ignore[arg-type]
        ),
    ]


def test_recording_the_same_entries_twice_creates_them_once(
    sqlite_session_factory: sessionmaker[Session],
    id_generator: UniqueIdGenerator,
) -> None:
    with sqlite_session_factory() as session:
        repository = TransactionRepository(session)
        ledger = IdempotentLedger(
            transaction_repository=repository,
            id_generator=id_generator,
        )

        first = ledger.record(_entries())
        session.commit()
        second = ledger.record(_entries())
        session.commit()

        assert (first.created, first.duplicates) == (2, 0)
        assert (second.created, second.duplicates) == (0, 2)
        assert count_ledger_entries(session, "pay_1") == 2


def test_partially_new_batch_inserts_only_new_entries(
    sqlite_session_factory: sessionmaker[Session],
    id_generator: UniqueIdGenerator,
) -> None:
    with sqlite_session_factory() as session:
        repository = TransactionRepository(session)
        ledger = IdempotentLedger(
            transaction_repository=repository,
            id_generator=id_generator,
        )
        ledger.record(_entries()[:1])
        session.commit()

        result = ledger.record(_entries())
        session.commit()

        assert (result.created, result.duplicates) == (1, 1)


def test_invalid_entry_aborts_the_whole_batch(
    sqlite_session_factory: sessionmaker[Session],
    id_generator: UniqueIdGenerator,
) -> None:
    broken = LedgerEntryDraft(
        source_id="pay_2",
        status=PaymentStatus.APPROVED,
        operation_type=OperationType.PAYMENT,
        account_type=AccountType.BALANCE_PENDING,
        movement_type=MovementType.CREDIT,
        amount=100,
        amount_fee=10,
        amount_net=100,
        currency=Currency.BRL,
        company_id="company-1",
    )
    with sqlite_session_factory() as session:
        repository = TransactionRepository(session)
        ledger = IdempotentLedger(
            transaction_repository=repository,
            id_generator=id_generator,
        )

        with pytest.raises(LedgerInvariantError):
            ledger.record([*_entries("pay_2"), broken])

        assert count_ledger_entries(session, "pay_2") == 0
