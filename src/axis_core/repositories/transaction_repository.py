"""Ledger entry persistence operations."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from axis_core.db.bulk import insert_skip_duplicates
from axis_core.db.models.transaction import Transaction
from axis_core.domain.enums import AccountType, Currency


class TransactionRepository:
    """Append-only access to the ``transactions`` table."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def insert_many(self, rows: Sequence[dict[str, Any]]) -> int:
        return insert_skip_duplicates(self._session, Transaction, rows)

    def list_after(
        self,
        *,
        company_id: str,
        account_type: AccountType,
        currency: Currency,
        after_id: str | None,
        limit: int,
    ) -> list[tuple[str, int]]:
        """Return ``(id, amount_net)`` pairs for one wallet key in id order."""

        statement = (
            select(Transaction.id, Transaction.amount_net)
            .where(
                Transaction.company_id == company_id,
                Transaction.account_type == account_type,
                Transaction.currency == currency,
            )
            .order_by(Transaction.id.asc())
            .limit(limit)
        )
        if after_id is not None:
            statement = statement.where(Transaction.id > after_id)
        return [(row.id, row.amount_net) for row in self._session.execute(statement)]

    def list_wallet_keys(self) -> list[tuple[str, AccountType, Currency]]:
        statement = (
            select(
                Transaction.company_id,
                Transaction.account_type,
                Transaction.currency,
            )
            .distinct()
            .order_by(
                Transaction.company_id,
                Transaction.account_type,
                Transaction.currency,
            )
        )
        return [
            (row.company_id, row.account_type, row.currency)
            for row in self._session.execute(statement)
        ]
