"""Wallet projection persistence with compare-and-swap updates."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from axis_core.db.bulk import insert_skip_duplicates
from axis_core.db.models.wallet import Wallet
from axis_core.domain.enums import AccountType, Currency


class WalletRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def get(
        self,
        *,
        company_id: str,
        account_type: AccountType,
        currency: Currency,
    ) -> Wallet | None:
        statement = (
            select(Wallet)
            .where(
                Wallet.company_id == company_id,
                Wallet.account_type == account_type,
                Wallet.currency == currency,
            )
            .execution_options(populate_existing=True)
        )
        return self._session.scalar(statement)

    def get_or_create(
        self,
        *,
        company_id: str,
        account_type: AccountType,
        currency: Currency,
        now: datetime,
    ) -> Wallet:
        existing = self.get(
            company_id=company_id,
            account_type=account_type,
            currency=currency,
        )
        if existing is not None:
            return existing

        # A concurrent creator wins silently; both callers read the same row.
        insert_skip_duplicates(
            self._session,
            Wallet,
            [
                {
                    "company_id": company_id,
                    "account_type": account_type,
                    "currency": currency,
                    "balance": 0,
                    "version": 1,
                    "last_entry_id": None,
                    "last_updated": now,
                }
            ],
        )
        wallet = self.get(
            company_id=company_id,
            account_type=account_type,
            currency=currency,
        )
        if wallet is None:
            msg = "Wallet row missing right after its creation."
            raise RuntimeError(msg)
        return wallet

    def compare_and_swap(
        self,
        *,
        wallet_id: int,
        expected_version: int,
        balance: int,
        last_entry_id: str | None,
        now: datetime,
    ) -> bool:
        """Apply the new state only if nobody advanced the wallet meanwhile."""

        statement = (
            update(Wallet)
            .where(Wallet.id == wallet_id, Wallet.version == expected_version)
            .values(
                balance=balance,
                version=Wallet.version + 1,
                last_entry_id=last_entry_id,
                last_updated=now,
            )
            .execution_options(synchronize_session=False)
        )
        result = self._session.execute(statement)
        return (result.rowcount or 0) == 1
