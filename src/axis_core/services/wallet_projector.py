"""Fold ledger entries into wallet balances with compare-and-swap writes."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from axis_core.db.models.wallet import Wallet
from axis_core.domain.clock import Clock, utc_now
from axis_core.domain.enums import AccountType, Currency
from axis_core.domain.errors import ConcurrentUpdateError

logger = logging.getLogger(__name__)


class SessionProtocol(Protocol):
    def commit(self) -> None: ...
    def rollback(self) -> None: ...


class WalletRepositoryProtocol(Protocol):
    def get_or_create(
        self,
        *,
        company_id: str,
        account_type: AccountType,
        currency: Currency,
        now: datetime,
    ) -> Wallet: ...

    def compare_and_swap(
        self,
        *,
        wallet_id: int,
        expected_version: int,
        balance: int,
        last_entry_id: str | None,
        now: datetime,
    ) -> bool: ...


class LedgerReaderProtocol(Protocol):
    def list_after(
        self,
        *,
        company_id: str,
        account_type: AccountType,
        currency: Currency,
        after_id: str | None,
        limit: int,
    ) -> list[tuple[str, int]]: ...

    def list_wallet_keys(self) -> list[tuple[str, AccountType, Currency]]: ...


@dataclass(slots=True, frozen=True)
class ProjectionResult:
    company_id: str
    account_type: AccountType
    currency: Currency
    applied: int
    balance: int
    conflicts: int


class WalletProjector:
    """Single logical writer per wallet key, safe to run in several processes.

    Each step reads the wallet, folds the next ledger entries after
    ``last_entry_id`` and writes with ``version = version + 1 WHERE version =
    expected``. A lost race re-reads and retries.
    """

    def __init__(
        self,
        *,
        wallet_repository: WalletRepositoryProtocol,
        ledger_reader: LedgerReaderProtocol,
        session: SessionProtocol,
        batch_size: int = 1000,
        max_conflicts: int = 5,
        clock: Clock = utc_now,
    ) -> None:
        self._wallet_repository = wallet_repository
        self._ledger_reader = ledger_reader
        self._session = session
        self._batch_size = batch_size
        self._max_conflicts = max_conflicts
        self._clock = clock

    def project(
        self,
        company_id: str,
        account_type: AccountType,
        currency: Currency,
    ) -> ProjectionResult:
        applied = 0
        conflicts = 0
        while True:
            now = self._clock()
            wallet = self._wallet_repository.get_or_create(
                company_id=company_id,
                account_type=account_type,
                currency=currency,
                now=now,
            )
            entries = self._ledger_reader.list_after(
                company_id=company_id,
                account_type=account_type,
                currency=currency,
                after_id=wallet.last_entry_id,
                limit=self._batch_size,
            )
            if not entries:
                self._session.commit()
                return ProjectionResult(
                    company_id=company_id,
                    account_type=account_type,
                    currency=currency,
                    applied=applied,
                    balance=wallet.balance,
                    conflicts=conflicts,
                )

            balance = wallet.balance + sum(amount for _, amount in entries)
            swapped = self._wallet_repository.compare_and_swap(
                wallet_id=wallet.id,
                expected_version=wallet.version,
                balance=balance,
                last_entry_id=entries[-1][0],
                now=now,
            )
            if swapped:
                self._session.commit()
                applied += len(entries)
                continue

            self._session.rollback()
            conflicts += 1
            logger.info(
                "wallet_projection_conflict",
                extra={
                    "company_id": company_id,
                    "account_type": account_type.value,
                    "currency": currency.value,
                    "expected_version": wallet.version,
                },
            )
            if conflicts >= self._max_conflicts:
                raise ConcurrentUpdateError(
                    details={
                        "company_id": company_id,
                        "account_type": account_type.value,
                        "currency": currency.value,
                    }
                )

    def project_all(self) -> list[ProjectionResult]:
        results = [
            self.project(company_id, account_type, currency)
            for company_id, account_type, currency in (
                self._ledger_reader.list_wallet_keys()
            )
        ]
        logger.info(
            "wallet_projection_finished",
            extra={
                "wallets": len(results),
                "applied": sum(result.applied for result in results),
            },
        )
        return results
