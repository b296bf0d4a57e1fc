"""Exactly-once application of ledger entries."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from axis_core.domain.clock import Clock, utc_now
from axis_core.domain.ids import UniqueIdGenerator
from axis_core.domain.ledger import LedgerEntryDraft, build_ledger_row

logger = logging.getLogger(__name__)


class TransactionRepositoryProtocol(Protocol):
    """Transaction repository contract consumed by the ledger."""

    def insert_many(self, rows: Sequence[dict[str, Any]]) -> int: ...


@dataclass(slots=True, frozen=True)
class LedgerWriteResult:
    created: int
    duplicates: int


class IdempotentLedger:
    """Insert ledger entries so that replayed events are never applied twice.

    Rows are inserted in the caller's open transaction; committing or rolling
    back is left to the caller so the ledger write and the triggering domain
    write succeed or fail together.
    """

    def __init__(
        self,
        *,
        transaction_repository: TransactionRepositoryProtocol,
        id_generator: UniqueIdGenerator,
        clock: Clock = utc_now,
    ) -> None:
        self._transaction_repository = transaction_repository
        self._id_generator = id_generator
        self._clock = clock

    def record(self, entries: Sequence[LedgerEntryDraft]) -> LedgerWriteResult:
        if not entries:
            return LedgerWriteResult(created=0, duplicates=0)

        now = self._clock()
        rows = [
            build_ledger_row(
                entry,
                entry_id=self._id_generator.generate(),
                created_at=now,
            )
            for entry in entries
        ]
        created = self._transaction_repository.insert_many(rows)
        duplicates = len(rows) - created
        if duplicates > 0:
            logger.info(
                "ledger_duplicates_skipped",
                extra={
                    "duplicates": duplicates,
                    "source_ids": sorted({entry.source_id for entry in entries}),
                },
            )
        logger.info(
            "ledger_entries_recorded",
            extra={"created_count": created, "duplicates": duplicates},
        )
        return LedgerWriteResult(created=created, duplicates=duplicates)
