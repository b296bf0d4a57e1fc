"""Batch job turning due release schedules into queue work items.

The source table is walked with a keyset cursor (``id > last_id``) in pages
of ``query_batch_size`` rows. Each page is split into processing batches,
and their queue rows are written in smaller insert sub-batches that commit
on their own. A failing sub-batch is rolled back and logged; its schedules
are still SCHEDULED and will be picked up by the next run. Schedule status
is advanced only by the queue consumer, so the job can be re-run at any time.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterator, Sequence
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Protocol, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from axis_core.db.models.queue_task import release_dedup_key
from axis_core.domain.clock import Clock, utc_now
from axis_core.domain.enums import QueueTaskStatus, QueueTaskType
from axis_core.domain.ids import UniqueIdGenerator
from axis_core.repositories.release_schedule_repository import DueRelease

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SessionProtocol(Protocol):
    def commit(self) -> None: ...
    def rollback(self) -> None: ...


class DueReleaseSourceProtocol(Protocol):
    def fetch_due_page(
        self,
        *,
        now: datetime,
        after_id: str | None,
        limit: int,
    ) -> list[DueRelease]: ...


class QueueWriterProtocol(Protocol):
    def insert_many(self, rows: Sequence[dict[str, Any]]) -> int: ...


@dataclass(slots=True)
class ReleaseRunTotals:
    pages: int = 0
    scanned: int = 0
    enqueued: int = 0
    duplicates: int = 0
    failed: int = 0
    failed_batches: int = 0
    stopped: bool = False

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


def chunked(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


class ReleaseSchedulerJob:
    def __init__(
        self,
        *,
        schedule_source: DueReleaseSourceProtocol,
        queue_writer: QueueWriterProtocol,
        session: SessionProtocol,
        id_generator: UniqueIdGenerator,
        query_batch_size: int = 5000,
        process_batch_size: int = 1000,
        insert_batch_size: int = 500,
        page_delay_seconds: float = 0.1,
        clock: Clock = utc_now,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if min(query_batch_size, process_batch_size, insert_batch_size) <= 0:
            msg = "Batch sizes must be positive."
            raise ValueError(msg)
        self._schedule_source = schedule_source
        self._queue_writer = queue_writer
        self._session = session
        self._id_generator = id_generator
        self._query_batch_size = query_batch_size
        self._process_batch_size = process_batch_size
        self._insert_batch_size = insert_batch_size
        self._page_delay_seconds = page_delay_seconds
        self._clock = clock
        self._sleep = sleep
        self._stop_requested = threading.Event()
        self.totals = ReleaseRunTotals()

    def request_stop(self) -> None:
        """Finish the current sub-batch, then end the run."""

        self._stop_requested.set()

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested.is_set()

    def run(self) -> ReleaseRunTotals:
        self.totals = ReleaseRunTotals()
        now = self._clock()
        after_id: str | None = None
        logger.info(
            "release_scheduler_started",
            extra={
                "cutoff": now.isoformat(),
                "query_batch_size": self._query_batch_size,
                "process_batch_size": self._process_batch_size,
                "insert_batch_size": self._insert_batch_size,
            },
        )

        while not self.stop_requested:
            page = self._schedule_source.fetch_due_page(
                now=now,
                after_id=after_id,
                limit=self._query_batch_size,
            )
            self.totals.pages += 1
            self.totals.scanned += len(page)

            for batch in chunked(page, self._process_batch_size):
                if self.stop_requested:
                    break
                self._process_batch(batch, now)

            if page:
                after_id = page[-1].id
            logger.info(
                "release_scheduler_page_done",
                extra={
                    "page": self.totals.pages,
                    "rows": len(page),
                    "cursor": after_id,
                    "enqueued": self.totals.enqueued,
                },
            )
            if len(page) < self._query_batch_size:
                break
            if self._page_delay_seconds > 0 and not self.stop_requested:
                self._sleep(self._page_delay_seconds)

        self.totals.stopped = self.stop_requested
        logger.info("release_scheduler_finished", extra=self.totals.as_dict())
        return self.totals

    def _process_batch(self, batch: Sequence[DueRelease], now: datetime) -> None:
        rows = [self._queue_row(release, now) for release in batch]
        for sub_batch in chunked(rows, self._insert_batch_size):
            if self.stop_requested:
                return
            self._insert_sub_batch(sub_batch)

    def _insert_sub_batch(self, rows: Sequence[dict[str, Any]]) -> None:
        try:
            created = self._queue_writer.insert_many(rows)
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            self.totals.failed += len(rows)
            self.totals.failed_batches += 1
            logger.error(
                "release_scheduler_sub_batch_failed",
                extra={
                    "rows": len(rows),
                    "first_id": rows[0]["payload"]["payment_release_schedule_id"],
                    "error_type": type(exc).__name__,
                },
            )
            return
        self.totals.enqueued += created
        self.totals.duplicates += len(rows) - created

    def _queue_row(self, release: DueRelease, now: datetime) -> dict[str, Any]:
        return {
            "id": self._id_generator.generate(),
            "type": QueueTaskType.SCHEDULED,
            "dedup_key": release_dedup_key(release.id),
            "payload": {"payment_release_schedule_id": release.id},
            "company_id": release.company_id,
            "description": release.provider_name,
            "anticipation_id": None,
            "status": QueueTaskStatus.PENDING,
            "created_at": now,
        }
