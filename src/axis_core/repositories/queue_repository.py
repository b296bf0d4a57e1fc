"""Work queue persistence operations."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sqlalchemy.orm import Session

from axis_core.db.bulk import insert_skip_duplicates
from axis_core.db.models.queue_task import QueueTask


class QueueRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def insert_many(self, rows: Sequence[dict[str, Any]]) -> int:
        """Enqueue rows, skipping any whose id or dedup key already exists."""

        return insert_skip_duplicates(self._session, QueueTask, rows)

    def add(self, task: QueueTask) -> QueueTask:
        self._session.add(task)
        self._session.flush()
        return task
