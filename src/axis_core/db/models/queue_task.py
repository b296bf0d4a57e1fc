"""Work queue ORM model consumed by settlement workers."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, ForeignKey, String, text
from sqlalchemy.orm import Mapped, mapped_column

from axis_core.db.base import Base, JSONType, enum_type
from axis_core.domain.enums import QueueTaskStatus, QueueTaskType


class QueueTask(Base):
    """One unit of work; ``dedup_key`` keeps a subject from being queued twice."""

    __tablename__ = "queue_tasks"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    type: Mapped[QueueTaskType] = mapped_column(
        enum_type(QueueTaskType, "queue_task_type"),
        nullable=False,
    )
    dedup_key: Mapped[str] = mapped_column(String(96), nullable=False, unique=True)
    payload: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False)
    company_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(String(280), nullable=True)
    anticipation_id: Mapped[str | None] = mapped_column(
        ForeignKey("anticipations.id"),
        nullable=True,
    )
    status: Mapped[QueueTaskStatus] = mapped_column(
        enum_type(QueueTaskStatus, "queue_task_status"),
        nullable=False,
        default=QueueTaskStatus.PENDING,
        server_default=QueueTaskStatus.PENDING.value,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )


def release_dedup_key(schedule_id: str) -> str:
    return f"{QueueTaskType.SCHEDULED.value}:{schedule_id}"


def anticipation_dedup_key(anticipation_id: str) -> str:
    return f"{QueueTaskType.ANTICIPATION.value}:{anticipation_id}"
