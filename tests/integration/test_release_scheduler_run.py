from __future__ import annotations

from datetime import UTC, datetime, timedelta

from sqlalchemy.orm import Session, sessionmaker
from support import queue_tasks_of_type, seed_schedule

from axis_core.domain.enums import QueueTaskType, ReleaseScheduleStatus
from axis_core.domain.ids import UniqueIdGenerator
from axis_core.repositories.queue_repository import QueueRepository
from axis_core.repositories.release_schedule_repository import (
    ReleaseScheduleRepository,
)
from axis_core.services.release_scheduler import ReleaseSchedulerJob


def _run(session: Session, id_generator: UniqueIdGenerator) -> ReleaseSchedulerJob:
    job = ReleaseSchedulerJob(
        schedule_source=ReleaseScheduleRepository(session),
        queue_writer=QueueRepository(session),
        session=session,
        id_generator=id_generator,
        query_batch_size=3,
        process_batch_size=2,
        insert_batch_size=1,
        page_delay_seconds=0,
    )
    job.run()
    return job


def test_due_schedules_are_enqueued_once_across_runs(
    sqlite_session_factory: sessionmaker[Session],
    id_generator: UniqueIdGenerator,
) -> None:
    past = datetime.now(tz=UTC) - timedelta(hours=1)
    future = datetime.now(tz=UTC) + timedelta(days=3)
    with sqlite_session_factory() as session:
        for index in range(7):
            seed_schedule(
                session,
                schedule_id=f"s{index:03d}",
                payment_id=f"p{index}",
                amount_net=1000,
                scheduled_date=past,
            )
        seed_schedule(
            session,
            schedule_id="s900",
            payment_id="p-future",
            amount_net=1000,
            scheduled_date=future,
        )
        seed_schedule(
            session,
            schedule_id="s901",
            payment_id="p-cancelled",
            amount_net=1000,
            scheduled_date=past,
            status=ReleaseScheduleStatus.CANCELLED,
        )

        first = _run(session, id_generator)
        second = _run(session, id_generator)

        tasks = queue_tasks_of_type(session, QueueTaskType.SCHEDULED)
        enqueued = sorted(
            task.payload["payment_release_schedule_id"] for task in tasks
        )
        assert enqueued == [f"s{index:03d}" for index in range(7)]
        assert first.totals.enqueued == 7
        assert first.totals.pages == 3
        assert second.totals.enqueued == 0
        assert second.totals.duplicates == 7
        assert {task.company_id for task in tasks} == {"company-1"}
        assert {task.description for task in tasks} == {"acquirer"}
