from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker
from support import COMPANY_ID, queue_tasks_of_type, seed_company, seed_schedule

from axis_core.db.models.anticipation import (
    Anticipation,
    is_open_anticipation_violation,
)
from axis_core.domain.enums import (
    AnticipationStatus,
    Currency,
    QueueTaskType,
    ReleaseScheduleType,
)
from axis_core.domain.errors import PendingAnticipationExistsError
from axis_core.domain.ids import UniqueIdGenerator
from axis_core.repositories.anticipation_repository import AnticipationRepository
from axis_core.repositories.company_repository import CompanyRepository
from axis_core.repositories.queue_repository import QueueRepository
from axis_core.repositories.release_schedule_repository import (
    ReleaseScheduleRepository,
)
from axis_core.services.anticipation_service import AnticipationService


def _service(
    session: Session,
    id_generator: UniqueIdGenerator,
    now: datetime,
) -> AnticipationService:
    return AnticipationService(
        schedule_repository=ReleaseScheduleRepository(session),
        anticipation_repository=AnticipationRepository(session),
        queue_repository=QueueRepository(session),
        tax_config_repository=CompanyRepository(session),
        session=session,
        id_generator=id_generator,
        clock=lambda: now,
    )


@pytest.fixture
def now() -> datetime:
    return datetime.now(tz=UTC).replace(microsecond=0)


@pytest.fixture
def seeded(
    sqlite_session_factory: sessionmaker[Session],
    now: datetime,
) -> None:
    with sqlite_session_factory() as session:
        seed_company(session)
        seed_schedule(
            session,
            schedule_id="s-late",
            payment_id="p-late",
            amount_net=50000,
            scheduled_date=now + timedelta(days=30),
        )
        seed_schedule(
            session,
            schedule_id="s-early",
            payment_id="p-early",
            amount_net=100000,
            scheduled_date=now + timedelta(days=15),
        )
        seed_schedule(
            session,
            schedule_id="s-not-yet",
            payment_id="p-not-yet",
            amount_net=70000,
            scheduled_date=now + timedelta(days=20),
            available_from=now + timedelta(days=1),
        )
        seed_schedule(
            session,
            schedule_id="s-flagged-off",
            payment_id="p-flagged-off",
            amount_net=70000,
            scheduled_date=now + timedelta(days=20),
            is_anticipatable=False,
        )
        seed_schedule(
            session,
            schedule_id="s-reserve",
            payment_id="p-reserve",
            amount_net=70000,
            scheduled_date=now + timedelta(days=20),
            schedule_type=ReleaseScheduleType.RESERVE_RELEASE,
        )


@pytest.mark.usefixtures("seeded")
def test_simulate_selects_only_eligible_schedules_in_release_order(
    sqlite_session_factory: sessionmaker[Session],
    id_generator: UniqueIdGenerator,
    now: datetime,
) -> None:
    with sqlite_session_factory() as session:
        quote = _service(session, id_generator, now).simulate(
            COMPANY_ID, ReleaseScheduleType.INSTALLMENT, Currency.BRL
        )

    assert [item.schedule_id for item in quote.schedules] == ["s-early", "s-late"]
    assert [item.discount for item in quote.schedules] == [3050, 3050]
    assert quote.summary.total_net == 143900


@pytest.mark.usefixtures("seeded")
def test_available_summary_groups_eligible_schedules(
    sqlite_session_factory: sessionmaker[Session],
    id_generator: UniqueIdGenerator,
    now: datetime,
) -> None:
    with sqlite_session_factory() as session:
        summary = _service(session, id_generator, now).get_available(
            COMPANY_ID, Currency.BRL
        )

    assert summary.installments.count == 2
    assert summary.installments.total_amount == 150000
    assert summary.pending_to_available.count == 0
    assert summary.total_amount == 150000


@pytest.mark.usefixtures("seeded")
def test_second_create_is_rejected_while_first_is_open(
    sqlite_session_factory: sessionmaker[Session],
    id_generator: UniqueIdGenerator,
    now: datetime,
) -> None:
    with sqlite_session_factory() as session:
        service = _service(session, id_generator, now)
        anticipation = service.create(
            COMPANY_ID, ReleaseScheduleType.INSTALLMENT, Currency.BRL
        )

        with pytest.raises(PendingAnticipationExistsError):
            service.create(COMPANY_ID, ReleaseScheduleType.INSTALLMENT, Currency.BRL)

        tasks = queue_tasks_of_type(session, QueueTaskType.ANTICIPATION)
        assert [task.anticipation_id for task in tasks] == [anticipation.id]
        assert anticipation.payments_ids == ["p-early", "p-late"]
        assert anticipation.amount_net == 143900


@pytest.mark.usefixtures("seeded")
def test_closing_an_anticipation_allows_a_new_one(
    sqlite_session_factory: sessionmaker[Session],
    id_generator: UniqueIdGenerator,
    now: datetime,
) -> None:
    with sqlite_session_factory() as session:
        service = _service(session, id_generator, now)
        first = service.create(
            COMPANY_ID, ReleaseScheduleType.INSTALLMENT, Currency.BRL
        )
        service.update_status(first.id, AnticipationStatus.REJECTED)

        second = service.create(
            COMPANY_ID, ReleaseScheduleType.INSTALLMENT, Currency.BRL
        )

        page = service.list(COMPANY_ID, page=1, limit=10)
        assert {item.id for item in page.items} == {first.id, second.id}
        assert page.total == 2
        rejected = service.list(COMPANY_ID, status=AnticipationStatus.REJECTED)
        assert [item.id for item in rejected.items] == [first.id]


def test_open_anticipation_index_blocks_concurrent_inserts(
    sqlite_session_factory: sessionmaker[Session],
    id_generator: UniqueIdGenerator,
    now: datetime,
) -> None:
    def _row(anticipation_id: str) -> Anticipation:
        return Anticipation(
            id=anticipation_id,
            company_id=COMPANY_ID,
            group_payments_id=f"grp-{anticipation_id}",
            type=ReleaseScheduleType.INSTALLMENT,
            currency=Currency.BRL,
            total_amount=1,
            amount_net=1,
            amount_fee=0,
            amount_organization=0,
            tax=0,
            fee=0,
            status=AnticipationStatus.PENDING,
            payments_ids=[],
            created_at=now,
            updated_at=now,
        )

    with sqlite_session_factory() as session:
        session.add(_row("a1"))
        session.commit()
        session.add(_row("a2"))
        with pytest.raises(IntegrityError) as exc_info:
            session.commit()

    assert is_open_anticipation_violation(str(exc_info.value.orig))


@pytest.mark.usefixtures("seeded")
def test_resuming_approved_anticipation_conflicts_with_newer_open_one(
    sqlite_session_factory: sessionmaker[Session],
    id_generator: UniqueIdGenerator,
    now: datetime,
) -> None:
    with sqlite_session_factory() as session:
        service = _service(session, id_generator, now)
        approved = service.create(
            COMPANY_ID, ReleaseScheduleType.INSTALLMENT, Currency.BRL
        )
        service.update_status(approved.id, AnticipationStatus.APPROVED)
        newer = service.create(
            COMPANY_ID, ReleaseScheduleType.INSTALLMENT, Currency.BRL
        )

        with pytest.raises(PendingAnticipationExistsError) as exc_info:
            service.update_status(approved.id, AnticipationStatus.PROCESSING)

        assert exc_info.value.details["anticipation_id"] == approved.id
        statuses = {
            item.id: item.status for item in service.list(COMPANY_ID).items
        }
        assert statuses == {
            approved.id: AnticipationStatus.APPROVED,
            newer.id: AnticipationStatus.PENDING,
        }
