"""CLI bootstrap for axis-core batch jobs."""

from __future__ import annotations

import json
import logging
import signal
from types import FrameType

import typer

from axis_core.core.logging import configure_logging
from axis_core.core.settings import get_settings
from axis_core.domain.enums import AnticipationStatus
from axis_core.domain.errors import DomainError
from axis_core.domain.ids import UniqueIdGenerator

app = typer.Typer(help="Batch jobs for the axis-core ledger and releases.")
logger = logging.getLogger(__name__)

STATUS_ARGUMENT = typer.Argument(..., case_sensitive=False)


@app.command("healthcheck")
def healthcheck() -> None:
    """Verify that the CLI entrypoint is available."""
    typer.echo("axis-core is ready")


@app.command("process-release-schedules")
def process_release_schedules(
    page_delay: float | None = typer.Option(
        None, min=0, help="Seconds to wait between full pages."
    ),
) -> None:
    """Enqueue every due release schedule for the queue consumer."""
    from axis_core.db.session import SessionFactory
    from axis_core.repositories.queue_repository import QueueRepository
    from axis_core.repositories.release_schedule_repository import (
        ReleaseScheduleRepository,
    )
    from axis_core.services.release_scheduler import ReleaseSchedulerJob

    settings = get_settings()
    configure_logging(settings.log_level)

    with SessionFactory() as session:
        job = ReleaseSchedulerJob(
            schedule_source=ReleaseScheduleRepository(session),
            queue_writer=QueueRepository(session),
            session=session,
            id_generator=UniqueIdGenerator(settings.machine_id),
            query_batch_size=settings.release_query_batch_size,
            process_batch_size=settings.release_process_batch_size,
            insert_batch_size=settings.release_insert_batch_size,
            page_delay_seconds=(
                settings.release_page_delay_seconds
                if page_delay is None
                else page_delay
            ),
        )

        def _stop(signum: int, frame: FrameType | None) -> None:
            logger.info("release_scheduler_stop_requested", extra={"signal": signum})
            job.request_stop()

        previous = {
            signum: signal.signal(signum, _stop)
            for signum in (signal.SIGTERM, signal.SIGINT)
        }
        try:
            totals = job.run()
        except Exception:
            logger.exception(
                "release_scheduler_crashed",
                extra=job.totals.as_dict(),
            )
            raise typer.Exit(code=1) from None
        finally:
            for signum, handler in previous.items():
                signal.signal(signum, handler)

    typer.echo(json.dumps(totals.as_dict()))


@app.command("project-wallets")
def project_wallets() -> None:
    """Fold new ledger entries into every wallet balance."""
    from axis_core.db.session import SessionFactory
    from axis_core.repositories.transaction_repository import TransactionRepository
    from axis_core.repositories.wallet_repository import WalletRepository
    from axis_core.services.wallet_projector import WalletProjector

    settings = get_settings()
    configure_logging(settings.log_level)

    with SessionFactory() as session:
        projector = WalletProjector(
            wallet_repository=WalletRepository(session),
            ledger_reader=TransactionRepository(session),
            session=session,
        )
        try:
            results = projector.project_all()
        except DomainError as exc:
            typer.echo(f"{exc.code}: {exc.message}", err=True)
            raise typer.Exit(code=1) from None

    for result in results:
        typer.echo(
            f"{result.company_id} {result.account_type.value} "
            f"{result.currency.value}: balance={result.balance} "
            f"applied={result.applied}"
        )


@app.command("update-anticipation-status")
def update_anticipation_status(
    anticipation_id: str,
    status: AnticipationStatus = STATUS_ARGUMENT,
) -> None:
    """Move an anticipation along its lifecycle."""
    from axis_core.db.session import SessionFactory
    from axis_core.repositories.anticipation_repository import (
        AnticipationRepository,
    )
    from axis_core.repositories.company_repository import CompanyRepository
    from axis_core.repositories.queue_repository import QueueRepository
    from axis_core.repositories.release_schedule_repository import (
        ReleaseScheduleRepository,
    )
    from axis_core.services.anticipation_service import AnticipationService

    settings = get_settings()
    configure_logging(settings.log_level)

    with SessionFactory() as session:
        service = AnticipationService(
            schedule_repository=ReleaseScheduleRepository(session),
            anticipation_repository=AnticipationRepository(session),
            queue_repository=QueueRepository(session),
            tax_config_repository=CompanyRepository(session),
            session=session,
            id_generator=UniqueIdGenerator(settings.machine_id),
            min_net_amount=settings.anticipation_min_net_amount,
        )
        try:
            anticipation = service.update_status(anticipation_id, status)
        except DomainError as exc:
            typer.echo(f"{exc.code}: {exc.message}", err=True)
            raise typer.Exit(code=1) from None

    typer.echo(f"{anticipation.id} -> {anticipation.status}")


def main() -> None:
    """Run the axis-core CLI application."""
    app()


if __name__ == "__main__":
    main()
