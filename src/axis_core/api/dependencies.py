"""API dependency providers."""

from __future__ import annotations

from collections.abc import Callable
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from axis_core.cache.keyed_cache import KeyedCache, create_cache
from axis_core.cache.single_flight import SingleFlight
from axis_core.core.settings import Settings, get_settings
from axis_core.db.session import get_db_session
from axis_core.domain.errors import AuthenticationError, PermissionDeniedError
from axis_core.domain.ids import UniqueIdGenerator
from axis_core.domain.permissions import Permission
from axis_core.repositories.anticipation_repository import AnticipationRepository
from axis_core.repositories.company_repository import CompanyRepository
from axis_core.repositories.queue_repository import QueueRepository
from axis_core.repositories.release_schedule_repository import (
    ReleaseScheduleRepository,
)
from axis_core.repositories.transaction_repository import TransactionRepository
from axis_core.services.anticipation_service import AnticipationService
from axis_core.services.identity_service import CallerIdentity, IdentityService
from axis_core.services.ledger_service import IdempotentLedger
from axis_core.services.payment_events_service import PaymentEventsService
from axis_core.services.request_idempotency import RequestIdempotencyGuard


@lru_cache(maxsize=1)
def get_cache() -> KeyedCache:
    """Return the process-wide cache client."""

    return create_cache(get_settings())


@lru_cache(maxsize=1)
def get_id_generator() -> UniqueIdGenerator:
    """Return the process-wide id generator for the configured machine id."""

    return UniqueIdGenerator(get_settings().machine_id)


def get_identity_service(
    session: Annotated[Session, Depends(get_db_session)],
    cache: Annotated[KeyedCache, Depends(get_cache)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> IdentityService:
    return IdentityService(
        api_key_repository=CompanyRepository(session),
        cache=cache,
        single_flight=SingleFlight(cache),
        ttl_seconds=settings.api_key_cache_ttl_seconds,
        lock_timeout_ms=settings.api_key_lock_timeout_ms,
    )


def get_caller_identity(
    identity_service: Annotated[IdentityService, Depends(get_identity_service)],
    x_api_key_public: Annotated[str | None, Header()] = None,
    x_api_key_secret: Annotated[str | None, Header()] = None,
) -> CallerIdentity:
    """Resolve the caller from the API key headers."""

    if not x_api_key_public or not x_api_key_secret:
        raise AuthenticationError()
    return identity_service.resolve_api_key(x_api_key_public, x_api_key_secret)


def require_permission(
    permission: Permission,
) -> Callable[[CallerIdentity], CallerIdentity]:
    """Build a dependency that rejects callers lacking ``permission``."""

    def dependency(
        identity: Annotated[CallerIdentity, Depends(get_caller_identity)],
    ) -> CallerIdentity:
        if not identity.permissions.allows(permission):
            raise PermissionDeniedError(details={"permission": permission.value})
        return identity

    return dependency


def get_idempotency_guard(
    cache: Annotated[KeyedCache, Depends(get_cache)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> RequestIdempotencyGuard:
    return RequestIdempotencyGuard(
        cache,
        ttl_seconds=settings.idempotency_ttl_seconds,
        fail_open=settings.idempotency_fail_open,
    )


def get_idempotency_token(
    request: Request,
    settings: Annotated[Settings, Depends(get_settings)],
) -> str | None:
    """Read the idempotency token from the configured header."""

    return request.headers.get(settings.idempotency_header_name)


def get_anticipation_service(
    session: Annotated[Session, Depends(get_db_session)],
    id_generator: Annotated[UniqueIdGenerator, Depends(get_id_generator)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> AnticipationService:
    """Build anticipation service with per-request session."""

    return AnticipationService(
        schedule_repository=ReleaseScheduleRepository(session),
        anticipation_repository=AnticipationRepository(session),
        queue_repository=QueueRepository(session),
        tax_config_repository=CompanyRepository(session),
        session=session,
        id_generator=id_generator,
        min_net_amount=settings.anticipation_min_net_amount,
    )


def get_payment_events_service(
    session: Annotated[Session, Depends(get_db_session)],
    id_generator: Annotated[UniqueIdGenerator, Depends(get_id_generator)],
) -> PaymentEventsService:
    """Build payment events service with per-request session."""

    return PaymentEventsService(
        ledger=IdempotentLedger(
            transaction_repository=TransactionRepository(session),
            id_generator=id_generator,
        ),
        schedule_repository=ReleaseScheduleRepository(session),
        tax_config_repository=CompanyRepository(session),
        session=session,
        id_generator=id_generator,
    )
