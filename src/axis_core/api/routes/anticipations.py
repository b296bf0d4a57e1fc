"""Anticipation routes."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse

from axis_core.api.dependencies import (
    get_anticipation_service,
    get_caller_identity,
    get_idempotency_guard,
    get_idempotency_token,
)
from axis_core.api.idempotency import idempotent_json_response
from axis_core.api.schemas.anticipations import (
    AnticipationListResponse,
    AnticipationRequest,
    AnticipationResponse,
    AvailableResponse,
    SimulationResponse,
)
from axis_core.domain.enums import AnticipationStatus, Currency
from axis_core.services.anticipation_service import AnticipationService
from axis_core.services.identity_service import CallerIdentity
from axis_core.services.request_idempotency import (
    RequestIdempotencyGuard,
    StoredResponse,
)

router = APIRouter(prefix="/anticipations", tags=["Anticipations"])


@router.get(
    "/available",
    response_model=AvailableResponse,
    responses={401: {"description": "Invalid API key"}},
)
def get_available(
    currency: Currency,
    identity: Annotated[CallerIdentity, Depends(get_caller_identity)],
    service: Annotated[AnticipationService, Depends(get_anticipation_service)],
) -> AvailableResponse:
    """Summarize the releases that can be anticipated, grouped by type."""

    summary = service.get_available(identity.company_id, currency)
    return AvailableResponse.from_summary(summary)


@router.post(
    "/simulate",
    response_model=SimulationResponse,
    responses={
        401: {"description": "Invalid API key"},
        422: {"description": "No eligible schedules or missing tax config"},
    },
)
def simulate_anticipation(
    payload: AnticipationRequest,
    identity: Annotated[CallerIdentity, Depends(get_caller_identity)],
    service: Annotated[AnticipationService, Depends(get_anticipation_service)],
) -> SimulationResponse:
    """Price the anticipation of every eligible release without committing."""

    quote = service.simulate(
        identity.company_id, payload.release_type, payload.currency
    )
    return SimulationResponse.from_quote(quote)


@router.post(
    "",
    response_model=AnticipationResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Missing idempotency key"},
        401: {"description": "Invalid API key"},
        409: {"description": "Pending anticipation or request in progress"},
        422: {"description": "Below minimum or nothing eligible"},
    },
)
def create_anticipation(
    request: Request,
    payload: AnticipationRequest,
    identity: Annotated[CallerIdentity, Depends(get_caller_identity)],
    service: Annotated[AnticipationService, Depends(get_anticipation_service)],
    guard: Annotated[RequestIdempotencyGuard, Depends(get_idempotency_guard)],
    token: Annotated[str | None, Depends(get_idempotency_token)],
) -> JSONResponse:
    """Anticipate every eligible release of the requested type and currency."""

    def handler() -> StoredResponse:
        anticipation = service.create(
            identity.company_id,
            payload.release_type,
            payload.currency,
        )
        body = AnticipationResponse.from_model(anticipation).model_dump(mode="json")
        return StoredResponse(status_code=status.HTTP_201_CREATED, body=body)

    return idempotent_json_response(
        guard,
        request=request,
        token=token,
        scope=identity.company_id,
        handler=handler,
    )


@router.get(
    "",
    response_model=AnticipationListResponse,
    responses={401: {"description": "Invalid API key"}},
)
def list_anticipations(
    identity: Annotated[CallerIdentity, Depends(get_caller_identity)],
    service: Annotated[AnticipationService, Depends(get_anticipation_service)],
    status_filter: Annotated[AnticipationStatus | None, Query(alias="status")] = None,
    from_date: datetime | None = None,
    to_date: datetime | None = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
) -> AnticipationListResponse:
    """List the company's anticipations, newest first."""

    result = service.list(
        identity.company_id,
        status=status_filter,
        from_date=from_date,
        to_date=to_date,
        page=page,
        limit=limit,
    )
    return AnticipationListResponse.from_page(result)
