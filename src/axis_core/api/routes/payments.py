"""Payment event routes."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Request, status
from fastapi.responses import JSONResponse

from axis_core.api.dependencies import (
    get_idempotency_guard,
    get_idempotency_token,
    get_payment_events_service,
    require_permission,
)
from axis_core.api.idempotency import idempotent_json_response
from axis_core.api.schemas.payments import (
    PaymentApprovedRequest,
    PaymentConfirmationResponse,
    RefundResponse,
)
from axis_core.domain.clock import utc_now
from axis_core.domain.permissions import Permission
from axis_core.services.identity_service import CallerIdentity
from axis_core.services.payment_events_service import PaymentEventsService
from axis_core.services.request_idempotency import (
    RequestIdempotencyGuard,
    StoredResponse,
)

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post(
    "/events/approved",
    response_model=PaymentConfirmationResponse,
    responses={
        400: {"description": "Invalid payload or missing idempotency key"},
        401: {"description": "Invalid API key"},
        403: {"description": "Missing write_payment permission"},
        409: {"description": "Request in progress"},
    },
)
def confirm_payment(
    request: Request,
    payload: PaymentApprovedRequest,
    identity: Annotated[
        CallerIdentity,
        Depends(require_permission(Permission.WRITE_PAYMENT)),
    ],
    service: Annotated[PaymentEventsService, Depends(get_payment_events_service)],
    guard: Annotated[RequestIdempotencyGuard, Depends(get_idempotency_guard)],
    token: Annotated[str | None, Depends(get_idempotency_token)],
) -> JSONResponse:
    """Record ledger entries and release schedules of an approved payment."""

    def handler() -> StoredResponse:
        confirmation = service.confirm_payment(
            payload.to_domain(company_id=identity.company_id, now=utc_now())
        )
        body = PaymentConfirmationResponse.from_confirmation(confirmation)
        return StoredResponse(
            status_code=status.HTTP_200_OK,
            body=body.model_dump(mode="json"),
        )

    return idempotent_json_response(
        guard,
        request=request,
        token=token,
        scope=identity.company_id,
        handler=handler,
    )


@router.post(
    "/{payment_id}/refund",
    response_model=RefundResponse,
    responses={
        400: {"description": "Missing idempotency key"},
        401: {"description": "Invalid API key"},
        403: {"description": "Missing refund_payment permission"},
        409: {"description": "Request in progress"},
    },
)
def refund_payment(
    request: Request,
    payment_id: Annotated[str, Path(min_length=1, max_length=64)],
    identity: Annotated[
        CallerIdentity,
        Depends(require_permission(Permission.REFUND_PAYMENT)),
    ],
    service: Annotated[PaymentEventsService, Depends(get_payment_events_service)],
    guard: Annotated[RequestIdempotencyGuard, Depends(get_idempotency_guard)],
    token: Annotated[str | None, Depends(get_idempotency_token)],
) -> JSONResponse:
    """Cancel the releases of a refunded payment that have not started."""

    def handler() -> StoredResponse:
        cancelled = service.refund_payment(
            payment_id, company_id=identity.company_id
        )
        body = RefundResponse(payment_id=payment_id, cancelled_releases=cancelled)
        return StoredResponse(
            status_code=status.HTTP_200_OK,
            body=body.model_dump(mode="json"),
        )

    return idempotent_json_response(
        guard,
        request=request,
        token=token,
        scope=identity.company_id,
        handler=handler,
    )
