"""Exception handlers rendering every failure as ``{code, message, details?}``."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any, cast

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from axis_core.db.models.anticipation import is_open_anticipation_violation
from axis_core.domain.errors import (
    DomainError,
    InvalidRequestError,
    PendingAnticipationExistsError,
    compose_error_message,
)

logger = logging.getLogger(__name__)


def render_error(error: DomainError) -> JSONResponse:
    body: dict[str, Any] = {"code": error.code, "message": error.message}
    if error.details:
        body["details"] = jsonable_encoder(error.details)
    return JSONResponse(status_code=error.status_code, content=body)


def integrity_to_domain(exc: IntegrityError) -> DomainError:
    """Map a constraint violation that escaped a service to a 409 error."""

    if is_open_anticipation_violation(str(exc.orig)):
        return PendingAnticipationExistsError()
    return DomainError(
        code="PERSISTENCE_CONFLICT",
        status_code=HTTPStatus.CONFLICT,
        message=compose_error_message(
            cause="The request conflicts with data already stored.",
            action="Reload the affected resource and retry.",
        ),
    )


async def on_domain_error(_: Request, exc: DomainError) -> JSONResponse:
    if exc.status_code >= HTTPStatus.INTERNAL_SERVER_ERROR:
        logger.error(
            "domain_error",
            extra={"code": exc.code, "status_code": exc.status_code},
        )
    return render_error(exc)


async def on_validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
    error = InvalidRequestError(
        message=compose_error_message(
            cause="The request is malformed or misses required fields.",
            action="Correct the fields listed in details and resend.",
        ),
        details={"errors": jsonable_encoder(exc.errors())},
    )
    return render_error(error)


async def on_integrity_error(_: Request, exc: IntegrityError) -> JSONResponse:
    error = integrity_to_domain(exc)
    logger.warning("integrity_conflict", extra={"code": error.code})
    return render_error(error)


async def on_unexpected_error(_: Request, exc: Exception) -> JSONResponse:
    error_type = type(exc).__name__
    logger.exception("unexpected_error", extra={"error_type": error_type})
    return render_error(
        DomainError(
            code="INTERNAL_SERVER_ERROR",
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            message=compose_error_message(
                cause="The server failed while handling the request.",
                action="Retry later; report the error type if it persists.",
            ),
            details={"error_type": error_type},
        )
    )


def register_error_handlers(app: FastAPI) -> None:
    handlers: tuple[tuple[type[Exception], Any], ...] = (
        (DomainError, on_domain_error),
        (RequestValidationError, on_validation_error),
        (IntegrityError, on_integrity_error),
        (Exception, on_unexpected_error),
    )
    for exc_class, handler in handlers:
        app.add_exception_handler(exc_class, cast(Any, handler))
