"""Domain exceptions used across API, services and batch jobs."""

from __future__ import annotations

from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any


def compose_error_message(*, cause: str, action: str) -> str:
    """Build a user-facing error message with cause and corrective action."""

    return f"Cause: {cause} Action: {action}"


@dataclass(slots=True)
class DomainError(Exception):
    """Base exception for predictable domain failures."""

    code: str
    message: str
    status_code: int
    details: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return self.message


class InvalidRequestError(DomainError):
    """Raised when user sends semantically invalid input."""

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            code="INVALID_REQUEST",
            status_code=HTTPStatus.BAD_REQUEST,
            message=message
            or compose_error_message(
                cause="Request data violates business rules.",
                action="Adjust the input fields and try again.",
            ),
            details=details or {},
        )


class MissingIdempotencyKeyError(DomainError):
    """Raised when a side-effecting request carries no idempotency token."""

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            code="MISSING_IDEMPOTENCY_KEY",
            status_code=HTTPStatus.BAD_REQUEST,
            message=message
            or compose_error_message(
                cause="The idempotency key header is missing.",
                action="Send a unique idempotency key with this request.",
            ),
            details=details or {},
        )


class AuthenticationError(DomainError):
    """Raised when caller credentials cannot be resolved to an identity."""

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            code="UNAUTHORIZED",
            status_code=HTTPStatus.UNAUTHORIZED,
            message=message
            or compose_error_message(
                cause="API credentials are missing or invalid.",
                action="Send a valid public and secret API key pair.",
            ),
            details=details or {},
        )


class PermissionDeniedError(DomainError):
    """Raised when the caller lacks the permission a route requires."""

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            code="FORBIDDEN",
            status_code=HTTPStatus.FORBIDDEN,
            message=message
            or compose_error_message(
                cause="The API key does not grant the required permission.",
                action="Use an API key with the required permission.",
            ),
            details=details or {},
        )


class NotFoundError(DomainError):
    """Raised when a referenced entity does not exist."""

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            code="NOT_FOUND",
            status_code=HTTPStatus.NOT_FOUND,
            message=message
            or compose_error_message(
                cause="The referenced resource was not found.",
                action="Verify the identifier and retry.",
            ),
            details=details or {},
        )


class IdempotencyConflictError(DomainError):
    """Raised when an identical request is still being processed."""

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            code="IDEMPOTENCY_REQUEST_IN_PROGRESS",
            status_code=HTTPStatus.CONFLICT,
            message=message
            or compose_error_message(
                cause="A request with this idempotency key is in progress.",
                action="Wait for the first request to finish and retry.",
            ),
            details=details or {},
        )


class PendingAnticipationExistsError(DomainError):
    """Raised when the company already has an open anticipation."""

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            code="PENDING_ANTICIPATION_EXISTS",
            status_code=HTTPStatus.CONFLICT,
            message=message
            or compose_error_message(
                cause="There is already a pending anticipation for this company.",
                action="Wait until the current anticipation is settled.",
            ),
            details=details or {},
        )


class NoEligibleSchedulesError(DomainError):
    """Raised when no scheduled release can be anticipated."""

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            code="NO_ELIGIBLE_SCHEDULES",
            status_code=HTTPStatus.UNPROCESSABLE_ENTITY,
            message=message
            or compose_error_message(
                cause="No scheduled releases are eligible for anticipation.",
                action="Check type and currency or retry after new releases.",
            ),
            details=details or {},
        )


class AnticipationBelowMinimumError(DomainError):
    """Raised when the anticipated net amount is under the minimum."""

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            code="ANTICIPATION_BELOW_MINIMUM",
            status_code=HTTPStatus.UNPROCESSABLE_ENTITY,
            message=message
            or compose_error_message(
                cause="The anticipation net amount is below the minimum.",
                action="Wait for more eligible releases before anticipating.",
            ),
            details=details or {},
        )


class InvalidStatusTransitionError(DomainError):
    """Raised when a status change would move backwards."""

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            code="INVALID_STATUS_TRANSITION",
            status_code=HTTPStatus.UNPROCESSABLE_ENTITY,
            message=message
            or compose_error_message(
                cause="The requested status transition is not allowed.",
                action="Reload the resource and apply a valid transition.",
            ),
            details=details or {},
        )


class ConfigurationError(DomainError):
    """Raised when required company configuration is missing."""

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            code="CONFIGURATION_ERROR",
            status_code=HTTPStatus.UNPROCESSABLE_ENTITY,
            message=message
            or compose_error_message(
                cause="Required company configuration is missing.",
                action="Configure the company taxes before retrying.",
            ),
            details=details or {},
        )


class LedgerInvariantError(DomainError):
    """Raised when a ledger row violates a construction invariant."""

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            code="LEDGER_INVARIANT_VIOLATION",
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            message=message
            or compose_error_message(
                cause="A ledger entry violates a required invariant.",
                action="Fix the entry data; no entry in the batch was written.",
            ),
            details=details or {},
        )


class CacheUnavailableError(DomainError):
    """Raised when the shared cache backend cannot be reached."""

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            code="CACHE_UNAVAILABLE",
            status_code=HTTPStatus.SERVICE_UNAVAILABLE,
            message=message
            or compose_error_message(
                cause="The cache backend is unavailable.",
                action="Retry later.",
            ),
            details=details or {},
        )


class ConcurrentUpdateError(DomainError):
    """Raised when optimistic concurrency retries are exhausted."""

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            code="CONCURRENT_UPDATE",
            status_code=HTTPStatus.CONFLICT,
            message=message
            or compose_error_message(
                cause="The record was changed concurrently too many times.",
                action="Retry the operation.",
            ),
            details=details or {},
        )
