"""Ledger entry drafts, idempotency key derivation and row validation."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from axis_core.domain.enums import (
    AccountType,
    Currency,
    MovementType,
    OperationType,
    PaymentMethod,
    PaymentStatus,
)
from axis_core.domain.errors import (
    InvalidRequestError,
    LedgerInvariantError,
    compose_error_message,
)

MAX_IDEMPOTENCY_KEY_LENGTH = 255
MIN_IDEMPOTENCY_KEY_LENGTH = 10


@dataclass(slots=True, frozen=True)
class LedgerEntryDraft:
    """One money movement produced by a domain event, before persistence."""

    source_id: str
    status: PaymentStatus
    operation_type: OperationType
    account_type: AccountType
    movement_type: MovementType
    amount: int
    amount_fee: int
    amount_net: int
    currency: Currency
    company_id: str
    method: PaymentMethod | None = None
    description: str | None = None
    visible: bool = True
    installment_number: int | None = None


def build_idempotency_key(
    *,
    company_id: str,
    source_id: str,
    status: PaymentStatus,
    operation_type: OperationType,
    account_type: AccountType,
    movement_type: MovementType,
    installment_number: int | None = None,
) -> str:
    """Derive the deterministic deduplication key of a ledger entry.

    Source ids come from clients, so the key is scoped to the owning
    company. Keys longer than the column allows are rejected rather than
    truncated, since truncation could make two distinct entries collide.
    """

    event_key = "-".join(
        (
            source_id,
            status.value,
            operation_type.value,
            account_type.value,
            movement_type.value,
        )
    )
    key = f"{company_id}:{event_key}"
    if installment_number:
        key = f"{key}-{installment_number}"
    if len(key) > MAX_IDEMPOTENCY_KEY_LENGTH:
        raise InvalidRequestError(
            message=compose_error_message(
                cause=(
                    "Idempotency key exceeds maximum length of "
                    f"{MAX_IDEMPOTENCY_KEY_LENGTH} characters."
                ),
                action="Use a shorter source identifier.",
            ),
            details={"source_id": source_id, "length": len(key)},
        )
    return key


def idempotency_key_for(draft: LedgerEntryDraft) -> str:
    return build_idempotency_key(
        company_id=draft.company_id,
        source_id=draft.source_id,
        status=draft.status,
        operation_type=draft.operation_type,
        account_type=draft.account_type,
        movement_type=draft.movement_type,
        installment_number=draft.installment_number,
    )


def build_ledger_row(
    draft: LedgerEntryDraft,
    *,
    entry_id: str,
    created_at: datetime,
) -> dict[str, Any]:
    """Return the insertable row for a draft or raise if it is inconsistent."""

    if draft.amount_net != draft.amount - draft.amount_fee:
        raise LedgerInvariantError(
            message=compose_error_message(
                cause="amount_net must equal amount minus amount_fee.",
                action="Fix the entry amounts; no entry in the batch was written.",
            ),
            details={
                "source_id": draft.source_id,
                "amount": draft.amount,
                "amount_fee": draft.amount_fee,
                "amount_net": draft.amount_net,
            },
        )
    idempotency_key = idempotency_key_for(draft)
    if len(idempotency_key) < MIN_IDEMPOTENCY_KEY_LENGTH:
        raise LedgerInvariantError(
            message=compose_error_message(
                cause=(
                    "Idempotency key must have at least "
                    f"{MIN_IDEMPOTENCY_KEY_LENGTH} characters."
                ),
                action="Provide a valid source identifier.",
            ),
            details={"source_id": draft.source_id},
        )
    return {
        "id": entry_id,
        "source_id": draft.source_id,
        "description": draft.description,
        "visible": draft.visible,
        "amount": draft.amount,
        "amount_fee": draft.amount_fee,
        "amount_net": draft.amount_net,
        "idempotency_key": idempotency_key,
        "currency": draft.currency,
        "operation_type": draft.operation_type,
        "account_type": draft.account_type,
        "movement_type": draft.movement_type,
        "company_id": draft.company_id,
        "method": draft.method,
        "created_at": created_at,
    }
