"""API key permission record."""

from __future__ import annotations

import enum
from dataclasses import asdict, dataclass, fields
from typing import Any, Protocol


class Permission(enum.StrEnum):
    READ_INFRACTION = "read_infraction"
    READ_PAYMENT = "read_payment"
    READ_WITHDRAWAL = "read_withdrawal"
    READ_BALANCE = "read_balance"
    WRITE_PAYMENT = "write_payment"
    WRITE_WITHDRAWAL = "write_withdrawal"
    WRITE_INFRACTION = "write_infraction"
    REFUND_PAYMENT = "refund_payment"


class PermissionSource(Protocol):
    """Stored API key columns consumed by ``permissions_from_api_key``."""

    read_infraction: bool
    read_payment: bool
    read_withdrawal: bool
    read_balance: bool
    write_payment: bool
    write_withdrawal: bool
    write_infraction: bool
    refund_payment: bool


@dataclass(slots=True, frozen=True)
class PermissionSet:
    """One flag per permission granted to an API key."""

    read_infraction: bool = False
    read_payment: bool = False
    read_withdrawal: bool = False
    read_balance: bool = False
    write_payment: bool = False
    write_withdrawal: bool = False
    write_infraction: bool = False
    refund_payment: bool = False

    def allows(self, permission: Permission) -> bool:
        return bool(getattr(self, permission.value))

    def granted(self) -> list[Permission]:
        return [permission for permission in Permission if self.allows(permission)]

    def to_dict(self) -> dict[str, bool]:
        return asdict(self)

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> PermissionSet:
        return cls(**{item.name: bool(payload.get(item.name)) for item in fields(cls)})


def permissions_from_api_key(api_key: PermissionSource) -> PermissionSet:
    """Map persisted API key columns to a permission record."""

    return PermissionSet(
        read_infraction=api_key.read_infraction,
        read_payment=api_key.read_payment,
        read_withdrawal=api_key.read_withdrawal,
        read_balance=api_key.read_balance,
        write_payment=api_key.write_payment,
        write_withdrawal=api_key.write_withdrawal,
        write_infraction=api_key.write_infraction,
        refund_payment=api_key.refund_payment,
    )


def _assert_exhaustive() -> None:
    field_names = {item.name for item in fields(PermissionSet)}
    permission_names = {permission.value for permission in Permission}
    if field_names != permission_names:
        msg = "PermissionSet fields and Permission members are out of sync."
        raise RuntimeError(msg)


_assert_exhaustive()
