from types import SimpleNamespace

from axis_core.domain.permissions import (
    Permission,
    PermissionSet,
    permissions_from_api_key,
)


def test_permissions_from_api_key_maps_every_column() -> None:
    columns = {permission.value: False for permission in Permission}
    columns["write_payment"] = True
    columns["refund_payment"] = True

    permissions = permissions_from_api_key(SimpleNamespace(**columns))

    assert permissions.granted() == [
        Permission.WRITE_PAYMENT,
        Permission.REFUND_PAYMENT,
    ]
    assert not permissions.allows(Permission.READ_BALANCE)


def test_permission_set_round_trips_through_dict() -> None:
    permissions = PermissionSet(read_payment=True, write_withdrawal=True)

    restored = PermissionSet.from_dict(permissions.to_dict())

    assert restored == permissions


def test_from_dict_treats_missing_flags_as_denied() -> None:
    assert PermissionSet.from_dict({"read_balance": True}).granted() == [
        Permission.READ_BALANCE
    ]
