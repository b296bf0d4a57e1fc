from decimal import Decimal

import pytest

from axis_core.domain.money import floor_amount, split_evenly


def test_floor_amount_truncates_toward_zero() -> None:
    assert floor_amount(Decimal("10.99")) == 10
    assert floor_amount(Decimal("-10.99")) == -10


def test_split_evenly_puts_remainder_on_last_share() -> None:
    assert split_evenly(10000, 3) == [3333, 3333, 3334]
    assert sum(split_evenly(10001, 7)) == 10001


def test_split_evenly_rejects_non_positive_parts() -> None:
    with pytest.raises(ValueError):
        split_evenly(100, 0)
