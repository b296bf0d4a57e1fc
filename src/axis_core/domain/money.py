"""Integer minor-unit money helpers.

Every monetary amount in the system is an integer count of the currency's
minor unit (cents). Fractional intermediate results are always floored
toward zero so the company is never credited more than it is entitled to.
"""

from decimal import ROUND_DOWN, Decimal


def floor_amount(value: Decimal) -> int:
    """Truncate a fractional minor-unit value toward zero."""

    return int(value.to_integral_value(rounding=ROUND_DOWN))


def split_evenly(amount: int, parts: int) -> list[int]:
    """Split an amount into ``parts`` shares with the remainder on the last one."""

    if parts <= 0:
        msg = "parts must be a positive integer."
        raise ValueError(msg)
    share = floor_amount(Decimal(amount) / Decimal(parts))
    shares = [share] * parts
    shares[-1] = amount - share * (parts - 1)
    return shares
