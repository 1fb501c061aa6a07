"""
Amount normalization between human (major) units and integer minor units.

Balance arithmetic is only ever done on integers; Decimal is used for the
human-facing side so 0.1 SOL is exactly 100_000_000 lamports.
"""

from __future__ import annotations

from decimal import ROUND_FLOOR, Decimal, InvalidOperation
from typing import Union

from solwallet.core.exceptions import InvalidAmount

LAMPORTS_PER_SOL = 1_000_000_000
SOL_DECIMALS = 9

HumanAmount = Union[int, float, str, Decimal]


def _to_decimal(amount: HumanAmount) -> Decimal:
    if isinstance(amount, bool):
        raise InvalidAmount(amount)
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    except (InvalidOperation, ValueError, TypeError) as e:
        raise InvalidAmount(amount) from e
    if not value.is_finite() or value <= 0:
        raise InvalidAmount(amount)
    return value


def to_minor_units(amount: HumanAmount, decimals: int) -> int:
    """floor(amount * 10**decimals). Raises InvalidAmount if not positive or rounds to zero."""
    value = _to_decimal(amount)
    minor = int((value * (Decimal(10) ** decimals)).to_integral_value(rounding=ROUND_FLOOR))
    if minor <= 0:
        raise InvalidAmount(amount)
    return minor


def to_major_units(minor: int, decimals: int) -> Decimal:
    """Presentation only: minor units scaled down by the decimal exponent."""
    return Decimal(int(minor)).scaleb(-decimals)


def sol_to_lamports(amount: HumanAmount) -> int:
    return to_minor_units(amount, SOL_DECIMALS)


def lamports_to_sol(lamports: int) -> Decimal:
    return to_major_units(lamports, SOL_DECIMALS)
