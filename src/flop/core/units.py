"""
FLOP token unit helpers.

These helpers standardize 18-decimal FLOP amounts and provide base-unit
conversions without relying on floats.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_DOWN, localcontext
from typing import Any

from flop.core.constants import TOKEN_DECIMALS, WEI_PER_TOKEN

_QUANTIZER = Decimal(f"1e-{TOKEN_DECIMALS}")
# uint256 amounts need 78 digits plus the fractional part
_PRECISION = 100


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, str)):
        return Decimal(str(value))
    raise ValueError("Amount must be int, str, or Decimal")


def quantize_flop(value: Any) -> Decimal:
    """Convert to a Decimal FLOP amount with 18-decimal precision."""
    try:
        dec = _to_decimal(value)
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise ValueError(f"Invalid amount value: {value}") from exc

    if dec.is_nan():
        raise ValueError("Amount cannot be NaN")
    if dec.is_infinite():
        raise ValueError("Amount cannot be infinite")

    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return dec.quantize(_QUANTIZER, rounding=ROUND_DOWN)


def to_base_units(value: Any) -> int:
    """Convert a FLOP amount to base units as int."""
    dec = quantize_flop(value)
    if dec < 0:
        raise ValueError("Amount cannot be negative")
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return int((dec * Decimal(WEI_PER_TOKEN)).to_integral_value(rounding=ROUND_DOWN))


def from_base_units(value: int) -> Decimal:
    """Convert base units int to Decimal FLOP amount."""
    if not isinstance(value, int):
        raise ValueError("Base units must be an int")
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return (Decimal(value) / Decimal(WEI_PER_TOKEN)).quantize(_QUANTIZER, rounding=ROUND_DOWN)


def format_flop(base_units: int) -> str:
    """Format a base-unit amount as a FLOP string without trailing zeros."""
    text = f"{from_base_units(base_units):f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text
