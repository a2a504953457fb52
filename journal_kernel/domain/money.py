"""
Money -- fixed-point decimal helpers for journal amounts.

Responsibility:
    Defines the canonical scale, rounding mode and magnitude limit for every
    amount the kernel computes, and the one sanctioned conversion from raw
    user input to Decimal.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    DECIMAL_ARITHMETIC -- amounts are Decimal at MONEY_SCALE places, rounded
    ROUND_HALF_UP. No floats anywhere in the kernel.

    Every rounded amount is within +/- MAX_AMOUNT, which keeps quantization
    and entry totals exact under the default decimal context.

Failure modes:
    - ValueError from parse_decimal on non-numeric, NaN, or infinite input.
    - AmountOutOfRangeError from round_money beyond MAX_AMOUNT.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from journal_kernel.exceptions import AmountOutOfRangeError

MONEY_SCALE = 2
DEFAULT_ROUNDING = ROUND_HALF_UP
ZERO = Decimal("0.00")
DEFAULT_BALANCE_TOLERANCE = Decimal("0.01")

# 18 integer digits.
MAX_AMOUNT = Decimal("999999999999999999.99")

_QUANTUM = Decimal(1).scaleb(-MONEY_SCALE)


def round_money(value: Decimal, rounding: str = DEFAULT_ROUNDING) -> Decimal:
    """
    Quantize a value to MONEY_SCALE decimal places.

    This is the ONLY sanctioned rounding function in the kernel.

    Raises:
        AmountOutOfRangeError: If the result would exceed MAX_AMOUNT, or the
            value has too many digits to quantize in the active context.
    """
    try:
        result = value.quantize(_QUANTUM, rounding=rounding)
    except InvalidOperation as e:
        raise AmountOutOfRangeError(value, MAX_AMOUNT) from e
    if not result.is_finite() or result.copy_abs() > MAX_AMOUNT:
        raise AmountOutOfRangeError(value, MAX_AMOUNT)
    return result


def is_within_range(value: Decimal) -> bool:
    """True if ``value`` does not exceed MAX_AMOUNT in magnitude."""
    return value.is_finite() and value.copy_abs() <= MAX_AMOUNT


def parse_decimal(value: Any) -> Decimal:
    """
    Convert a raw input value to a finite Decimal.

    Accepts Decimal, int, str, and float (floats go through ``str()`` so the
    shortest repr is used, never the binary expansion). Booleans are rejected
    even though they are ints.

    Raises:
        ValueError: If the value is not a finite number.
    """
    if isinstance(value, bool):
        raise ValueError(f"Not a number: {value!r}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as e:
            raise ValueError(f"Not a number: {value!r}") from e
    else:
        raise ValueError(f"Not a number: {value!r}")

    if not result.is_finite():
        raise ValueError(f"Not a finite number: {value!r}")
    return result
