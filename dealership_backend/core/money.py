# core/money.py

"""
MONEY PRIMITIVES

HARD RULES:
- Money is an integer amount of minor units (no floats, ever).
- Stored amounts are >= 0; signed values only appear as local deltas.
- Percentages round half up to the nearest minor unit.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable

from core.exceptions import InsufficientBalance, ValidationError


def to_money(value, *, field: str = "amount", allow_zero: bool = True) -> int:
    """
    Normalize caller input into a non-negative integer amount.

    Accepts int, integral Decimal, or digit strings ("150000000").
    Rejects bool, fractional values and negatives.
    """
    if value is None or value == "":
        raise ValidationError(f"{field} is required")

    if isinstance(value, bool):
        # guardrail: bool is an int subclass in Python
        raise ValidationError(f"{field} must be a whole amount")

    if isinstance(value, int):
        amount = value
    else:
        try:
            dec = Decimal(str(value).strip())
        except (InvalidOperation, ValueError) as exc:
            raise ValidationError(f"{field} must be a whole amount") from exc
        if dec != dec.to_integral_value():
            raise ValidationError(f"{field} must be a whole amount (no fractional units)")
        amount = int(dec)

    if amount < 0:
        raise ValidationError(f"{field} cannot be negative")
    if amount == 0 and not allow_zero:
        raise ValidationError(f"{field} must be greater than zero")

    return amount


def money_sum(values: Iterable[int]) -> int:
    total = 0
    for v in values:
        total += int(v)
    return total


def percent_of(amount: int, percent: int) -> int:
    """percent_of(500_000_000, 30) -> 150_000_000"""
    result = (Decimal(int(amount)) * Decimal(int(percent)) / Decimal(100)).quantize(
        Decimal("1"), rounding=ROUND_HALF_UP
    )
    return int(result)


def checked_sub(balance: int, amount: int, *, what: str = "balance") -> int:
    """Subtract without ever producing a negative balance."""
    if amount > balance:
        raise InsufficientBalance(
            f"Amount {amount} exceeds remaining {what} {balance}.",
            details={"remaining": balance, "requested": amount},
        )
    return balance - amount


def checked_add(current: int, amount: int, *, ceiling: int, what: str = "total") -> int:
    """Add without exceeding a ceiling (e.g. paid_amount <= final_amount)."""
    if current + amount > ceiling:
        raise InsufficientBalance(
            f"Amount {amount} would exceed {what} {ceiling} (already {current}).",
            details={"current": current, "requested": amount, "ceiling": ceiling},
        )
    return current + amount
