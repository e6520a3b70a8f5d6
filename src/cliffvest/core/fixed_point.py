"""
Fixed-point percentages at 1e18 scale.

0 is 0% and SCALE is 100%. Every computation stays in integers so repeated
claims never accumulate floating-point drift.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, localcontext

SCALE = 10**18
UINT256_MAX = 2**256 - 1

# Largest aggregate reserve for which amount * SCALE still fits in 256 bits
MAX_TOTAL_RESERVE = UINT256_MAX // SCALE

_HUNDRED = Decimal(100)


def mul_div(value: int, numerator: int, denominator: int) -> int:
    """Return floor(value * numerator / denominator) for non-negative ints."""
    if denominator == 0:
        raise ZeroDivisionError("mul_div denominator is zero")
    if value < 0 or numerator < 0 or denominator < 0:
        raise ValueError("mul_div operands must be non-negative")
    return (value * numerator) // denominator


@dataclass(frozen=True)
class FixedPointRatio:
    """A fraction stored as an integer numerator over SCALE."""

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError("FixedPointRatio value must be an int")
        if self.value < 0:
            raise ValueError("FixedPointRatio value cannot be negative")

    @classmethod
    def from_percent(cls, percent: int | str | Decimal) -> "FixedPointRatio":
        """
        Parse a percentage such as 23, "45.6" or "12.5%" exactly.

        Floats are refused; they cannot represent most percentages exactly.

        Raises:
            ValueError: If the percentage is malformed or not representable
                at 1e18 scale
        """
        if isinstance(percent, (bool, float)):
            raise ValueError("percent must be an int, str or Decimal")
        if isinstance(percent, str):
            text = percent.strip().rstrip("%").strip()
            try:
                percent = Decimal(text)
            except InvalidOperation as exc:
                raise ValueError(f"Invalid percentage: {text!r}") from exc

        with localcontext() as ctx:
            ctx.prec = 100
            scaled = Decimal(percent) * SCALE / _HUNDRED
        if not scaled.is_finite():
            raise ValueError(f"Invalid percentage: {percent}")
        if scaled != scaled.to_integral_value():
            raise ValueError(f"Percentage {percent} has more precision than 1e18 allows")
        return cls(int(scaled))

    @classmethod
    def full(cls) -> "FixedPointRatio":
        return cls(SCALE)

    @property
    def is_full(self) -> bool:
        return self.value == SCALE

    @property
    def is_zero(self) -> bool:
        return self.value == 0

    def apply(self, amount: int) -> int:
        """floor(amount * ratio)"""
        return mul_div(amount, self.value, SCALE)

    def complement_of(self, amount: int) -> int:
        """The part of amount left after applying the ratio."""
        return amount - self.apply(amount)

    def as_percent(self) -> Decimal:
        return Decimal(self.value) * _HUNDRED / SCALE

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return f"{self.as_percent().normalize():f}%"
