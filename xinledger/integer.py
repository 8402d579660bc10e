"""Non-negative fixed-point amounts with eight decimal places, and ratios of them."""

from __future__ import annotations

import json
from dataclasses import dataclass
from decimal import ROUND_FLOOR, Decimal, InvalidOperation, localcontext

PRECISION = 8
_SCALE = 10**PRECISION
_UINT64_LIMIT = 1 << 64


def _check_positive_int(y: int) -> None:
    if isinstance(y, bool) or not isinstance(y, int) or y <= 0:
        raise ValueError(f"invalid operand {y!r}")


@dataclass(frozen=True, order=True)
class Integer:
    """An amount stored as a whole number of 10^-8 units."""

    value: int = 0

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError(f"integer value must be int, not {type(self.value).__name__}")
        if self.value < 0:
            raise ValueError(f"negative integer value {self.value}")

    @classmethod
    def from_string(cls, text: str) -> Integer:
        """Parse a decimal string, flooring anything below eight decimal places."""
        try:
            d = Decimal(text)
        except (InvalidOperation, TypeError, ValueError) as exc:
            raise ValueError(f"invalid amount {text!r}") from exc
        if not d.is_finite():
            raise ValueError(f"invalid amount {text!r}")
        if d < 0:
            raise ValueError(f"negative amount {text!r}")
        digits = d.as_tuple().digits
        with localcontext() as ctx:
            ctx.prec = max(d.adjusted(), 0) + len(digits) + PRECISION + 16
            scaled = (d * _SCALE).to_integral_value(rounding=ROUND_FLOOR)
        return cls(int(scaled))

    @classmethod
    def from_whole(cls, x: int) -> Integer:
        """Build an amount from a whole number of units."""
        if isinstance(x, bool) or not isinstance(x, int) or not 0 <= x < _UINT64_LIMIT:
            raise ValueError(f"invalid whole amount {x!r}")
        return cls(x * _SCALE)

    def __add__(self, other: object) -> Integer:
        if not isinstance(other, Integer):
            return NotImplemented
        if other.value <= 0:
            raise ValueError(f"invalid addition {self} {other}")
        return Integer(self.value + other.value)

    def __sub__(self, other: object) -> Integer:
        if not isinstance(other, Integer):
            return NotImplemented
        if other.value <= 0 or self.value < other.value:
            raise ValueError(f"invalid subtraction {self} {other}")
        return Integer(self.value - other.value)

    def mul(self, y: int) -> Integer:
        """Multiply by a positive whole number."""
        _check_positive_int(y)
        return Integer(self.value * y)

    def div(self, y: int) -> Integer:
        """Divide by a positive whole number, truncating."""
        _check_positive_int(y)
        return Integer(self.value // y)

    def count(self, y: Integer) -> int:
        """How many whole times ``y`` fits into this amount."""
        if self.value <= 0 or y.value <= 0 or self.value < y.value:
            raise ValueError(f"invalid count {self} {y}")
        c = self.value // y.value
        if c >= _UINT64_LIMIT:
            raise ValueError(f"count overflow {self} {y}")
        return c

    def cmp(self, other: Integer) -> int:
        return (self.value > other.value) - (self.value < other.value)

    def sign(self) -> int:
        return 1 if self.value > 0 else 0

    def __str__(self) -> str:
        s = str(self.value)
        p = len(s) - PRECISION
        if p > 0:
            return f"{s[:p]}.{s[p:]}"
        return "0." + "0" * (-p) + s

    def to_json(self) -> str:
        return json.dumps(str(self))

    @classmethod
    def from_json(cls, text: str) -> Integer:
        decoded = json.loads(text)
        if not isinstance(decoded, str):
            raise ValueError(f"amount must be a JSON string: {text!r}")
        return cls.from_string(decoded)

    def ration(self, y: Integer) -> RationalNumber:
        """The ratio of this amount to ``y``."""
        if y.value <= 0:
            raise ValueError(f"invalid ration {self} {y}")
        return RationalNumber(self.value, y.value)


@dataclass(frozen=True)
class RationalNumber:
    """A ratio of two raw amounts."""

    numerator: int
    denominator: int

    def product(self, x: Integer) -> Integer:
        """Scale ``x`` by this ratio, truncating."""
        return Integer(x.value * self.numerator // self.denominator)

    def cmp(self, other: RationalNumber) -> int:
        left = self.numerator * other.denominator
        right = self.denominator * other.numerator
        return (left > right) - (left < right)

    def __str__(self) -> str:
        return str(self.product(Integer.from_whole(1)))


ZERO = Integer(0)
ONE_RAT = Integer.from_whole(1).ration(Integer.from_whole(1))