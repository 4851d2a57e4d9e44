"""Money value object.

Amounts are whole minor currency units (e.g. cents). Python integers never
wrap, so the representable range is pinned to the signed 64-bit range of the
BIGINT column the persistence adapter stores amounts in; any value outside it
raises ``ArithmeticOverflowError`` instead of being silently truncated later.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from ..core.errors import ArithmeticOverflowError

MIN_AMOUNT = -(2**63)
MAX_AMOUNT = 2**63 - 1


@dataclass(frozen=True, order=True)
class Money:
    amount: int

    ZERO: ClassVar["Money"]

    def __post_init__(self) -> None:
        if isinstance(self.amount, bool) or not isinstance(self.amount, int):
            raise TypeError(f"Money amount must be an int, got {type(self.amount).__name__}")
        if not MIN_AMOUNT <= self.amount <= MAX_AMOUNT:
            raise ArithmeticOverflowError(f"Money amount {self.amount} is out of range")

    @classmethod
    def of(cls, value: int) -> Money:
        return cls(value)

    @staticmethod
    def add(a: Money, b: Money) -> Money:
        return Money(a.amount + b.amount)

    @staticmethod
    def subtract(a: Money, b: Money) -> Money:
        return Money(a.amount - b.amount)

    def negate(self) -> Money:
        return Money(-self.amount)

    def plus(self, other: Money) -> Money:
        return Money.add(self, other)

    def minus(self, other: Money) -> Money:
        return Money.subtract(self, other)

    def is_positive(self) -> bool:
        return self.amount > 0

    def is_positive_or_zero(self) -> bool:
        return self.amount >= 0

    def is_negative(self) -> bool:
        return self.amount < 0

    def __add__(self, other: object) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        return Money.add(self, other)

    def __sub__(self, other: object) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        return Money.subtract(self, other)

    def __neg__(self) -> Money:
        return self.negate()

    def __int__(self) -> int:
        return self.amount

    def __str__(self) -> str:
        return str(self.amount)


Money.ZERO = Money(0)
