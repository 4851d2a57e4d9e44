from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Optional

from ..core.errors import InvalidAmountError
from .money import Money

AccountId = int
ActivityId = int


def utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class Activity:
    """A single leg of a money transfer, as seen by ``owner_account_id``.

    The amount is never negative: whether the activity adds to or takes from
    an account's balance follows from that account being the target or the
    source.
    """

    owner_account_id: Optional[AccountId]
    source_account_id: Optional[AccountId]
    target_account_id: Optional[AccountId]
    timestamp: datetime
    money: Money
    id: Optional[ActivityId] = None

    def __post_init__(self) -> None:
        if self.money.is_negative():
            raise InvalidAmountError(
                f"Activity amount must not be negative, got {self.money}"
            )
        if self.timestamp.tzinfo is None:
            raise ValueError("Activity timestamp must be timezone-aware")

    @property
    def is_persisted(self) -> bool:
        return self.id is not None
