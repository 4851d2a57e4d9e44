"""Boundaries between the transfer core and the outside world.

The core only talks to these abstract ports; concrete adapters (the SQLModel
persistence adapter, the in-process lock manager) are handed to the services
as constructor arguments.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from ..core.errors import InvalidAmountError
from ..domain import Account, AccountId, Activity, Money


class LoadAccountPort(ABC):
    @abstractmethod
    def load_account(self, account_id: AccountId, baseline_date: datetime) -> Account:
        """Load an account with the activities since ``baseline_date``.

        Everything before ``baseline_date`` is folded into the baseline
        balance. Raises ``AccountNotFoundError`` for an unknown id.
        """


class RecordActivitiesPort(ABC):
    @abstractmethod
    def record_activities(self, activities: Sequence[Activity]) -> None:
        """Store new activities, all of them or none.

        Raises ``PersistenceError`` when nothing could be stored.
        """


class AccountLock(ABC):
    @abstractmethod
    def lock_account(self, account_id: AccountId) -> None:
        """Block until the account is exclusively held, or raise ``LockTimeoutError``."""

    @abstractmethod
    def release_account(self, account_id: AccountId) -> None: ...


@dataclass(frozen=True)
class SendMoneyCommand:
    source_account_id: AccountId
    target_account_id: AccountId
    money: Money

    def __post_init__(self) -> None:
        if not self.money.is_positive():
            raise InvalidAmountError(
                f"Transfer amount must be positive, got {self.money}"
            )
