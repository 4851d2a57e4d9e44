from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from .activity import AccountId, Activity, utcnow
from .activity_window import ActivityWindow
from .money import Money

logger = logging.getLogger(__name__)


class Account:
    """An account holding a window of recent activities.

    The account only knows the activities inside its window. Its balance is the
    baseline balance (the net of everything before the window) plus the net
    of the window itself. ``withdraw`` and ``deposit`` are the only mutators
    and they never touch persistence; the caller hands ``new_activities()``
    to a persistence port.
    """

    def __init__(
        self,
        id: Optional[AccountId],
        baseline_balance: Money,
        activity_window: ActivityWindow,
    ) -> None:
        self.id = id
        self.baseline_balance = baseline_balance
        self.activity_window = activity_window

    @classmethod
    def without_id(cls, baseline_balance: Money, activity_window: ActivityWindow) -> Account:
        """Create an account that has not been persisted yet."""
        return cls(None, baseline_balance, activity_window)

    @classmethod
    def with_id(
        cls,
        account_id: AccountId,
        baseline_balance: Money,
        activity_window: ActivityWindow,
    ) -> Account:
        """Reconstitute a persisted account."""
        return cls(account_id, baseline_balance, activity_window)

    def calculate_balance(self) -> Money:
        return self.baseline_balance + self.activity_window.calculate_balance(self.id)

    def may_withdraw(self, money: Money) -> bool:
        return (self.calculate_balance() + money.negate()).is_positive_or_zero()

    def withdraw(
        self,
        money: Money,
        target_account_id: AccountId,
        timestamp: Optional[datetime] = None,
    ) -> bool:
        """Take ``money`` out of this account towards ``target_account_id``.

        Returns ``False`` and records nothing when the withdrawal would leave a
        negative balance. ``money`` is expected to be positive already. The
        activity is stamped with ``timestamp``, or the current UTC time.
        """
        if not self.may_withdraw(money):
            logger.info(
                "account.withdraw.rejected",
                extra={"account_id": self.id, "amount": money.amount},
            )
            return False

        withdrawal = Activity(
            owner_account_id=self.id,
            source_account_id=self.id,
            target_account_id=target_account_id,
            timestamp=timestamp or utcnow(),
            money=money,
        )
        self.activity_window.add_activity(withdrawal)
        return True

    def deposit(
        self,
        money: Money,
        source_account_id: AccountId,
        timestamp: Optional[datetime] = None,
    ) -> bool:
        deposit = Activity(
            owner_account_id=self.id,
            source_account_id=source_account_id,
            target_account_id=self.id,
            timestamp=timestamp or utcnow(),
            money=money,
        )
        self.activity_window.add_activity(deposit)
        return True

    def new_activities(self) -> list[Activity]:
        """Activities added since the account was loaded."""
        return [a for a in self.activity_window.activities if not a.is_persisted]

    def __repr__(self) -> str:
        return (
            f"Account(id={self.id!r}, baseline_balance={self.baseline_balance}, "
            f"activities={len(self.activity_window)})"
        )
