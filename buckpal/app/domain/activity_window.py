from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from datetime import datetime
from typing import Optional

from .activity import AccountId, Activity
from .money import Money


class ActivityView(Sequence[Activity]):
    """Read-only, restartable view over the activities of a window."""

    def __init__(self, activities: list[Activity]) -> None:
        self._activities = activities

    def __getitem__(self, index):
        if isinstance(index, slice):
            return tuple(self._activities[index])
        return self._activities[index]

    def __len__(self) -> int:
        return len(self._activities)

    def __iter__(self) -> Iterator[Activity]:
        return iter(self._activities)

    def __repr__(self) -> str:
        return f"ActivityView({len(self._activities)} activities)"


class ActivityWindow:
    """Activities of an account since ``baseline_date``, oldest first.

    Activities are only ever appended. The window does not enforce that
    appended activities are newer than the last one; only the baseline bound
    is checked.
    """

    def __init__(
        self,
        activities: Iterable[Activity] = (),
        baseline_date: Optional[datetime] = None,
    ) -> None:
        self.baseline_date = baseline_date
        self._activities: list[Activity] = []
        for activity in sorted(activities, key=lambda a: a.timestamp):
            self.add_activity(activity)

    @property
    def activities(self) -> ActivityView:
        return ActivityView(self._activities)

    def add_activity(self, activity: Activity) -> None:
        if self.baseline_date is not None and activity.timestamp < self.baseline_date:
            raise ValueError(
                f"Activity at {activity.timestamp.isoformat()} precedes the window "
                f"baseline {self.baseline_date.isoformat()}"
            )
        self._activities.append(activity)

    def start_timestamp(self) -> datetime:
        if not self._activities:
            raise ValueError("Activity window is empty")
        return min(activity.timestamp for activity in self._activities)

    def end_timestamp(self) -> datetime:
        if not self._activities:
            raise ValueError("Activity window is empty")
        return max(activity.timestamp for activity in self._activities)

    def calculate_balance(self, account_id: AccountId) -> Money:
        balance = Money.ZERO
        for activity in self._activities:
            # A self-transfer is both target and source and nets to zero.
            if activity.target_account_id == account_id:
                balance = balance + activity.money
            if activity.source_account_id == account_id:
                balance = balance - activity.money
        return balance

    def __len__(self) -> int:
        return len(self._activities)
