from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from ..core.errors import AccountNotFoundError, PersistenceError
from ..domain import Account, AccountId, Activity, ActivityWindow, Money
from ..models import AccountModel, ActivityModel
from .ports import LoadAccountPort, RecordActivitiesPort


logger = logging.getLogger(__name__)


def _to_db_timestamp(value: datetime) -> datetime:
    # Timestamps are stored as naive UTC so every backend compares them alike.
    return value.astimezone(UTC).replace(tzinfo=None)


def _from_db_timestamp(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class AccountPersistenceAdapter(LoadAccountPort, RecordActivitiesPort):
    """SQLModel-backed implementation of the load and record ports."""

    def __init__(self, session: Session) -> None:
        self.session = session

    # Account rows -------------------------------------------------------
    def add_account(self, owner_name: str) -> AccountModel:
        account = AccountModel(owner_name=owner_name)
        self.session.add(account)
        self.session.commit()
        self.session.refresh(account)
        return account

    def get_account(self, account_id: AccountId) -> Optional[AccountModel]:
        return self.session.get(AccountModel, account_id)

    # LoadAccountPort ----------------------------------------------------
    def load_account(self, account_id: AccountId, baseline_date: datetime) -> Account:
        if self.get_account(account_id) is None:
            raise AccountNotFoundError(f"Account {account_id} not found")

        since = _to_db_timestamp(baseline_date)
        stmt = (
            select(ActivityModel)
            .where(ActivityModel.owner_account_id == account_id)
            .where(ActivityModel.timestamp >= since)
            .order_by(ActivityModel.timestamp, ActivityModel.id)
        )
        activities = [self._to_domain(row) for row in self.session.exec(stmt)]

        deposits = self._sum_before(account_id, since, ActivityModel.target_account_id)
        withdrawals = self._sum_before(account_id, since, ActivityModel.source_account_id)

        return Account.with_id(
            account_id,
            Money.of(deposits - withdrawals),
            ActivityWindow(activities, baseline_date=baseline_date),
        )

    def _sum_before(self, account_id: AccountId, since: datetime, column) -> int:
        stmt = (
            select(func.coalesce(func.sum(ActivityModel.amount), 0))
            .where(ActivityModel.owner_account_id == account_id)
            .where(column == account_id)
            .where(ActivityModel.timestamp < since)
        )
        return int(self.session.exec(stmt).one())

    # RecordActivitiesPort -----------------------------------------------
    def record_activities(self, activities: Sequence[Activity]) -> None:
        new_activities = [activity for activity in activities if not activity.is_persisted]
        if not new_activities:
            return

        try:
            for activity in new_activities:
                self.session.add(
                    ActivityModel(
                        timestamp=_to_db_timestamp(activity.timestamp),
                        owner_account_id=activity.owner_account_id,
                        source_account_id=activity.source_account_id,
                        target_account_id=activity.target_account_id,
                        amount=activity.money.amount,
                    )
                )
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.error(
                "activities.record.failed",
                extra={"count": len(new_activities), "error": str(exc)},
            )
            raise PersistenceError("Failed to record activities") from exc

        logger.info("activities.recorded", extra={"count": len(new_activities)})

    # Mapping ------------------------------------------------------------
    def _to_domain(self, row: ActivityModel) -> Activity:
        return Activity(
            id=row.id,
            owner_account_id=row.owner_account_id,
            source_account_id=row.source_account_id,
            target_account_id=row.target_account_id,
            timestamp=_from_db_timestamp(row.timestamp),
            money=Money.of(row.amount),
        )
