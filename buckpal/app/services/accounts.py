from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Optional

from ..core.errors import AccountNotFoundError
from ..domain import Account, AccountId, Money, utcnow
from ..models import (
    AccountCreate,
    AccountModel,
    AccountResponse,
    ActivitiesResponse,
    ActivityResponse,
    BalanceResponse,
)
from .repository import AccountPersistenceAdapter
from .transfer import MoneyTransferProperties


logger = logging.getLogger(__name__)


class AccountService:
    """Account registration and read-side queries (balance, recent activity)."""

    def __init__(
        self,
        repository: AccountPersistenceAdapter,
        properties: Optional[MoneyTransferProperties] = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.repository = repository
        self.properties = properties or MoneyTransferProperties()
        self.clock = clock

    def _account_to_response(self, account: AccountModel) -> AccountResponse:
        return AccountResponse(
            id=account.id,
            owner_name=account.owner_name,
            created_at=account.created_at,
        )

    def _load(self, account_id: AccountId) -> Account:
        baseline_date = self.clock() - self.properties.activity_window
        return self.repository.load_account(account_id, baseline_date)

    def create_account(self, payload: AccountCreate) -> AccountResponse:
        account = self.repository.add_account(payload.owner_name)
        logger.info(
            "account.created",
            extra={"account_id": account.id, "owner_name": account.owner_name},
        )
        return self._account_to_response(account)

    def get_account(self, account_id: AccountId) -> AccountResponse:
        account = self.repository.get_account(account_id)
        if account is None:
            raise AccountNotFoundError(f"Account {account_id} not found")
        return self._account_to_response(account)

    def get_account_balance(self, account_id: AccountId) -> Money:
        return self._load(account_id).calculate_balance()

    def get_balance(self, account_id: AccountId) -> BalanceResponse:
        balance = self.get_account_balance(account_id)
        return BalanceResponse(account_id=account_id, balance=balance.amount)

    def get_activities(
        self,
        account_id: AccountId,
        limit: int = 50,
        cursor: Optional[int] = None,
    ) -> ActivitiesResponse:
        """Activities of the current window, newest first.

        ``cursor`` is the id of the last activity of the previous page.
        """
        if limit < 1:
            raise ValueError("limit must be at least 1")

        window = self._load(account_id).activity_window
        activities = list(reversed(window.activities))

        start_index = 0
        if cursor is not None:
            for idx, activity in enumerate(activities):
                if activity.id == cursor:
                    start_index = idx + 1
                    break
            else:
                raise ValueError("Invalid cursor")

        page = activities[start_index : start_index + limit]
        next_cursor = None
        if start_index + limit < len(activities):
            next_cursor = page[-1].id

        items = [
            ActivityResponse(
                id=activity.id,
                timestamp=activity.timestamp,
                owner_account_id=activity.owner_account_id,
                source_account_id=activity.source_account_id,
                target_account_id=activity.target_account_id,
                amount=activity.money.amount,
            )
            for activity in page
        ]
        return ActivitiesResponse(items=items, next_cursor=next_cursor)
