"""Money transfer orchestration.

A transfer moves through these states::

    INITIATED -> SOURCE_LOCKED -> BOTH_LOCKED -> WITHDRAWN -> DEPOSITED
              -> PERSISTED -> RELEASED -> COMMITTED

and ends in ABORTED from wherever it fails. Locks are always taken in
ascending account id order, so ``SOURCE_LOCKED`` means "the first lock of
the pair is held", which may well be the target's. Two transfers between the
same pair of accounts in opposite directions therefore queue on the same
first lock instead of deadlocking.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from ..core.config import Settings
from ..core.errors import (
    BuckPalError,
    InsufficientFundsError,
    PersistenceError,
    ThresholdExceededError,
    TransferFailureReason,
)
from ..domain import Account, AccountId, Activity, Money, utcnow
from .ports import AccountLock, LoadAccountPort, RecordActivitiesPort, SendMoneyCommand


logger = logging.getLogger(__name__)


class TransferState(str, Enum):
    INITIATED = "INITIATED"
    SOURCE_LOCKED = "SOURCE_LOCKED"
    BOTH_LOCKED = "BOTH_LOCKED"
    WITHDRAWN = "WITHDRAWN"
    DEPOSITED = "DEPOSITED"
    PERSISTED = "PERSISTED"
    RELEASED = "RELEASED"
    COMMITTED = "COMMITTED"
    ABORTED = "ABORTED"


@dataclass(frozen=True)
class MoneyTransferProperties:
    maximum_transfer_threshold: Money = Money.of(1_000_000)
    activity_window: timedelta = timedelta(days=10)

    @classmethod
    def from_settings(cls, settings: Settings) -> MoneyTransferProperties:
        return cls(
            maximum_transfer_threshold=Money.of(settings.maximum_transfer_threshold),
            activity_window=timedelta(days=settings.activity_window_days),
        )


@dataclass(frozen=True)
class TransferResult:
    success: bool
    state: TransferState
    last_state: TransferState
    reason: Optional[TransferFailureReason] = None
    detail: Optional[str] = None
    error: Optional[BuckPalError] = None
    source_balance: Optional[Money] = None
    target_balance: Optional[Money] = None

    def raise_for_failure(self) -> None:
        if self.error is not None:
            raise self.error


class TransferService:
    def __init__(
        self,
        load_account_port: LoadAccountPort,
        record_activities_port: RecordActivitiesPort,
        account_lock: AccountLock,
        properties: Optional[MoneyTransferProperties] = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.load_account_port = load_account_port
        self.record_activities_port = record_activities_port
        self.account_lock = account_lock
        self.properties = properties or MoneyTransferProperties()
        self.clock = clock

    def send_money(self, command: SendMoneyCommand) -> TransferResult:
        return self.transfer(
            command.source_account_id,
            command.target_account_id,
            command.money,
        )

    def transfer(
        self,
        source_account_id: AccountId,
        target_account_id: AccountId,
        amount: Money,
    ) -> TransferResult:
        """Move ``amount`` from source to target.

        ``amount`` must already be positive. Failures never raise; they come
        back as an aborted ``TransferResult`` carrying the reason and the
        original error. Every lock taken here is released before returning.
        """
        state = TransferState.INITIATED
        acquired: list[AccountId] = []
        try:
            self._check_threshold(amount)

            # Unknown accounts are reported before any lock is taken.
            self._load_pair(source_account_id, target_account_id)

            for account_id in sorted({source_account_id, target_account_id}):
                self.account_lock.lock_account(account_id)
                acquired.append(account_id)
                if len(acquired) == 1 and source_account_id != target_account_id:
                    state = TransferState.SOURCE_LOCKED
                else:
                    state = TransferState.BOTH_LOCKED

            # Reload under the locks so the balance reflects transfers that
            # committed while we were waiting.
            source, target = self._load_pair(source_account_id, target_account_id)

            now = self.clock()
            if not source.withdraw(amount, target_account_id, timestamp=now):
                raise InsufficientFundsError(
                    f"Insufficient funds in account {source_account_id} "
                    f"to transfer {amount}"
                )
            state = TransferState.WITHDRAWN

            target.deposit(amount, source_account_id, timestamp=now)
            state = TransferState.DEPOSITED

            source_balance = source.calculate_balance()
            target_balance = target.calculate_balance()

            self._persist(self._new_activities(source, target))
            state = TransferState.PERSISTED
        except BuckPalError as exc:
            return self._abort(state, exc, source_account_id, target_account_id, amount)
        finally:
            for account_id in reversed(acquired):
                self.account_lock.release_account(account_id)

        logger.info(
            "transfer.committed",
            extra={
                "source_account_id": source_account_id,
                "target_account_id": target_account_id,
                "amount": amount.amount,
            },
        )
        return TransferResult(
            success=True,
            state=TransferState.COMMITTED,
            last_state=TransferState.RELEASED,
            source_balance=source_balance,
            target_balance=target_balance,
        )

    def _check_threshold(self, amount: Money) -> None:
        threshold = self.properties.maximum_transfer_threshold
        if amount > threshold:
            raise ThresholdExceededError(
                f"Maximum threshold for transferring money exceeded: "
                f"tried to transfer {amount} but threshold is {threshold}"
            )

    def _load_pair(
        self, source_account_id: AccountId, target_account_id: AccountId
    ) -> tuple[Account, Account]:
        baseline_date = self.clock() - self.properties.activity_window
        source = self._load(source_account_id, baseline_date)
        if source_account_id == target_account_id:
            return source, source
        target = self._load(target_account_id, baseline_date)
        return source, target

    def _load(self, account_id: AccountId, baseline_date: datetime) -> Account:
        try:
            return self.load_account_port.load_account(account_id, baseline_date)
        except BuckPalError:
            raise
        except Exception as exc:
            raise PersistenceError(f"Failed to load account {account_id}: {exc}") from exc

    def _new_activities(self, source: Account, target: Account) -> list[Activity]:
        if source is target:
            return source.new_activities()
        return source.new_activities() + target.new_activities()

    def _persist(self, activities: list[Activity]) -> None:
        try:
            self.record_activities_port.record_activities(activities)
        except PersistenceError:
            raise
        except Exception as exc:
            raise PersistenceError(f"Failed to record activities: {exc}") from exc

    def _abort(
        self,
        state: TransferState,
        exc: BuckPalError,
        source_account_id: AccountId,
        target_account_id: AccountId,
        amount: Money,
    ) -> TransferResult:
        log = logger.error if isinstance(exc, PersistenceError) else logger.info
        log(
            "transfer.aborted",
            extra={
                "source_account_id": source_account_id,
                "target_account_id": target_account_id,
                "amount": amount.amount,
                "reason": exc.reason.value if exc.reason else None,
                "failed_after": state.value,
            },
        )
        return TransferResult(
            success=False,
            state=TransferState.ABORTED,
            last_state=state,
            reason=exc.reason,
            detail=str(exc),
            error=exc,
        )
