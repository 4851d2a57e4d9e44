import dataclasses
import itertools
import threading
from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy.exc import OperationalError

from ..core.errors import (
    AccountNotFoundError,
    InvalidAmountError,
    PersistenceError,
    TransferFailureReason,
)
from ..domain import MAX_AMOUNT, Account, Activity, ActivityWindow, Money
from ..services import (
    AccountLockManager,
    LoadAccountPort,
    MoneyTransferProperties,
    RecordActivitiesPort,
    SendMoneyCommand,
    TransferService,
    TransferState,
)


class InMemoryAccounts(LoadAccountPort, RecordActivitiesPort):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self.baselines: dict[int, Money] = {}
        self.activities: list[Activity] = []
        self.batches: list[list[Activity]] = []
        self.fail_with: Exception | None = None

    def add_account(self, account_id: int, baseline: int) -> None:
        self.baselines[account_id] = Money.of(baseline)

    def load_account(self, account_id: int, baseline_date: datetime) -> Account:
        with self._lock:
            if account_id not in self.baselines:
                raise AccountNotFoundError(f"Account {account_id} not found")
            owned = [a for a in self.activities if a.owner_account_id == account_id]
            return Account.with_id(
                account_id,
                self.baselines[account_id],
                ActivityWindow(owned, baseline_date=baseline_date),
            )

    def record_activities(self, activities) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        with self._lock:
            stored = [dataclasses.replace(a, id=next(self._ids)) for a in activities]
            self.activities.extend(stored)
            self.batches.append(stored)

    def balance(self, account_id: int) -> Money:
        return self.load_account(account_id, datetime.now(UTC) - timedelta(days=1)).calculate_balance()


class RecordingLock(AccountLockManager):
    def __init__(self, timeout_seconds: float = 1.0) -> None:
        super().__init__(timeout_seconds)
        self.events: list[tuple[str, int]] = []

    def lock_account(self, account_id: int) -> None:
        super().lock_account(account_id)
        self.events.append(("lock", account_id))

    def release_account(self, account_id: int) -> None:
        self.events.append(("release", account_id))
        super().release_account(account_id)


@pytest.fixture
def accounts() -> InMemoryAccounts:
    store = InMemoryAccounts()
    store.add_account(1, 1000)
    store.add_account(2, 0)
    return store


@pytest.fixture
def lock() -> RecordingLock:
    return RecordingLock()


@pytest.fixture
def service(accounts: InMemoryAccounts, lock: RecordingLock) -> TransferService:
    return TransferService(accounts, accounts, lock)


def test_transfer_succeeds(service, accounts, lock) -> None:
    result = service.transfer(1, 2, Money.of(500))

    assert result.success
    assert result.state is TransferState.COMMITTED
    assert result.reason is None
    assert result.source_balance == Money.of(500)
    assert result.target_balance == Money.of(500)
    assert accounts.balance(1) == Money.of(500)
    assert accounts.balance(2) == Money.of(500)
    assert len(accounts.batches) == 1
    assert {a.owner_account_id for a in accounts.batches[0]} == {1, 2}
    assert not lock.is_locked(1) and not lock.is_locked(2)


def test_insufficient_funds_records_nothing(service, accounts, lock) -> None:
    accounts.add_account(3, 100)

    result = service.transfer(3, 2, Money.of(500))

    assert not result.success
    assert result.state is TransferState.ABORTED
    assert result.reason is TransferFailureReason.INSUFFICIENT_FUNDS
    assert result.last_state is TransferState.BOTH_LOCKED
    assert accounts.balance(3) == Money.of(100)
    assert accounts.activities == []
    assert not lock.is_locked(2) and not lock.is_locked(3)


def test_unknown_account_is_reported_before_locking(service, lock) -> None:
    result = service.transfer(1, 99, Money.of(10))

    assert result.reason is TransferFailureReason.ACCOUNT_NOT_FOUND
    assert isinstance(result.error, AccountNotFoundError)
    assert result.last_state is TransferState.INITIATED
    assert lock.events == []


def test_locks_taken_in_ascending_order_and_released_in_reverse(service, lock) -> None:
    service.transfer(2, 1, Money.of(0))
    service.transfer(1, 2, Money.of(10))

    assert lock.events == [
        ("lock", 1), ("lock", 2), ("release", 2), ("release", 1),
        ("lock", 1), ("lock", 2), ("release", 2), ("release", 1),
    ]


def test_lock_timeout_releases_what_was_taken(accounts) -> None:
    lock = AccountLockManager(timeout_seconds=0.05)
    service = TransferService(accounts, accounts, lock)
    lock.lock_account(2)

    result = service.transfer(1, 2, Money.of(10))

    assert result.reason is TransferFailureReason.LOCK_TIMEOUT
    assert result.last_state is TransferState.SOURCE_LOCKED
    assert not lock.is_locked(1)
    assert accounts.activities == []
    lock.release_account(2)


def test_persistence_failure_is_not_success(service, accounts, lock) -> None:
    accounts.fail_with = PersistenceError("disk full")

    result = service.transfer(1, 2, Money.of(500))

    assert not result.success
    assert result.reason is TransferFailureReason.PERSISTENCE_FAILURE
    assert result.last_state is TransferState.DEPOSITED
    assert result.source_balance is None
    assert accounts.balance(1) == Money.of(1000)
    assert not lock.is_locked(1) and not lock.is_locked(2)


def test_unexpected_persistence_error_is_reported_as_persistence_failure(service, accounts) -> None:
    accounts.fail_with = RuntimeError("connection reset")

    result = service.transfer(1, 2, Money.of(5))

    assert result.reason is TransferFailureReason.PERSISTENCE_FAILURE
    assert isinstance(result.error, PersistenceError)
    assert "connection reset" in result.detail


def test_threshold_exceeded(accounts, lock) -> None:
    properties = MoneyTransferProperties(maximum_transfer_threshold=Money.of(100))
    service = TransferService(accounts, accounts, lock, properties)

    result = service.transfer(1, 2, Money.of(101))

    assert result.reason is TransferFailureReason.THRESHOLD_EXCEEDED
    assert lock.events == []


def test_target_balance_overflow_aborts(service, accounts) -> None:
    accounts.add_account(3, MAX_AMOUNT - 10)

    result = service.transfer(1, 3, Money.of(100))

    assert result.reason is TransferFailureReason.ARITHMETIC_OVERFLOW
    assert accounts.activities == []


def test_self_transfer_locks_once_and_keeps_balance(service, accounts, lock) -> None:
    result = service.transfer(1, 1, Money.of(300))

    assert result.success
    assert accounts.balance(1) == Money.of(1000)
    assert len(accounts.batches[0]) == 2
    assert lock.events == [("lock", 1), ("release", 1)]


def test_send_money_command(service, accounts) -> None:
    result = service.send_money(SendMoneyCommand(1, 2, Money.of(250)))

    assert result.success
    assert accounts.balance(2) == Money.of(250)


@pytest.mark.parametrize("amount", [0, -5])
def test_send_money_command_rejects_non_positive_amount(amount: int) -> None:
    with pytest.raises(InvalidAmountError):
        SendMoneyCommand(1, 2, Money.of(amount))


def test_opposite_concurrent_transfers_do_not_deadlock(accounts) -> None:
    accounts.add_account(2, 1000)
    lock = AccountLockManager(timeout_seconds=5)
    service = TransferService(accounts, accounts, lock)
    barrier = threading.Barrier(20)
    results = []

    def worker(source: int, target: int) -> None:
        barrier.wait()
        results.append(service.transfer(source, target, Money.of(10)))

    threads = [
        threading.Thread(target=worker, args=(1, 2) if i % 2 else (2, 1))
        for i in range(20)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)

    assert not any(thread.is_alive() for thread in threads)
    assert len(results) == 20
    assert all(result.success for result in results)
    assert accounts.balance(1) == Money.of(1000)
    assert accounts.balance(2) == Money.of(1000)
    assert not lock.is_locked(1) and not lock.is_locked(2)


def test_concurrent_withdrawals_cannot_overdraw(accounts) -> None:
    accounts.add_account(3, 0)
    lock = AccountLockManager(timeout_seconds=5)
    service = TransferService(accounts, accounts, lock)
    barrier = threading.Barrier(2)
    results = []

    def worker(target: int) -> None:
        barrier.wait()
        results.append(service.transfer(1, target, Money.of(800)))

    threads = [threading.Thread(target=worker, args=(t,)) for t in (2, 3)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)

    assert sorted(result.success for result in results) == [False, True]
    assert accounts.balance(1) == Money.of(200)


class UnreachableAccounts(InMemoryAccounts):
    """Storage that fails after ``healthy_loads`` successful loads."""

    def __init__(self, healthy_loads: int = 0) -> None:
        super().__init__()
        self.healthy_loads = healthy_loads

    def load_account(self, account_id: int, baseline_date: datetime) -> Account:
        if self.healthy_loads <= 0:
            raise OperationalError("SELECT", {}, Exception("database is down"))
        self.healthy_loads -= 1
        return super().load_account(account_id, baseline_date)


@pytest.mark.parametrize("healthy_loads, last_state", [
    (0, TransferState.INITIATED),
    (2, TransferState.BOTH_LOCKED),
])
def test_storage_error_while_loading_is_a_failed_result(
    healthy_loads: int, last_state: TransferState
) -> None:
    accounts = UnreachableAccounts(healthy_loads)
    accounts.add_account(1, 1000)
    accounts.add_account(2, 0)
    lock = AccountLockManager(timeout_seconds=0.1)
    service = TransferService(accounts, accounts, lock)

    result = service.transfer(1, 2, Money.of(10))

    assert result.success is False
    assert result.reason is TransferFailureReason.PERSISTENCE_FAILURE
    assert isinstance(result.error, PersistenceError)
    assert "database is down" in result.detail
    assert result.last_state is last_state
    assert not lock.is_locked(1) and not lock.is_locked(2)
    assert accounts.activities == []


def test_activities_are_stamped_by_the_service_clock(accounts, lock) -> None:
    ahead = datetime.now(UTC) + timedelta(days=2)
    service = TransferService(accounts, accounts, lock, clock=lambda: ahead)

    result = service.transfer(1, 2, Money.of(100))

    assert result.success
    assert [a.timestamp for a in accounts.batches[0]] == [ahead, ahead]
    assert accounts.balance(1) == Money.of(900)
