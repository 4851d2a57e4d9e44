from __future__ import annotations

import logging
import threading

from ..core.errors import LockTimeoutError
from ..domain import AccountId
from .ports import AccountLock


logger = logging.getLogger(__name__)


class AccountLockManager(AccountLock):
    """In-process exclusive locks, one per account id.

    Locks are created on first use and kept for the lifetime of the manager.
    Acquisition waits at most ``timeout_seconds``.
    """

    def __init__(self, timeout_seconds: float = 5.0) -> None:
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        self.timeout_seconds = timeout_seconds
        self._registry_lock = threading.Lock()
        self._locks: dict[AccountId, threading.Lock] = {}

    def _lock_for(self, account_id: AccountId) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(account_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[account_id] = lock
            return lock

    def lock_account(self, account_id: AccountId) -> None:
        lock = self._lock_for(account_id)
        if not lock.acquire(timeout=self.timeout_seconds):
            logger.warning(
                "account.lock.timeout",
                extra={"account_id": account_id, "timeout_seconds": self.timeout_seconds},
            )
            raise LockTimeoutError(
                f"Could not lock account {account_id} within {self.timeout_seconds}s"
            )
        logger.debug("account.lock.acquired", extra={"account_id": account_id})

    def release_account(self, account_id: AccountId) -> None:
        lock = self._lock_for(account_id)
        try:
            lock.release()
        except RuntimeError as exc:
            raise RuntimeError(f"Account {account_id} is not locked") from exc
        logger.debug("account.lock.released", extra={"account_id": account_id})

    def is_locked(self, account_id: AccountId) -> bool:
        return self._lock_for(account_id).locked()
