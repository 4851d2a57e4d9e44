from functools import lru_cache

from fastapi import Depends
from sqlmodel import Session

from ..services import (
    AccountLockManager,
    AccountPersistenceAdapter,
    AccountService,
    MoneyTransferProperties,
    TransferService,
)
from .config import get_settings
from .db import get_session


@lru_cache(maxsize=1)
def get_account_lock() -> AccountLockManager:
    # One lock manager per process; every request must see the same locks.
    return AccountLockManager(get_settings().lock_timeout_seconds)


def get_transfer_properties() -> MoneyTransferProperties:
    return MoneyTransferProperties.from_settings(get_settings())


def get_persistence_adapter(session: Session = Depends(get_session)) -> AccountPersistenceAdapter:
    return AccountPersistenceAdapter(session)


def get_transfer_service(
    adapter: AccountPersistenceAdapter = Depends(get_persistence_adapter),
    account_lock: AccountLockManager = Depends(get_account_lock),
    properties: MoneyTransferProperties = Depends(get_transfer_properties),
) -> TransferService:
    return TransferService(adapter, adapter, account_lock, properties)


def get_account_service(
    adapter: AccountPersistenceAdapter = Depends(get_persistence_adapter),
    properties: MoneyTransferProperties = Depends(get_transfer_properties),
) -> AccountService:
    return AccountService(adapter, properties)
