from .accounts import AccountService
from .locks import AccountLockManager
from .ports import AccountLock, LoadAccountPort, RecordActivitiesPort, SendMoneyCommand
from .repository import AccountPersistenceAdapter
from .transfer import MoneyTransferProperties, TransferResult, TransferService, TransferState

__all__ = [
    "AccountLock",
    "AccountLockManager",
    "AccountPersistenceAdapter",
    "AccountService",
    "LoadAccountPort",
    "MoneyTransferProperties",
    "RecordActivitiesPort",
    "SendMoneyCommand",
    "TransferResult",
    "TransferService",
    "TransferState",
]
