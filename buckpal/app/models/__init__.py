from .db import Account as AccountModel
from .db import Activity as ActivityModel
from .schemas import (
    AccountCreate,
    AccountResponse,
    ActivitiesResponse,
    ActivityResponse,
    BalanceResponse,
    TransferRequest,
    TransferResponse,
)

__all__ = [
    "AccountCreate",
    "AccountResponse",
    "ActivitiesResponse",
    "ActivityResponse",
    "BalanceResponse",
    "TransferRequest",
    "TransferResponse",
    "AccountModel",
    "ActivityModel",
]
