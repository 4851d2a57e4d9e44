from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

class AccountCreate(BaseModel):
    owner_name: str = Field(..., min_length=1, description="Name of the account holder")

class AccountResponse(BaseModel):
    id: int
    owner_name: str
    created_at: datetime

class BalanceResponse(BaseModel):
    account_id: int
    balance: int = Field(..., description="Balance in minor units (e.g. cents)")

class ActivityResponse(BaseModel):
    id: int
    timestamp: datetime
    owner_account_id: int
    source_account_id: int
    target_account_id: int
    amount: int = Field(..., ge=0)

class ActivitiesResponse(BaseModel):
    items: list[ActivityResponse]
    next_cursor: Optional[int] = None

class TransferRequest(BaseModel):
    source_account_id: int
    target_account_id: int
    amount: int = Field(..., ge=1, description="Amount in minor units (must be >= 1)")

class TransferResponse(BaseModel):
    source_account_id: int
    target_account_id: int
    amount: int
    source_balance: int
    target_balance: int
