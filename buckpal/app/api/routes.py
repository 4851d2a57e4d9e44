from typing import Optional

from fastapi import APIRouter, Depends, status

from ..core.dependencies import get_account_service, get_transfer_service
from ..domain import Money
from ..models import (
    AccountCreate,
    AccountResponse,
    ActivitiesResponse,
    BalanceResponse,
    TransferRequest,
    TransferResponse,
)
from ..services import AccountService, SendMoneyCommand, TransferService


router = APIRouter(prefix="/accounts", tags=["accounts"])

@router.post("", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
def create_account(
    payload: AccountCreate,
    service: AccountService = Depends(get_account_service),
) -> AccountResponse:
    return service.create_account(payload)

@router.get("/{account_id}", response_model=AccountResponse)
def get_account(
    account_id: int,
    service: AccountService = Depends(get_account_service),
) -> AccountResponse:
    return service.get_account(account_id)

@router.get("/{account_id}/balance", response_model=BalanceResponse)
def get_balance(
    account_id: int,
    service: AccountService = Depends(get_account_service),
) -> BalanceResponse:
    return service.get_balance(account_id)

@router.get("/{account_id}/activities", response_model=ActivitiesResponse)
def get_activities(
    account_id: int,
    limit: int = 50,
    cursor: Optional[int] = None,
    service: AccountService = Depends(get_account_service),
) -> ActivitiesResponse:
    return service.get_activities(account_id, limit=limit, cursor=cursor)

transfer_router = APIRouter(prefix="/transfers", tags=["transfers"])

@transfer_router.post("", response_model=TransferResponse)
def create_transfer(
    payload: TransferRequest,
    service: TransferService = Depends(get_transfer_service),
) -> TransferResponse:
    command = SendMoneyCommand(
        source_account_id=payload.source_account_id,
        target_account_id=payload.target_account_id,
        money=Money.of(payload.amount),
    )
    result = service.send_money(command)
    result.raise_for_failure()
    return TransferResponse(
        source_account_id=payload.source_account_id,
        target_account_id=payload.target_account_id,
        amount=payload.amount,
        source_balance=result.source_balance.amount,
        target_balance=result.target_balance.amount,
    )

__all__ = ["router", "transfer_router"]
