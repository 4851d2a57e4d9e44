from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ..core.errors import (
    AccountNotFoundError,
    ArithmeticOverflowError,
    BuckPalError,
    InsufficientFundsError,
    InvalidAmountError,
    LockTimeoutError,
    PersistenceError,
    ThresholdExceededError,
)


def _error_response(status_code: int, exc: Exception) -> JSONResponse:
    reason = exc.reason.value if isinstance(exc, BuckPalError) and exc.reason else None
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "reason": reason},
    )


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AccountNotFoundError)
    async def account_not_found_handler(
        request: Request, exc: AccountNotFoundError
    ) -> JSONResponse:
        return _error_response(404, exc)

    @app.exception_handler(InsufficientFundsError)
    async def insufficient_funds_handler(
        request: Request, exc: InsufficientFundsError
    ) -> JSONResponse:
        return _error_response(409, exc)

    @app.exception_handler(LockTimeoutError)
    async def lock_timeout_handler(request: Request, exc: LockTimeoutError) -> JSONResponse:
        return _error_response(503, exc)

    @app.exception_handler(PersistenceError)
    async def persistence_error_handler(
        request: Request, exc: PersistenceError
    ) -> JSONResponse:
        return _error_response(500, exc)

    @app.exception_handler(ArithmeticOverflowError)
    async def overflow_handler(
        request: Request, exc: ArithmeticOverflowError
    ) -> JSONResponse:
        return _error_response(422, exc)

    @app.exception_handler(ThresholdExceededError)
    async def threshold_exceeded_handler(
        request: Request, exc: ThresholdExceededError
    ) -> JSONResponse:
        return _error_response(422, exc)

    @app.exception_handler(InvalidAmountError)
    async def invalid_amount_handler(
        request: Request, exc: InvalidAmountError
    ) -> JSONResponse:
        return _error_response(400, exc)

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
        return _error_response(400, exc)
