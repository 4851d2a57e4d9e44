from __future__ import annotations

from enum import Enum


class TransferFailureReason(str, Enum):
    INVALID_AMOUNT = "INVALID_AMOUNT"
    INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"
    ACCOUNT_NOT_FOUND = "ACCOUNT_NOT_FOUND"
    LOCK_TIMEOUT = "LOCK_TIMEOUT"
    PERSISTENCE_FAILURE = "PERSISTENCE_FAILURE"
    ARITHMETIC_OVERFLOW = "ARITHMETIC_OVERFLOW"
    THRESHOLD_EXCEEDED = "THRESHOLD_EXCEEDED"


class BuckPalError(Exception):
    """Base class for errors raised by the transfer core and its adapters."""

    reason: TransferFailureReason | None = None


class InvalidAmountError(BuckPalError, ValueError):
    """Raised when a transfer or activity amount is not acceptable."""

    reason = TransferFailureReason.INVALID_AMOUNT


class InsufficientFundsError(BuckPalError):
    """Raised when a withdrawal would drop the balance below zero."""

    reason = TransferFailureReason.INSUFFICIENT_FUNDS


class AccountNotFoundError(BuckPalError):
    """Raised when an account id is missing from the store."""

    reason = TransferFailureReason.ACCOUNT_NOT_FOUND


class LockTimeoutError(BuckPalError):
    """Raised when an account lock cannot be acquired within the bounded wait."""

    reason = TransferFailureReason.LOCK_TIMEOUT


class PersistenceError(BuckPalError):
    """Raised when new activities could not be recorded."""

    reason = TransferFailureReason.PERSISTENCE_FAILURE


class ArithmeticOverflowError(BuckPalError, ArithmeticError):
    """Raised when a Money value leaves the signed 64-bit range."""

    reason = TransferFailureReason.ARITHMETIC_OVERFLOW


class ThresholdExceededError(BuckPalError):
    """Raised when a transfer is larger than the configured maximum."""

    reason = TransferFailureReason.THRESHOLD_EXCEEDED
