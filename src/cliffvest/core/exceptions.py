"""
Vesting-specific exception hierarchy for cliffvest.

Provides typed exceptions for reservation, start and claim operations so
callers can tell "nothing to claim" apart from "not allowed to claim" and
react to asset ledger failures precisely.
"""

from __future__ import annotations
from typing import Optional, Any, Dict


class VestingError(Exception):
    """Base exception for all vesting-related errors.

    Attributes:
        message: Human-readable error description
        details: Additional context about the error
        recoverable: Whether the operation can be retried
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable


# ==================== Validation Errors ====================


class ValidationError(VestingError):
    """Raised when input data fails validation rules."""
    pass


class InvalidConfigError(ValidationError):
    """Raised for bad schedule parameters, bad reservation entries,
    or when the aggregate reserve cap would be exceeded.
    """
    pass


class InvalidAddressError(ValidationError):
    """Raised when an address is empty, zero or malformed."""
    pass


# ==================== Lifecycle Errors ====================


class StateError(VestingError):
    """Raised when an operation is not allowed in the current lifecycle state."""
    pass


class AlreadyStartedError(StateError):
    """Raised when reserve or start is attempted after vesting started."""
    pass


class NotStartedError(StateError):
    """Raised when a claim is attempted before vesting started."""
    pass


# ==================== Authorization Errors ====================


class UnauthorizedError(VestingError):
    """Raised when a non-administrator invokes an administrator-only operation."""

    def __init__(self, account: str, **kwargs: Any) -> None:
        super().__init__(f"Unauthorized account: {account}", **kwargs)
        self.account = account


# ==================== Asset Ledger Errors ====================


class TokenError(VestingError):
    """Raised when the asset ledger rejects an operation."""
    pass


class InsufficientBalanceError(TokenError):
    """Raised when a holder lacks the balance for a transfer."""

    def __init__(self, holder: str, balance: int, needed: int) -> None:
        super().__init__(
            f"Insufficient balance for {holder}: {balance} < {needed}",
            details={"holder": holder, "balance": balance, "needed": needed},
            recoverable=True,
        )
        self.holder = holder
        self.balance = balance
        self.needed = needed


class InsufficientAllowanceError(TokenError):
    """Raised when a spender's allowance does not cover a transfer."""

    def __init__(self, spender: str, allowance: int, needed: int) -> None:
        super().__init__(
            f"Insufficient allowance for {spender}: {allowance} < {needed}",
            details={"spender": spender, "allowance": allowance, "needed": needed},
            recoverable=True,
        )
        self.spender = spender
        self.allowance = allowance
        self.needed = needed


# ==================== Configuration Errors ====================


class ConfigurationError(VestingError):
    """Raised when environment configuration is missing or invalid."""
    recoverable = False


# ==================== Utility Functions ====================


def is_recoverable_error(exc: Exception) -> bool:
    """Check if an exception represents a recoverable error.

    Args:
        exc: The exception to check

    Returns:
        True if the operation can be retried by the caller
    """
    if isinstance(exc, VestingError):
        return exc.recoverable
    return isinstance(exc, (ConnectionError, TimeoutError))


def get_error_context(exc: Exception) -> Dict[str, Any]:
    """Extract error context from an exception for logging.

    Args:
        exc: The exception to extract context from

    Returns:
        Dictionary containing error type, message, and any additional details
    """
    context: Dict[str, Any] = {
        "error_type": type(exc).__name__,
        "error_message": str(exc),
    }

    if isinstance(exc, VestingError):
        context["recoverable"] = exc.recoverable
        if exc.details:
            context["details"] = exc.details

    if isinstance(exc, UnauthorizedError):
        context["account"] = exc.account

    return context
