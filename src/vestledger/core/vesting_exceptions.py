"""
Vester exception hierarchy.

Typed rejections for the vesting lifecycle. All of them derive from
VMExecutionError so a caller can handle a Vester rejection and a token
ledger rejection through one except clause, while still telling the
individual cases apart.
"""

from __future__ import annotations

from typing import Any, Optional

from .vm.exceptions import VMExecutionError


class VestingError(VMExecutionError):
    """Base exception for all Vester rejections."""
    pass


class InvalidAmountError(VestingError):
    """Raised when a deposit amount is zero, negative or not an integer."""
    pass


class NoPositionError(VestingError):
    """Raised when claim or withdraw is attempted without an open position."""

    def __init__(self, message: str, account: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.account = account


class NothingToClaimError(VestingError):
    """Raised when claim is attempted while nothing has vested beyond the claimed amount."""

    def __init__(self, message: str, account: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.account = account


class InvalidDurationError(VestingError):
    """Raised when the vesting duration is not a positive integer."""
    pass


class UnauthorizedError(VestingError):
    """Raised when the caller may not perform the operation."""
    pass


class ReentrancyError(VestingError):
    """Raised when a lifecycle call starts while another one is still in flight."""
    pass


__all__ = [
    "VestingError",
    "InvalidAmountError",
    "NoPositionError",
    "NothingToClaimError",
    "InvalidDurationError",
    "UnauthorizedError",
    "ReentrancyError",
]
