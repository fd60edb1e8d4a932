"""
Contract execution exception hierarchy.

Every in-memory contract (tokens, Vester) signals a rejected call by raising
VMExecutionError. Nothing is committed when one is raised, so callers can
treat it the same way a reverted transaction is treated on chain.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class VMError(Exception):
    """Base exception for contract execution failures.

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


class VMExecutionError(VMError):
    """Raised when a contract call reverts."""
    pass
