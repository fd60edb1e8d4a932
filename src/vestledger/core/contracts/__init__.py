"""
Token contracts backing the vesting ledger.

This module provides:
- ERC20Token: fungible reward asset, mintable by its owner only
- EscrowedToken: non-transferable collateral, minted and burned by allow-listed minters
"""

from .erc20 import ZERO_ADDRESS, ERC20Token, TokenEvent
from .escrowed_token import (
    EscrowedToken,
    NotAuthorizedMinterError,
    TransfersDisabledError,
    ZeroAmountError,
)

__all__ = [
    # Token Standards
    "ERC20Token",
    "EscrowedToken",
    "TokenEvent",
    "ZERO_ADDRESS",
    # Exceptions
    "TransfersDisabledError",
    "NotAuthorizedMinterError",
    "ZeroAmountError",
]
