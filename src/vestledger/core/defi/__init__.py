"""
vestledger DeFi Protocols.

This module provides:
- Vesting: pure linear accrual over a shared duration
- Vester: deposit / claim / withdraw lifecycle converting escrowed
  collateral into the reward asset
"""

from .vester import Vester, VesterEvent
from .vesting import (
    VestingPosition,
    claimable_amount,
    time_until_fully_vested,
    unvested_amount,
    vested_amount,
)

__all__ = [
    # Vester
    "Vester",
    "VesterEvent",
    # Vesting
    "VestingPosition",
    "vested_amount",
    "claimable_amount",
    "unvested_amount",
    "time_until_fully_vested",
]
