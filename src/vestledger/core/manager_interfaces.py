"""
Ledger Protocol Interfaces - Decoupling the Vester from concrete tokens.

The Vester needs exactly two supply capabilities from the outside world:
minting the reward asset, and minting/burning the escrowed collateral. These
protocols name those capabilities so the Vester can depend on them instead
of the token classes:
- Better testability (easy to substitute a recording or failing ledger)
- Interface segregation (the Vester never sees transfer/approve)

Usage:
    vester = Vester(
        reward_token=reward,        # RewardLedger
        escrowed_token=escrowed,    # CollateralLedger
        vesting_duration=86400,
        owner=deployer,
    )
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class RewardLedger(Protocol):
    """
    Fungible ledger the Vester mints vested rewards into.

    Minting is restricted to a single controller; the Vester must be that
    controller for claims to succeed.
    """

    def mint(self, minter: str, to: str, amount: int) -> bool:
        """Increase `to`'s balance and the total supply by `amount`."""
        ...


@runtime_checkable
class CollateralLedger(Protocol):
    """
    Restricted ledger holding the non-transferable deposit collateral.

    Mint and burn are restricted to an allow-list of minters that must
    include the Vester. Transfers between accounts are always rejected, so
    deposits burn collateral and withdrawals mint it back.
    """

    def mint(self, minter: str, to: str, amount: int) -> bool:
        """Create `amount` collateral for `to`."""
        ...

    def burn_from(self, spender: str, from_addr: str, amount: int) -> bool:
        """Destroy `amount` collateral held by `from_addr`."""
        ...
