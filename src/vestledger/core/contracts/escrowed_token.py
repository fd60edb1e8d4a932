"""
Escrowed (non-transferable) token.

Collateral asset deposited into the Vester. Balances can only change through
supply operations performed by allow-listed minters:
- mint / burn_from: minter only, no allowance needed for burns
- transfer / transfer_from: always rejected, even for zero amounts
- approve: still allowed; allowances are tracked but can never be spent

The owner manages the minter allow-list.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict

from ..vm.exceptions import VMExecutionError
from .erc20 import ZERO_ADDRESS, ERC20Token

logger = logging.getLogger(__name__)


class TransfersDisabledError(VMExecutionError):
    """Raised on any attempt to move escrowed tokens between accounts."""
    pass


class NotAuthorizedMinterError(VMExecutionError):
    """Raised when a non-minter calls mint or burn."""
    pass


class ZeroAmountError(VMExecutionError):
    """Raised when minting or burning zero tokens."""
    pass


@dataclass
class EscrowedToken(ERC20Token):
    """
    ERC20-shaped token whose balances move only by mint and burn.

    Minters are kept as an explicit allow-list; the owner is not implicitly
    a minter and has to add itself like any other account.
    """

    minters: dict[str, bool] = field(default_factory=dict)

    # ==================== Minter Management ====================

    def is_minter(self, account: str) -> bool:
        return self.minters.get(self._normalize(account), False)

    def set_minter(self, caller: str, minter: str, active: bool) -> bool:
        """
        Activate or deactivate a minter (owner only).

        Raises:
            VMExecutionError: If caller is not owner or minter is the zero address
        """
        self._require_owner(caller)
        minter_norm = self._normalize(minter)
        self._validate_address(minter_norm, "minter")

        if active:
            self.minters[minter_norm] = True
        else:
            self.minters.pop(minter_norm, None)

        self._emit("MinterSet", self.owner, minter_norm, 0, active=active)
        logger.info(
            "Escrowed token minter updated",
            extra={
                "event": "escrow.minter_set",
                "token": self.symbol,
                "minter": minter_norm[:10],
                "active": active,
            }
        )
        return True

    # ==================== Supply Operations ====================

    def mint(self, minter: str, to: str, amount: int) -> bool:
        """Mint escrowed tokens to `to` (minters only)."""
        self._require_minter(minter)
        to_norm = self._normalize(to)
        self._validate_address(to_norm, "recipient")
        self._validate_amount(amount)
        if amount == 0:
            raise ZeroAmountError("Escrow: amount must be greater than zero")
        if self.total_supply + amount > self.UINT256_MAX:
            raise VMExecutionError("Escrow: total supply exceeds uint256")

        self.total_supply += amount
        self.balances[to_norm] = self.balances.get(to_norm, 0) + amount

        self._emit_transfer(ZERO_ADDRESS, to_norm, amount)
        self._emit("TokensMinted", ZERO_ADDRESS, to_norm, amount)

        logger.info(
            "Escrowed token mint",
            extra={
                "event": "escrow.mint",
                "token": self.symbol,
                "to": to_norm[:10],
                "amount": amount,
                "new_supply": self.total_supply,
            }
        )
        return True

    def burn_from(self, spender: str, from_addr: str, amount: int) -> bool:
        """Burn escrowed tokens held by `from_addr` (minters only, no allowance)."""
        self._require_minter(spender)
        from_norm = self._normalize(from_addr)
        self._validate_address(from_norm, "holder")
        self._validate_amount(amount)
        if amount == 0:
            raise ZeroAmountError("Escrow: amount must be greater than zero")

        self._burn_balance(from_norm, amount)
        self._emit("TokensBurned", from_norm, ZERO_ADDRESS, amount)

        logger.info(
            "Escrowed token burn",
            extra={
                "event": "escrow.burn",
                "token": self.symbol,
                "from": from_norm[:10],
                "amount": amount,
                "new_supply": self.total_supply,
            }
        )
        return True

    def burn(self, holder: str, amount: int) -> bool:
        """Burn from the caller's own balance; only minters may burn."""
        return self.burn_from(holder, holder, amount)

    # ==================== Transfer Blocking ====================

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        raise TransfersDisabledError("Escrow: transfers are disabled")

    def transfer_from(
        self, spender: str, from_addr: str, to_addr: str, amount: int
    ) -> bool:
        raise TransfersDisabledError("Escrow: transfers are disabled")

    # ==================== Helpers ====================

    def _require_minter(self, caller: str) -> None:
        if not self.is_minter(caller):
            raise NotAuthorizedMinterError(
                "Escrow: caller is not an authorized minter",
                details={"caller": self._normalize(caller)},
            )

    # ==================== Serialization ====================

    def to_dict(self) -> Dict:
        data = super().to_dict()
        data["minters"] = sorted(self.minters)
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> "EscrowedToken":
        token = super().from_dict(data)
        token.minters = {m: True for m in data.get("minters", [])}
        return token
