"""
ERC20 Token Standard Implementation.

Fungible token used as the freely transferable reward asset:
- Basic token operations (transfer, approve, transferFrom)
- Owner-gated minting, holder burning
- Metadata (name, symbol, decimals)
- Events (Transfer, Approval, TokensMinted)

Security features:
- Overflow protection (256-bit arithmetic)
- Zero address checks
- Balance underflow prevention
- Allowance validation
"""

from __future__ import annotations

import hashlib
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict

from ..vm.exceptions import VMExecutionError

logger = logging.getLogger(__name__)

ZERO_ADDRESS = "0x" + "0" * 40


@dataclass
class TokenEvent:
    """Represents a token event."""

    event_type: str  # "Transfer", "Approval", "TokensMinted", ...
    from_address: str
    to_address: str
    value: int
    timestamp: float = field(default_factory=time.time)
    data: dict[str, Any] = field(default_factory=dict)


@dataclass
class ERC20Token:
    """
    ERC20 token implementation.

    Implements the ERC20 standard with:
    - Minting (owner only)
    - Burning (token holder, or spender with allowance)
    - Metadata

    All balances and allowances are stored in-memory and can be persisted
    through to_dict/from_dict.
    """

    # Token metadata
    name: str
    symbol: str
    decimals: int = 18
    total_supply: int = 0

    # Contract address
    address: str = ""

    # Owner (for minting permissions)
    owner: str = ""

    # State
    balances: dict[str, int] = field(default_factory=dict)
    allowances: dict[str, dict[str, int]] = field(default_factory=dict)

    # Event log
    events: list[TokenEvent] = field(default_factory=list)

    # Constants
    UINT256_MAX: int = 2**256 - 1

    def __post_init__(self) -> None:
        """Initialize token after dataclass creation."""
        if not self.address:
            addr_input = f"{self.name}{self.symbol}{time.time()}".encode()
            addr_hash = hashlib.sha3_256(addr_input).digest()
            self.address = f"0x{addr_hash[-20:].hex()}"
        self.address = self._normalize(self.address)
        if self.owner:
            self.owner = self._normalize(self.owner)

    # ==================== View Functions ====================

    def balance_of(self, account: str) -> int:
        """
        Get the token balance of an account.

        Args:
            account: Address to check

        Returns:
            Token balance
        """
        return self.balances.get(self._normalize(account), 0)

    def allowance(self, owner: str, spender: str) -> int:
        """
        Get the allowance granted by owner to spender.

        Args:
            owner: Token owner address
            spender: Spender address

        Returns:
            Approved amount
        """
        owner_norm = self._normalize(owner)
        spender_norm = self._normalize(spender)
        return self.allowances.get(owner_norm, {}).get(spender_norm, 0)

    # ==================== State-Changing Functions ====================

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        """
        Transfer tokens from sender to recipient.

        Args:
            sender: Address sending tokens (msg.sender)
            recipient: Address receiving tokens
            amount: Amount to transfer

        Returns:
            True if successful

        Raises:
            VMExecutionError: If transfer fails
        """
        sender_norm = self._normalize(sender)
        recipient_norm = self._normalize(recipient)

        self._validate_address(recipient_norm, "recipient")
        self._validate_amount(amount)

        sender_balance = self.balances.get(sender_norm, 0)
        if sender_balance < amount:
            raise VMExecutionError(
                f"ERC20: transfer amount exceeds balance "
                f"({amount} > {sender_balance})"
            )

        self.balances[sender_norm] = sender_balance - amount
        self.balances[recipient_norm] = self.balances.get(recipient_norm, 0) + amount

        self._emit_transfer(sender_norm, recipient_norm, amount)

        logger.debug(
            "ERC20 transfer",
            extra={
                "event": "erc20.transfer",
                "token": self.symbol,
                "from": sender_norm[:10],
                "to": recipient_norm[:10],
                "amount": amount,
            }
        )

        return True

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        """
        Approve spender to spend tokens on behalf of owner.

        Args:
            owner: Token owner (msg.sender)
            spender: Address being approved
            amount: Amount to approve

        Returns:
            True if successful

        Raises:
            VMExecutionError: If approval fails
        """
        owner_norm = self._normalize(owner)
        spender_norm = self._normalize(spender)

        self._validate_address(spender_norm, "spender")
        self._validate_amount(amount)

        self.allowances.setdefault(owner_norm, {})[spender_norm] = amount

        self._emit_approval(owner_norm, spender_norm, amount)

        return True

    def transfer_from(
        self, spender: str, from_addr: str, to_addr: str, amount: int
    ) -> bool:
        """
        Transfer tokens using an allowance.

        Args:
            spender: Address executing transfer (msg.sender)
            from_addr: Token owner
            to_addr: Recipient
            amount: Amount to transfer

        Returns:
            True if successful

        Raises:
            VMExecutionError: If transfer fails
        """
        spender_norm = self._normalize(spender)
        from_norm = self._normalize(from_addr)
        to_norm = self._normalize(to_addr)

        self._validate_address(to_norm, "recipient")
        self._validate_amount(amount)

        current_allowance = self.allowance(from_norm, spender_norm)
        if current_allowance < amount:
            raise VMExecutionError(
                f"ERC20: insufficient allowance ({current_allowance} < {amount})"
            )

        from_balance = self.balances.get(from_norm, 0)
        if from_balance < amount:
            raise VMExecutionError(
                f"ERC20: transfer amount exceeds balance ({amount} > {from_balance})"
            )

        # Update allowance (unless unlimited)
        if current_allowance != self.UINT256_MAX:
            self.allowances[from_norm][spender_norm] = current_allowance - amount

        self.balances[from_norm] = from_balance - amount
        self.balances[to_norm] = self.balances.get(to_norm, 0) + amount

        self._emit_transfer(from_norm, to_norm, amount)

        return True

    # ==================== Minting & Burning ====================

    def mint(self, minter: str, to: str, amount: int) -> bool:
        """
        Mint new tokens (owner only).

        Args:
            minter: Address calling mint (must be owner)
            to: Recipient of minted tokens
            amount: Amount to mint, strictly positive

        Returns:
            True if successful

        Raises:
            VMExecutionError: If minting fails
        """
        self._require_owner(minter)

        to_norm = self._normalize(to)
        self._validate_address(to_norm, "recipient")
        self._validate_amount(amount)
        if amount == 0:
            raise VMExecutionError("ERC20: mint amount must be greater than zero")
        if self.total_supply + amount > self.UINT256_MAX:
            raise VMExecutionError("ERC20: total supply exceeds uint256")

        self.total_supply += amount
        self.balances[to_norm] = self.balances.get(to_norm, 0) + amount

        self._emit_transfer(ZERO_ADDRESS, to_norm, amount)
        self._emit("TokensMinted", ZERO_ADDRESS, to_norm, amount)

        logger.info(
            "ERC20 mint",
            extra={
                "event": "erc20.mint",
                "token": self.symbol,
                "to": to_norm[:10],
                "amount": amount,
                "new_supply": self.total_supply,
            }
        )

        return True

    def burn(self, holder: str, amount: int) -> bool:
        """
        Burn tokens from holder's balance.

        Args:
            holder: Address burning tokens (msg.sender)
            amount: Amount to burn

        Returns:
            True if successful

        Raises:
            VMExecutionError: If burn fails
        """
        holder_norm = self._normalize(holder)
        self._validate_amount(amount)

        self._burn_balance(holder_norm, amount)

        logger.info(
            "ERC20 burn",
            extra={
                "event": "erc20.burn",
                "token": self.symbol,
                "from": holder_norm[:10],
                "amount": amount,
                "new_supply": self.total_supply,
            }
        )

        return True

    def burn_from(self, spender: str, from_addr: str, amount: int) -> bool:
        """
        Burn tokens using allowance.

        Args:
            spender: Address calling burnFrom
            from_addr: Token holder
            amount: Amount to burn

        Returns:
            True if successful
        """
        spender_norm = self._normalize(spender)
        from_norm = self._normalize(from_addr)
        self._validate_amount(amount)

        current_allowance = self.allowance(from_norm, spender_norm)
        if current_allowance < amount:
            raise VMExecutionError(
                f"ERC20: burn amount exceeds allowance ({amount} > {current_allowance})"
            )

        self._burn_balance(from_norm, amount)

        if current_allowance != self.UINT256_MAX:
            self.allowances[from_norm][spender_norm] = current_allowance - amount

        return True

    # ==================== Admin Functions ====================

    def transfer_ownership(self, caller: str, new_owner: str) -> bool:
        """Transfer ownership (owner only)."""
        self._require_owner(caller)
        new_owner_norm = self._normalize(new_owner)
        self._validate_address(new_owner_norm, "new owner")
        previous = self.owner
        self.owner = new_owner_norm
        self._emit("OwnershipTransferred", previous, new_owner_norm, 0)
        logger.info(
            "ERC20 ownership transferred",
            extra={
                "event": "erc20.ownership_transferred",
                "token": self.symbol,
                "new_owner": new_owner_norm[:10],
            }
        )
        return True

    # ==================== Helpers ====================

    def _normalize(self, address: str) -> str:
        """Normalize address to lowercase."""
        return address.lower()

    def _validate_address(self, address: str, field: str) -> None:
        """Validate address is not zero."""
        if address == ZERO_ADDRESS or not address:
            raise VMExecutionError(f"ERC20: {field} is zero address")

    def _validate_amount(self, amount: int) -> None:
        """Validate amount is valid."""
        if not isinstance(amount, int) or isinstance(amount, bool):
            raise VMExecutionError("ERC20: amount must be an integer")
        if amount < 0:
            raise VMExecutionError("ERC20: amount cannot be negative")
        if amount > self.UINT256_MAX:
            raise VMExecutionError("ERC20: amount exceeds uint256")

    def _require_owner(self, caller: str) -> None:
        """Require caller is owner."""
        if not self.owner or self._normalize(caller) != self.owner:
            raise VMExecutionError("ERC20: caller is not owner")

    def _burn_balance(self, holder_norm: str, amount: int) -> None:
        """Reduce a balance and the total supply, emitting Transfer to zero."""
        balance = self.balances.get(holder_norm, 0)
        if balance < amount:
            raise VMExecutionError(
                f"ERC20: burn amount exceeds balance ({amount} > {balance})"
            )

        self.balances[holder_norm] = balance - amount
        self.total_supply -= amount

        self._emit_transfer(holder_norm, ZERO_ADDRESS, amount)

    def _emit(self, event_type: str, from_addr: str, to_addr: str, amount: int, **data: Any) -> None:
        self.events.append(
            TokenEvent(
                event_type=event_type,
                from_address=from_addr,
                to_address=to_addr,
                value=amount,
                data=data,
            )
        )

    def _emit_transfer(self, from_addr: str, to_addr: str, amount: int) -> None:
        """Emit Transfer event."""
        self._emit("Transfer", from_addr, to_addr, amount)

    def _emit_approval(self, owner: str, spender: str, amount: int) -> None:
        """Emit Approval event."""
        self._emit("Approval", owner, spender, amount)

    # ==================== Serialization ====================

    def to_dict(self) -> Dict:
        """Serialize token state to dictionary."""
        return {
            "name": self.name,
            "symbol": self.symbol,
            "decimals": self.decimals,
            "total_supply": self.total_supply,
            "address": self.address,
            "owner": self.owner,
            "balances": dict(self.balances),
            "allowances": {k: dict(v) for k, v in self.allowances.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "ERC20Token":
        """Deserialize token state from dictionary."""
        token = cls(
            name=data["name"],
            symbol=data["symbol"],
            decimals=data.get("decimals", 18),
            total_supply=data.get("total_supply", 0),
            address=data.get("address", ""),
            owner=data.get("owner", ""),
        )
        token.balances = dict(data.get("balances", {}))
        token.allowances = {
            k: dict(v) for k, v in data.get("allowances", {}).items()
        }
        return token
