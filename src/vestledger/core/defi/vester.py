"""
Vester: converts escrowed collateral into the reward asset over time.

Lifecycle per account:
- deposit: burn collateral, open (or grow) a linearly vesting position
- claim: mint the vested-but-unclaimed part of the position as reward
- withdraw: close the position, re-mint unvested collateral, forfeit
  whatever vested but was never claimed

Security features:
- Reentrancy protection (lock plus in-flight flag)
- Internal state is updated before any ledger side effect
- Rollback of the position when a ledger call fails
- Owner-gated duration changes
"""

from __future__ import annotations

import hashlib
import logging
import threading
import time
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict

from ..contracts.erc20 import ZERO_ADDRESS
from ..manager_interfaces import CollateralLedger, RewardLedger
from ..vesting_exceptions import (
    InvalidAmountError,
    InvalidDurationError,
    NoPositionError,
    NothingToClaimError,
    ReentrancyError,
    UnauthorizedError,
)
from ..vm.exceptions import VMExecutionError
from . import vesting
from .vesting import VestingPosition

logger = logging.getLogger(__name__)


@dataclass
class VesterEvent:
    """Represents a Vester event."""

    event_type: str  # "Deposited", "Claimed", "Withdrawn", "VestingDurationUpdated"
    account: str
    data: dict[str, int] = field(default_factory=dict)
    timestamp: int = 0


@dataclass
class Vester:
    """
    Linear vesting ledger for a single collateral/reward pair.

    The Vester must be the minting owner of `reward_token` and an authorized
    minter of `escrowed_token`. Every open position accrues against the live
    `vesting_duration`; changing the duration rescales all open positions.

    Usage:
        vester = Vester(reward, escrowed, vesting_duration=365 * 86400, owner=admin)
        vester.deposit(alice, 1_000)
        ...
        vester.claim(alice)
    """

    reward_token: RewardLedger
    escrowed_token: CollateralLedger
    vesting_duration: int
    owner: str

    # Contract address
    address: str = ""

    # Open positions keyed by normalized account
    positions: dict[str, VestingPosition] = field(default_factory=dict)

    # Event log
    events: list[VesterEvent] = field(default_factory=list)

    # Clock returning unix seconds; wall clock when unset
    time_provider: Callable[[], int] | None = field(default=None, repr=False)

    # Reentrancy guard
    _locked: bool = field(default=False, init=False, repr=False)
    _lock: Any = field(default_factory=threading.RLock, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.reward_token, RewardLedger):
            raise TypeError("reward_token must provide mint(minter, to, amount)")
        if not isinstance(self.escrowed_token, CollateralLedger):
            raise TypeError("escrowed_token must provide mint and burn_from")

        self._validate_duration(self.vesting_duration)

        self.owner = self._normalize(self.owner or "")
        if not self.owner or self.owner == ZERO_ADDRESS:
            raise VMExecutionError("Vester: owner is zero address")

        if not self.address:
            addr_hash = hashlib.sha3_256(
                f"vester:{self.owner}:{self.reward_token_address}:"
                f"{self.escrowed_token_address}:{time.time()}".encode()
            ).digest()
            self.address = f"0x{addr_hash[-20:].hex()}"
        self.address = self._normalize(self.address)

        logger.info(
            "Vester initialized",
            extra={
                "event": "vester.init",
                "vester": self.address[:10],
                "duration": self.vesting_duration,
                "deterministic_clock": self.time_provider is not None,
            }
        )

    @property
    def reward_token_address(self) -> str:
        return getattr(self.reward_token, "address", "")

    @property
    def escrowed_token_address(self) -> str:
        return getattr(self.escrowed_token, "address", "")

    # ==================== View Functions ====================

    def get_position(self, account: str) -> VestingPosition:
        """Copy of the account's position; all zeros when closed."""
        return replace(self._position(account))

    def deposited_amount(self, account: str) -> int:
        return self._position(account).deposited_amount

    def claimed_amount(self, account: str) -> int:
        return self._position(account).claimed_amount

    def vesting_start_time(self, account: str) -> int:
        return self._position(account).vesting_start_time

    def last_claim_time(self, account: str) -> int:
        return self._position(account).last_claim_time

    def claimable(self, account: str, current_time: int | None = None) -> int:
        """Reward that claim() would mint right now."""
        return vesting.claimable_amount(
            self._position(account), self._current_time(current_time), self.vesting_duration
        )

    def total_vested(self, account: str, current_time: int | None = None) -> int:
        """Part of the deposit unlocked so far, claimed or not."""
        return vesting.vested_amount(
            self._position(account), self._current_time(current_time), self.vesting_duration
        )

    def unvested_amount(self, account: str, current_time: int | None = None) -> int:
        """Collateral withdraw() would hand back right now."""
        return vesting.unvested_amount(
            self._position(account), self._current_time(current_time), self.vesting_duration
        )

    def time_until_fully_vested(self, account: str, current_time: int | None = None) -> int:
        return vesting.time_until_fully_vested(
            self._position(account), self._current_time(current_time), self.vesting_duration
        )

    # ==================== Position Lifecycle ====================

    def deposit(self, caller: str, amount: int) -> bool:
        """
        Deposit escrowed collateral and start (or grow) a vesting position.

        On an open position, whatever is claimable is paid out first; when
        nothing is claimable this step is skipped silently. The vesting start
        time is only set when the position opens.

        Args:
            caller: Depositing account (msg.sender)
            amount: Collateral to burn and vest, strictly positive

        Returns:
            True if successful

        Raises:
            InvalidAmountError: If amount is not a positive integer
            UnauthorizedError: If caller is empty or the zero address
            VMExecutionError: If the collateral burn fails
        """
        with self._lock:
            self._require_not_locked()
            try:
                self._locked = True

                account = self._require_account(caller)
                if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
                    raise InvalidAmountError(
                        "Vester: deposit amount must be a positive integer",
                        details={"amount": amount},
                    )
                now = self._current_time()

                previous = self.positions.get(account)
                position = replace(previous) if previous else VestingPosition()

                # Nothing has changed yet if the burn fails
                self.escrowed_token.burn_from(self.address, account, amount)

                reward = 0
                if position.is_open:
                    reward = self._settle_claim(position, now)
                else:
                    position.vesting_start_time = now
                    position.last_claim_time = now
                position.deposited_amount += amount
                self.positions[account] = position

                if reward > 0:
                    try:
                        self.reward_token.mint(self.address, account, reward)
                    except Exception:
                        self._restore(account, previous)
                        self.escrowed_token.mint(self.address, account, amount)
                        raise
                    self._emit("Claimed", account, now, amount=reward)

                self._emit("Deposited", account, now, amount=amount)

                logger.info(
                    "Vester deposit",
                    extra={
                        "event": "vester.deposit",
                        "vester": self.address[:10],
                        "account": account[:10],
                        "amount": amount,
                        "claimed": reward,
                        "deposited_total": position.deposited_amount,
                    }
                )

                return True

            finally:
                self._locked = False

    def claim(self, caller: str) -> int:
        """
        Mint the vested-but-unclaimed reward to the caller.

        claimed_amount is set to the absolute vested amount, not incremented.

        Returns:
            Amount of reward minted

        Raises:
            NoPositionError: If caller has no open position
            NothingToClaimError: If nothing is claimable
        """
        with self._lock:
            self._require_not_locked()
            try:
                self._locked = True

                account = self._require_account(caller)
                now = self._current_time()
                previous = self._require_open(account)

                position = replace(previous)
                amount = self._settle_claim(position, now)
                if amount == 0:
                    raise NothingToClaimError("Vester: nothing to claim", account=account)

                self.positions[account] = position
                try:
                    self.reward_token.mint(self.address, account, amount)
                except Exception:
                    self._restore(account, previous)
                    raise

                self._emit("Claimed", account, now, amount=amount)

                logger.info(
                    "Vester claim",
                    extra={
                        "event": "vester.claim",
                        "vester": self.address[:10],
                        "account": account[:10],
                        "amount": amount,
                        "claimed_total": position.claimed_amount,
                    }
                )

                return amount

            finally:
                self._locked = False

    def withdraw(self, caller: str) -> tuple[int, int]:
        """
        Close the caller's position.

        Unvested collateral is minted back. Vested rewards that were never
        claimed are forfeited: no reward is minted for them, to anyone.

        Returns:
            (unvested, forfeited) - collateral returned, reward lost

        Raises:
            NoPositionError: If caller has no open position
        """
        with self._lock:
            self._require_not_locked()
            try:
                self._locked = True

                account = self._require_account(caller)
                now = self._current_time()
                previous = self._require_open(account)

                total_vested = vesting.vested_amount(previous, now, self.vesting_duration)
                unvested = max(0, previous.deposited_amount - total_vested)
                forfeited = max(0, total_vested - previous.claimed_amount)

                # Position is closed before the ledger is touched
                del self.positions[account]

                if unvested > 0:
                    try:
                        self.escrowed_token.mint(self.address, account, unvested)
                    except Exception:
                        self._restore(account, previous)
                        raise

                self._emit("Withdrawn", account, now, unvested=unvested, forfeited=forfeited)

                logger.info(
                    "Vester withdraw",
                    extra={
                        "event": "vester.withdraw",
                        "vester": self.address[:10],
                        "account": account[:10],
                        "unvested": unvested,
                        "forfeited": forfeited,
                    }
                )

                return unvested, forfeited

            finally:
                self._locked = False

    # ==================== Admin Functions ====================

    def set_vesting_duration(self, caller: str, new_duration: int) -> bool:
        """
        Replace the shared vesting duration (owner only).

        Takes effect immediately for every open position.

        Raises:
            UnauthorizedError: If caller is not owner
            InvalidDurationError: If new_duration is not a positive integer
        """
        with self._lock:
            self._require_not_locked()
            try:
                self._locked = True

                caller_norm = self._normalize(caller or "")
                if caller_norm != self.owner:
                    raise UnauthorizedError(
                        "Vester: caller is not owner", details={"caller": caller_norm}
                    )
                self._validate_duration(new_duration)

                old_duration = self.vesting_duration
                self.vesting_duration = new_duration
                self._emit(
                    "VestingDurationUpdated",
                    caller_norm,
                    self._current_time(),
                    old_duration=old_duration,
                    new_duration=new_duration,
                )

                logger.info(
                    "Vester duration updated",
                    extra={
                        "event": "vester.duration_updated",
                        "vester": self.address[:10],
                        "old_duration": old_duration,
                        "new_duration": new_duration,
                        "open_positions": len(self.positions),
                    }
                )

                return True

            finally:
                self._locked = False

    # ==================== Helpers ====================

    def _normalize(self, address: str) -> str:
        return address.lower()

    def _current_time(self, current_time: int | None = None) -> int:
        if current_time is not None:
            return int(current_time)
        if self.time_provider is None:
            return int(time.time())
        timestamp = self.time_provider()
        try:
            return int(timestamp)
        except (TypeError, ValueError) as exc:
            raise ValueError("time_provider must return an integer timestamp") from exc

    def _position(self, account: str) -> VestingPosition:
        return self.positions.get(self._normalize(account), VestingPosition())

    def _require_account(self, caller: str) -> str:
        account = self._normalize(caller or "")
        if not account or account == ZERO_ADDRESS:
            raise UnauthorizedError("Vester: caller is zero address")
        return account

    def _require_open(self, account: str) -> VestingPosition:
        position = self.positions.get(account)
        if position is None or not position.is_open:
            raise NoPositionError("Vester: no vesting position", account=account)
        return position

    def _require_not_locked(self) -> None:
        if self._locked:
            raise ReentrancyError("Vester: reentrant call")

    def _validate_duration(self, duration: int) -> None:
        if not isinstance(duration, int) or isinstance(duration, bool) or duration <= 0:
            raise InvalidDurationError(
                "Vester: vesting duration must be a positive integer",
                details={"duration": duration},
            )

    def _settle_claim(self, position: VestingPosition, now: int) -> int:
        """Mark everything vested as claimed; returns the newly claimable amount."""
        amount = vesting.claimable_amount(position, now, self.vesting_duration)
        if amount > 0:
            position.claimed_amount = vesting.vested_amount(position, now, self.vesting_duration)
            position.last_claim_time = now
        return amount

    def _restore(self, account: str, previous: VestingPosition | None) -> None:
        if previous is None:
            self.positions.pop(account, None)
        else:
            self.positions[account] = previous

    def _emit(self, event_type: str, account: str, timestamp: int, **data: int) -> None:
        self.events.append(
            VesterEvent(event_type=event_type, account=account, data=data, timestamp=timestamp)
        )

    # ==================== Serialization ====================

    def to_dict(self) -> Dict:
        """Serialize Vester state to dictionary."""
        return {
            "address": self.address,
            "owner": self.owner,
            "vesting_duration": self.vesting_duration,
            "reward_token": self.reward_token_address,
            "escrowed_token": self.escrowed_token_address,
            "positions": {
                account: position.to_dict()
                for account, position in self.positions.items()
                if position.is_open
            },
        }

    @classmethod
    def from_dict(
        cls,
        data: Dict,
        reward_token: RewardLedger,
        escrowed_token: CollateralLedger,
        time_provider: Callable[[], int] | None = None,
    ) -> "Vester":
        """Deserialize Vester state, binding it to the given ledgers."""
        vester = cls(
            reward_token=reward_token,
            escrowed_token=escrowed_token,
            vesting_duration=data["vesting_duration"],
            owner=data["owner"],
            address=data.get("address", ""),
            time_provider=time_provider,
        )
        vester.positions = {
            account.lower(): VestingPosition.from_dict(position)
            for account, position in data.get("positions", {}).items()
        }
        return vester
