"""
Linear vesting accrual.

Pure functions computing how much of a position has vested at a given time.
A position vests linearly from its start time over the shared vesting
duration:

    vested = min(deposited, deposited * elapsed // duration)

Only integer floor division is used, so the vested amount can lag the exact
real-valued fraction by a few base units but never exceeds it. Nothing here
reads the clock or mutates state; the Vester supplies `now` and the live
duration.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any


@dataclass
class VestingPosition:
    """
    Per-account vesting record.

    A position is open while deposited_amount > 0. Closing a position zeroes
    all four fields.
    """

    deposited_amount: int = 0
    claimed_amount: int = 0
    vesting_start_time: int = 0
    last_claim_time: int = 0

    @property
    def is_open(self) -> bool:
        return self.deposited_amount > 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "VestingPosition":
        return cls(
            deposited_amount=int(data.get("deposited_amount", 0)),
            claimed_amount=int(data.get("claimed_amount", 0)),
            vesting_start_time=int(data.get("vesting_start_time", 0)),
            last_claim_time=int(data.get("last_claim_time", 0)),
        )


def _require_duration(duration: int) -> None:
    if duration <= 0:
        raise ValueError("Vesting duration must be positive")


def vested_amount(position: VestingPosition, now: int, duration: int) -> int:
    """
    Amount of the deposit unlocked by time at `now`, claimed or not.

    Args:
        position: Position to evaluate
        now: Current unix timestamp (seconds)
        duration: Live vesting duration (seconds)

    Returns:
        0 for a closed position or a clock at/before the start time, the full
        deposit once `duration` has elapsed, otherwise the floored linear share.
    """
    _require_duration(duration)
    deposited = position.deposited_amount
    if deposited <= 0:
        return 0

    elapsed = now - position.vesting_start_time
    if elapsed <= 0:
        return 0
    if elapsed >= duration:
        return deposited

    return deposited * elapsed // duration


def claimable_amount(position: VestingPosition, now: int, duration: int) -> int:
    """Vested amount not yet claimed, floored at zero."""
    return max(0, vested_amount(position, now, duration) - position.claimed_amount)


def unvested_amount(position: VestingPosition, now: int, duration: int) -> int:
    """Part of the deposit that has not vested yet, floored at zero."""
    return max(0, position.deposited_amount - vested_amount(position, now, duration))


def time_until_fully_vested(position: VestingPosition, now: int, duration: int) -> int:
    """Seconds left until the whole deposit has vested; 0 for a closed position."""
    _require_duration(duration)
    if not position.is_open:
        return 0
    return max(0, duration - (now - position.vesting_start_time))


__all__ = [
    "VestingPosition",
    "vested_amount",
    "claimable_amount",
    "unvested_amount",
    "time_until_fully_vested",
]
