"""
Unit tests for the pure linear accrual functions.
"""

import pytest

from vestledger.core.defi.vesting import (
    VestingPosition,
    claimable_amount,
    time_until_fully_vested,
    unvested_amount,
    vested_amount,
)

START = 1_000
DURATION = 400


def _position(deposited=1_000, claimed=0, start=START):
    return VestingPosition(
        deposited_amount=deposited,
        claimed_amount=claimed,
        vesting_start_time=start,
        last_claim_time=start,
    )


class TestVestedAmount:
    def test_closed_position_vests_nothing(self):
        assert vested_amount(VestingPosition(), START + DURATION, DURATION) == 0

    def test_nothing_vested_at_start(self):
        assert vested_amount(_position(), START, DURATION) == 0

    def test_clock_before_start_vests_nothing(self):
        assert vested_amount(_position(), START - 50, DURATION) == 0

    def test_linear_quarter_and_half(self):
        assert vested_amount(_position(), START + DURATION // 4, DURATION) == 250
        assert vested_amount(_position(), START + DURATION // 2, DURATION) == 500

    def test_fully_vested_at_and_after_duration(self):
        assert vested_amount(_position(), START + DURATION, DURATION) == 1_000
        assert vested_amount(_position(), START + 10 * DURATION, DURATION) == 1_000

    def test_result_is_floored(self):
        position = _position(deposited=3)
        # 3 * 1 / 2 = 1.5
        assert vested_amount(position, START + 1, 2) == 1

    def test_large_amounts_stay_exact(self):
        deposited = 10**30
        position = _position(deposited=deposited)
        assert vested_amount(position, START + 1, 3) == deposited // 3

    @pytest.mark.parametrize("duration", [0, -1])
    def test_non_positive_duration_rejected(self, duration):
        with pytest.raises(ValueError):
            vested_amount(_position(), START + 1, duration)


def test_claimable_subtracts_claimed():
    position = _position(claimed=100)
    assert claimable_amount(position, START + DURATION // 2, DURATION) == 400


def test_claimable_floors_at_zero_when_claimed_exceeds_vested():
    position = _position(claimed=600)
    assert claimable_amount(position, START + DURATION // 2, DURATION) == 0


def test_unvested_is_remainder_of_deposit():
    assert unvested_amount(_position(), START + DURATION // 4, DURATION) == 750
    assert unvested_amount(_position(), START + DURATION, DURATION) == 0
    assert unvested_amount(VestingPosition(), START, DURATION) == 0


def test_time_until_fully_vested():
    assert time_until_fully_vested(_position(), START, DURATION) == DURATION
    assert time_until_fully_vested(_position(), START + 100, DURATION) == 300
    assert time_until_fully_vested(_position(), START + 2 * DURATION, DURATION) == 0
    assert time_until_fully_vested(VestingPosition(), START, DURATION) == 0


def test_position_dict_roundtrip_and_open_flag():
    position = _position(claimed=10)
    assert position.is_open
    restored = VestingPosition.from_dict(position.to_dict())
    assert restored == position
    assert not VestingPosition().is_open
