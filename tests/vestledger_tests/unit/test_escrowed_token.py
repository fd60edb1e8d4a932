"""
Unit tests for the non-transferable escrowed token.
"""

import pytest

from vestledger.core.contracts import (
    ZERO_ADDRESS,
    EscrowedToken,
    NotAuthorizedMinterError,
    TransfersDisabledError,
    ZeroAmountError,
)
from vestledger.core.vm.exceptions import VMExecutionError

OWNER = "0x" + "1" * 40
MINTER = "0x" + "2" * 40
ALICE = "0x" + "a" * 40
BOB = "0x" + "b" * 40


@pytest.fixture
def token():
    token = EscrowedToken(name="Escrowed Reward", symbol="esVRWD", owner=OWNER)
    token.set_minter(OWNER, MINTER, True)
    return token


class TestMinterManagement:
    def test_owner_is_not_implicitly_a_minter(self, token):
        assert not token.is_minter(OWNER)
        with pytest.raises(NotAuthorizedMinterError):
            token.mint(OWNER, ALICE, 1)

    def test_set_minter_emits_event(self, token):
        event = token.events[-1]
        assert event.event_type == "MinterSet"
        assert event.to_address == MINTER
        assert event.data == {"active": True}
        assert token.is_minter(MINTER)

    def test_deactivate_minter(self, token):
        token.set_minter(OWNER, MINTER, False)
        assert not token.is_minter(MINTER)
        assert token.events[-1].data == {"active": False}

    def test_only_owner_sets_minters(self, token):
        with pytest.raises(VMExecutionError, match="not owner"):
            token.set_minter(MINTER, ALICE, True)

    def test_zero_address_minter_rejected(self, token):
        with pytest.raises(VMExecutionError, match="zero address"):
            token.set_minter(OWNER, ZERO_ADDRESS, True)


class TestSupply:
    def test_minter_mints(self, token):
        token.mint(MINTER, ALICE, 100)
        assert token.balance_of(ALICE) == 100
        assert token.total_supply == 100
        assert token.events[-1].event_type == "TokensMinted"

    def test_non_minter_rejected(self, token):
        with pytest.raises(NotAuthorizedMinterError):
            token.mint(ALICE, ALICE, 100)

    def test_zero_amount_rejected(self, token):
        with pytest.raises(ZeroAmountError):
            token.mint(MINTER, ALICE, 0)
        token.mint(MINTER, ALICE, 10)
        with pytest.raises(ZeroAmountError):
            token.burn_from(MINTER, ALICE, 0)

    def test_zero_address_recipient_rejected(self, token):
        with pytest.raises(VMExecutionError, match="zero address"):
            token.mint(MINTER, ZERO_ADDRESS, 1)

    def test_minter_burns_without_allowance(self, token):
        token.mint(MINTER, ALICE, 100)
        token.burn_from(MINTER, ALICE, 40)
        assert token.balance_of(ALICE) == 60
        assert token.total_supply == 60
        assert token.events[-1].event_type == "TokensBurned"

    def test_burn_exceeding_balance_rejected(self, token):
        token.mint(MINTER, ALICE, 10)
        with pytest.raises(VMExecutionError, match="exceeds balance"):
            token.burn_from(MINTER, ALICE, 11)
        assert token.balance_of(ALICE) == 10

    def test_holder_cannot_burn_own_balance(self, token):
        token.mint(MINTER, ALICE, 10)
        with pytest.raises(NotAuthorizedMinterError):
            token.burn(ALICE, 5)


class TestTransfersDisabled:
    @pytest.mark.parametrize("amount", [0, 1])
    def test_transfer_always_rejected(self, token, amount):
        token.mint(MINTER, ALICE, 10)
        with pytest.raises(TransfersDisabledError):
            token.transfer(ALICE, BOB, amount)
        assert token.balance_of(BOB) == 0

    def test_transfer_from_rejected_even_with_allowance(self, token):
        token.mint(MINTER, ALICE, 10)
        token.approve(ALICE, BOB, 10)
        assert token.allowance(ALICE, BOB) == 10
        with pytest.raises(TransfersDisabledError):
            token.transfer_from(BOB, ALICE, BOB, 5)
        assert token.balance_of(ALICE) == 10


def test_dict_roundtrip_keeps_minters(token):
    token.mint(MINTER, ALICE, 10)
    restored = EscrowedToken.from_dict(token.to_dict())

    assert isinstance(restored, EscrowedToken)
    assert restored.is_minter(MINTER)
    assert not restored.is_minter(OWNER)
    assert restored.balance_of(ALICE) == 10
