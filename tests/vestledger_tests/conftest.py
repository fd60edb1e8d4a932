"""
Shared fixtures for vestledger tests: a controllable clock and a deployed suite.
"""

import pytest

from vestledger.core.deployment import deploy_suite

START_TIME = 1_700_000_000
DURATION = 365 * 24 * 60 * 60


class FakeClock:
    """Callable clock returning a settable unix timestamp."""

    def __init__(self, now: int = START_TIME):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> int:
        self.now += seconds
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def deployer():
    return "0x" + "d" * 40


@pytest.fixture
def alice():
    return "0x" + "a" * 40


@pytest.fixture
def bob():
    return "0x" + "b" * 40


@pytest.fixture
def suite(clock, deployer):
    """Suite with a 365 day duration on the fake clock."""
    return deploy_suite(deployer, vesting_duration=DURATION, time_provider=clock)


@pytest.fixture
def vester(suite):
    return suite.vester


@pytest.fixture
def funded(suite, deployer, alice, bob):
    """Suite where alice and bob each hold 10_000 escrowed tokens."""
    suite.escrowed_token.mint(deployer, alice, 10_000)
    suite.escrowed_token.mint(deployer, bob, 10_000)
    return suite
