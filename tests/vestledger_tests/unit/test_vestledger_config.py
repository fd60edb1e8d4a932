"""
Unit tests for environment-driven configuration.
"""

import logging

import pytest

from vestledger.core import config
from vestledger.core.config import ConfigurationError, NetworkType


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("VESTLEDGER_NETWORK", "VESTLEDGER_VESTING_DURATION", "VESTLEDGER_STATE_FILE"):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    assert config.get_network() is NetworkType.TESTNET
    assert config.get_vesting_duration() == 365 * 86400
    assert config.get_state_file().endswith("local.json")


def test_duration_from_environment(monkeypatch):
    monkeypatch.setenv("VESTLEDGER_VESTING_DURATION", " 604800 ")
    assert config.get_vesting_duration() == 604800


@pytest.mark.parametrize("raw", ["abc", "1.5", "0", "-10"])
def test_invalid_duration_rejected(monkeypatch, raw):
    monkeypatch.setenv("VESTLEDGER_VESTING_DURATION", raw)
    with pytest.raises(ConfigurationError):
        config.get_vesting_duration()


def test_short_duration_warns_on_testnet(monkeypatch, caplog):
    monkeypatch.setenv("VESTLEDGER_VESTING_DURATION", "60")
    with caplog.at_level(logging.WARNING, logger="vestledger.core.config"):
        assert config.get_vesting_duration() == 60
    assert "shorter than one day" in caplog.text


def test_short_duration_rejected_on_mainnet(monkeypatch):
    monkeypatch.setenv("VESTLEDGER_NETWORK", "mainnet")
    monkeypatch.setenv("VESTLEDGER_VESTING_DURATION", "3600")
    with pytest.raises(ConfigurationError, match="mainnet"):
        config.get_vesting_duration()


def test_mainnet_accepts_one_day(monkeypatch):
    monkeypatch.setenv("VESTLEDGER_NETWORK", "MAINNET")
    monkeypatch.setenv("VESTLEDGER_VESTING_DURATION", "86400")
    assert config.get_network() is NetworkType.MAINNET
    assert config.get_vesting_duration() == 86400


def test_unknown_network_rejected(monkeypatch):
    monkeypatch.setenv("VESTLEDGER_NETWORK", "devnet")
    with pytest.raises(ConfigurationError):
        config.get_network()


def test_state_file_from_environment(monkeypatch, tmp_path):
    target = str(tmp_path / "suite.json")
    monkeypatch.setenv("VESTLEDGER_STATE_FILE", target)
    assert config.get_state_file() == target
