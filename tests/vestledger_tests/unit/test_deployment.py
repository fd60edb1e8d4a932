"""
Unit tests for suite deployment, validation and persistence.
"""

import json

import pytest

from vestledger.core import config
from vestledger.core.contracts.erc20 import ZERO_ADDRESS
from vestledger.core.deployment import (
    SuiteStateError,
    deploy_suite,
    load_suite,
    save_suite,
)
from vestledger.core.vm.exceptions import VMExecutionError

DURATION = 365 * 24 * 60 * 60


class TestDeploySuite:
    def test_wiring(self, suite, deployer):
        vester = suite.vester
        assert suite.reward_token.owner == vester.address
        assert suite.escrowed_token.owner == deployer
        assert suite.escrowed_token.is_minter(vester.address)
        assert suite.escrowed_token.is_minter(deployer)
        assert vester.owner == deployer
        assert vester.vesting_duration == DURATION
        assert suite.reward_token.name == config.REWARD_TOKEN_NAME
        assert suite.escrowed_token.symbol == config.ESCROW_TOKEN_SYMBOL

    def test_default_duration_from_environment(self, monkeypatch, deployer):
        monkeypatch.setenv("VESTLEDGER_VESTING_DURATION", "86400")
        suite = deploy_suite(deployer)
        assert suite.vester.vesting_duration == 86400

    def test_default_duration_is_one_year(self, monkeypatch, deployer):
        monkeypatch.delenv("VESTLEDGER_VESTING_DURATION", raising=False)
        suite = deploy_suite(deployer)
        assert suite.vester.vesting_duration == DURATION

    @pytest.mark.parametrize("bad_deployer", ["", ZERO_ADDRESS])
    def test_zero_deployer_rejected(self, bad_deployer):
        with pytest.raises(VMExecutionError):
            deploy_suite(bad_deployer, vesting_duration=DURATION)

    def test_end_to_end_vesting(self, suite, deployer, alice, clock):
        suite.escrowed_token.mint(deployer, alice, 1_000)
        suite.vester.deposit(alice, 1_000)
        clock.advance(DURATION // 2)
        suite.vester.claim(alice)

        assert suite.reward_token.balance_of(alice) == 500
        assert suite.reward_token.total_supply == 500
        assert suite.escrowed_token.total_supply == 0


class TestValidate:
    def test_fresh_suite_passes(self, suite):
        report = suite.validate()
        assert report.passed, [c.name for c in report.failures]
        assert report.fail_count == 0
        assert report.pass_count == len(report.checks)

    def test_validation_does_not_change_state(self, funded, alice):
        before = funded.to_dict()
        funded.validate()
        assert funded.to_dict() == before

    def test_detects_revoked_vester_minter(self, suite, deployer):
        suite.escrowed_token.set_minter(deployer, suite.vester.address, False)
        report = suite.validate()
        assert not report.passed
        assert [c.name for c in report.failures] == ["Vester is an escrow minter"]

    def test_detects_reward_owner_change(self, suite, deployer):
        suite.reward_token.transfer_ownership(suite.vester.address, deployer)
        failures = [c.name for c in suite.validate().failures]
        assert failures == ["reward token owner is the Vester"]

    def test_expected_duration(self, suite, deployer):
        assert suite.validate(expected_duration=DURATION).passed
        suite.vester.set_vesting_duration(deployer, DURATION // 2)
        report = suite.validate(expected_duration=DURATION)
        assert [c.name for c in report.failures] == ["Vester duration matches"]

    def test_report_serializes(self, suite):
        data = suite.validate().to_dict()
        assert data["passed"] is True
        assert data["fail_count"] == 0
        assert {"name", "passed", "detail"} <= set(data["checks"][0])


class TestPersistence:
    def test_save_and_load_roundtrip(self, tmp_path, funded, deployer, alice, clock):
        funded.vester.deposit(alice, 1_000)
        clock.advance(DURATION // 4)
        funded.vester.claim(alice)

        path = tmp_path / "deployments" / "local.json"
        checksum = save_suite(funded, path)
        loaded = load_suite(path, time_provider=clock)

        assert len(checksum) == 64
        assert not (tmp_path / "deployments" / "local.json.tmp").exists()
        assert loaded.to_dict() == funded.to_dict()
        assert loaded.vester.get_position(alice) == funded.vester.get_position(alice)
        assert loaded.reward_token.balance_of(alice) == 250
        assert loaded.escrowed_token.is_minter(loaded.vester.address)
        assert loaded.vester.reward_token is loaded.reward_token
        assert loaded.validate().passed

    def test_loaded_suite_keeps_vesting(self, tmp_path, funded, alice, clock):
        funded.vester.deposit(alice, 1_000)
        path = tmp_path / "state.json"
        save_suite(funded, path)

        clock.advance(DURATION)
        loaded = load_suite(path, time_provider=clock)
        assert loaded.vester.claim(alice) == 1_000

    def test_event_logs_are_not_persisted(self, tmp_path, funded, alice):
        funded.vester.deposit(alice, 1_000)
        path = tmp_path / "state.json"
        save_suite(funded, path)

        loaded = load_suite(path)
        assert loaded.vester.events == []
        assert loaded.escrowed_token.events == []

    def test_missing_file(self, tmp_path):
        with pytest.raises(SuiteStateError, match="not found"):
            load_suite(tmp_path / "missing.json")

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text("{not json")
        with pytest.raises(SuiteStateError, match="Unreadable"):
            load_suite(path)

    def test_tampered_file_fails_checksum(self, tmp_path, funded, alice):
        path = tmp_path / "state.json"
        save_suite(funded, path)

        package = json.loads(path.read_text())
        package["suite"]["escrowed_token"]["balances"][alice] = 10**9
        path.write_text(json.dumps(package))

        with pytest.raises(SuiteStateError, match="Checksum mismatch"):
            load_suite(path)
