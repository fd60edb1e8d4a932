"""
Vesting suite deployment, validation and persistence.

A suite is the three cooperating contracts:
- reward token (ERC20Token) owned by the Vester, so only claims can mint it
- escrowed token (EscrowedToken) with the Vester and the deployer as minters
- the Vester itself, owned by the deployer

deploy_suite() performs the wiring, VestingSuite.validate() checks it, and
save_suite()/load_suite() persist the whole suite as a checksummed JSON file.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict

from . import config
from .contracts.erc20 import ZERO_ADDRESS, ERC20Token
from .contracts.escrowed_token import EscrowedToken, TransfersDisabledError
from .defi.vester import Vester
from .vm.exceptions import VMExecutionError

logger = logging.getLogger(__name__)

STATE_FORMAT_VERSION = "1.0"


class SuiteStateError(Exception):
    """Raised when a persisted suite cannot be read or fails its integrity check."""
    pass


@dataclass
class ValidationCheck:
    """Outcome of one wiring check."""

    name: str
    passed: bool
    detail: str = ""


@dataclass
class ValidationReport:
    """Ordered pass/fail checks produced by VestingSuite.validate()."""

    checks: list[ValidationCheck] = field(default_factory=list)

    def add(self, name: str, passed: bool, detail: str = "") -> None:
        self.checks.append(ValidationCheck(name=name, passed=passed, detail=detail))

    @property
    def passed(self) -> bool:
        return all(check.passed for check in self.checks)

    @property
    def pass_count(self) -> int:
        return sum(1 for check in self.checks if check.passed)

    @property
    def fail_count(self) -> int:
        return len(self.checks) - self.pass_count

    @property
    def failures(self) -> list[ValidationCheck]:
        return [check for check in self.checks if not check.passed]

    def to_dict(self) -> Dict:
        return {
            "passed": self.passed,
            "pass_count": self.pass_count,
            "fail_count": self.fail_count,
            "checks": [
                {"name": c.name, "passed": c.passed, "detail": c.detail} for c in self.checks
            ],
        }


@dataclass
class VestingSuite:
    """The deployed reward token, escrowed token and Vester."""

    deployer: str
    reward_token: ERC20Token
    escrowed_token: EscrowedToken
    vester: Vester
    network: str = "testnet"
    deployed_at: float = field(default_factory=time.time)

    def validate(self, expected_duration: int | None = None) -> ValidationReport:
        """
        Check the suite wiring.

        Args:
            expected_duration: Duration the Vester must currently use; when
                None the duration only has to be positive

        Returns:
            Report with one entry per check; nothing is modified.
        """
        report = ValidationReport()
        reward = self.reward_token
        escrowed = self.escrowed_token
        vester = self.vester
        deployer = self.deployer.lower()

        # Reward token
        report.add(
            "reward token metadata",
            bool(reward.name) and bool(reward.symbol),
            f"{reward.name} ({reward.symbol})",
        )
        report.add(
            "reward token decimals",
            reward.decimals == config.TOKEN_DECIMALS,
            f"decimals={reward.decimals}",
        )
        report.add(
            "reward token supply is non-negative",
            reward.total_supply >= 0,
            f"total_supply={reward.total_supply}",
        )
        report.add(
            "reward token owner is the Vester",
            reward.owner == vester.address,
            f"owner={reward.owner}",
        )

        # Escrowed token
        report.add(
            "escrowed token metadata",
            bool(escrowed.name) and bool(escrowed.symbol),
            f"{escrowed.name} ({escrowed.symbol})",
        )
        report.add(
            "escrowed token decimals",
            escrowed.decimals == config.TOKEN_DECIMALS,
            f"decimals={escrowed.decimals}",
        )
        report.add("Vester is an escrow minter", escrowed.is_minter(vester.address))
        report.add("deployer is an escrow minter", escrowed.is_minter(deployer))

        probe = "0x" + hashlib.sha3_256(f"probe:{escrowed.address}".encode()).hexdigest()[:40]
        report.add("random address is not an escrow minter", not escrowed.is_minter(probe))

        try:
            escrowed.transfer(deployer, probe, 0)
        except TransfersDisabledError:
            report.add("escrowed transfers are blocked", True)
        else:
            report.add("escrowed transfers are blocked", False, "zero-amount transfer succeeded")

        # Vester
        report.add(
            "Vester reward token matches",
            vester.reward_token_address == reward.address,
            vester.reward_token_address,
        )
        report.add(
            "Vester escrowed token matches",
            vester.escrowed_token_address == escrowed.address,
            vester.escrowed_token_address,
        )
        duration_detail = (
            f"{vester.vesting_duration}s "
            f"({vester.vesting_duration / config.SECONDS_PER_DAY:g} days)"
        )
        if expected_duration is None:
            report.add("Vester duration is positive", vester.vesting_duration > 0, duration_detail)
        else:
            report.add(
                "Vester duration matches",
                vester.vesting_duration == expected_duration,
                f"{duration_detail}, expected {expected_duration}s",
            )
        report.add("Vester owner is the deployer", vester.owner == deployer, f"owner={vester.owner}")

        inconsistent = [
            account
            for account, position in vester.positions.items()
            if position.deposited_amount <= 0 or position.claimed_amount > position.deposited_amount
        ]
        report.add(
            "Vester positions are consistent",
            not inconsistent,
            ", ".join(a[:10] for a in inconsistent),
        )

        logger.info(
            "Suite validated",
            extra={
                "event": "suite.validated",
                "vester": vester.address[:10],
                "passed": report.pass_count,
                "failed": report.fail_count,
            }
        )
        return report

    # ==================== Serialization ====================

    def to_dict(self) -> Dict:
        return {
            "network": self.network,
            "deployer": self.deployer,
            "deployed_at": self.deployed_at,
            "reward_token": self.reward_token.to_dict(),
            "escrowed_token": self.escrowed_token.to_dict(),
            "vester": self.vester.to_dict(),
        }

    @classmethod
    def from_dict(
        cls, data: Dict, time_provider: Callable[[], int] | None = None
    ) -> "VestingSuite":
        reward = ERC20Token.from_dict(data["reward_token"])
        escrowed = EscrowedToken.from_dict(data["escrowed_token"])
        vester_data = data["vester"]
        for key, token in (("reward_token", reward), ("escrowed_token", escrowed)):
            stored = vester_data.get(key)
            if stored and stored != token.address:
                raise SuiteStateError(
                    f"Vester {key} {stored} does not match token address {token.address}"
                )
        vester = Vester.from_dict(vester_data, reward, escrowed, time_provider=time_provider)
        return cls(
            deployer=data["deployer"],
            reward_token=reward,
            escrowed_token=escrowed,
            vester=vester,
            network=data.get("network", "testnet"),
            deployed_at=data.get("deployed_at", 0.0),
        )


def deploy_suite(
    deployer: str,
    vesting_duration: int | None = None,
    time_provider: Callable[[], int] | None = None,
    network: str | None = None,
) -> VestingSuite:
    """
    Deploy and wire the reward token, escrowed token and Vester.

    Args:
        deployer: Address that owns the Vester and the escrowed token
        vesting_duration: Seconds; defaults to the configured duration
        time_provider: Clock for the Vester (wall clock when None)
        network: Network label recorded in the suite

    Returns:
        The wired suite

    Raises:
        VMExecutionError: If the deployer is empty or the zero address
        InvalidDurationError: If the duration is not positive
    """
    deployer_norm = (deployer or "").lower()
    if not deployer_norm or deployer_norm == ZERO_ADDRESS:
        raise VMExecutionError("Deployment: deployer is zero address")

    duration = config.get_vesting_duration() if vesting_duration is None else vesting_duration
    network_name = network or config.get_network().value

    reward = ERC20Token(
        name=config.REWARD_TOKEN_NAME,
        symbol=config.REWARD_TOKEN_SYMBOL,
        decimals=config.TOKEN_DECIMALS,
        owner=deployer_norm,
    )
    escrowed = EscrowedToken(
        name=config.ESCROW_TOKEN_NAME,
        symbol=config.ESCROW_TOKEN_SYMBOL,
        decimals=config.TOKEN_DECIMALS,
        owner=deployer_norm,
    )
    vester = Vester(
        reward_token=reward,
        escrowed_token=escrowed,
        vesting_duration=duration,
        owner=deployer_norm,
        time_provider=time_provider,
    )

    # Only the Vester can mint rewards from here on
    reward.transfer_ownership(deployer_norm, vester.address)
    escrowed.set_minter(deployer_norm, deployer_norm, True)
    escrowed.set_minter(deployer_norm, vester.address, True)

    logger.info(
        "Vesting suite deployed",
        extra={
            "event": "suite.deployed",
            "network": network_name,
            "deployer": deployer_norm[:10],
            "reward_token": reward.address,
            "escrowed_token": escrowed.address,
            "vester": vester.address,
            "duration": duration,
        }
    )

    return VestingSuite(
        deployer=deployer_norm,
        reward_token=reward,
        escrowed_token=escrowed,
        vester=vester,
        network=network_name,
    )


def _checksum(payload: str) -> str:
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def save_suite(suite: VestingSuite, path: str | Path) -> str:
    """
    Save the suite to `path` with an atomic write.

    Returns:
        SHA-256 checksum of the stored suite JSON
    """
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)

    suite_json = json.dumps(suite.to_dict(), indent=2, sort_keys=True)
    checksum = _checksum(suite_json)
    package = {
        "metadata": {
            "timestamp": time.time(),
            "checksum": checksum,
            "version": STATE_FORMAT_VERSION,
        },
        "suite": suite.to_dict(),
    }

    # Atomic write: temp file, then rename
    temp_file = target.with_name(target.name + ".tmp")
    with open(temp_file, "w", encoding="utf-8") as f:
        f.write(json.dumps(package, indent=2, sort_keys=True))
        f.flush()
        os.fsync(f.fileno())
    os.replace(temp_file, target)

    logger.debug(
        "Suite saved",
        extra={"event": "suite.saved", "path": str(target), "checksum": checksum[:8]},
    )
    return checksum


def load_suite(path: str | Path, time_provider: Callable[[], int] | None = None) -> VestingSuite:
    """
    Load a suite saved by save_suite().

    Raises:
        SuiteStateError: If the file is missing, unreadable or fails its checksum
    """
    source = Path(path)
    if not source.is_file():
        raise SuiteStateError(f"State file not found: {source}. Run 'vestledger deploy' first.")

    try:
        package: Dict[str, Any] = json.loads(source.read_text(encoding="utf-8"))
        suite_data = package["suite"]
        expected = package["metadata"]["checksum"]
    except (OSError, ValueError, KeyError, TypeError) as exc:
        raise SuiteStateError(f"Unreadable state file {source}: {exc}") from exc

    actual = _checksum(json.dumps(suite_data, indent=2, sort_keys=True))
    if actual != expected:
        logger.error(
            "Suite checksum mismatch",
            extra={"event": "suite.checksum_mismatch", "path": str(source)},
        )
        raise SuiteStateError(f"Checksum mismatch for {source}; state file was modified")

    try:
        return VestingSuite.from_dict(suite_data, time_provider=time_provider)
    except (KeyError, TypeError, ValueError, VMExecutionError) as exc:
        raise SuiteStateError(f"Invalid suite data in {source}: {exc}") from exc
