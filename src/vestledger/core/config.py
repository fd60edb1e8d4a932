"""
vestledger Configuration

Supports testnet and mainnet with separate validation rules.

All settings are read from environment variables. Module-level constants are
resolved once at import; the get_* helpers re-read the environment so tools
and tests can change it at runtime.
"""

from __future__ import annotations

import logging
import os
from enum import Enum

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60
DEFAULT_VESTING_DURATION = 365 * SECONDS_PER_DAY
# Mainnet deployments must vest over at least one day
MAINNET_MIN_VESTING_DURATION = SECONDS_PER_DAY


class NetworkType(Enum):
    TESTNET = "testnet"
    MAINNET = "mainnet"


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


def get_network() -> NetworkType:
    """Return the configured network, rejecting unknown names."""
    raw = os.getenv("VESTLEDGER_NETWORK", NetworkType.TESTNET.value).strip().lower()
    try:
        return NetworkType(raw)
    except ValueError as exc:
        raise ConfigurationError(
            f"VESTLEDGER_NETWORK must be 'testnet' or 'mainnet', got {raw!r}"
        ) from exc


def get_vesting_duration() -> int:
    """Return the default vesting duration in seconds for new deployments.

    Raises:
        ConfigurationError: If the value is not a positive integer, or is
            shorter than one day on mainnet.
    """
    raw = os.getenv("VESTLEDGER_VESTING_DURATION", "").strip()
    if not raw:
        return DEFAULT_VESTING_DURATION

    try:
        duration = int(raw)
    except ValueError as exc:
        raise ConfigurationError(
            f"VESTLEDGER_VESTING_DURATION must be an integer number of seconds, got {raw!r}"
        ) from exc

    if duration <= 0:
        raise ConfigurationError("VESTLEDGER_VESTING_DURATION must be positive")

    if get_network() is NetworkType.MAINNET and duration < MAINNET_MIN_VESTING_DURATION:
        raise ConfigurationError(
            f"VESTLEDGER_VESTING_DURATION of {duration}s is below the mainnet "
            f"minimum of {MAINNET_MIN_VESTING_DURATION}s"
        )

    if duration < SECONDS_PER_DAY:
        logger.warning(
            "Vesting duration %ss is shorter than one day",
            duration,
            extra={"event": "config.short_duration", "duration": duration},
        )
    return duration


def get_state_file() -> str:
    """Path of the JSON state file used by the CLI."""
    return os.getenv(
        "VESTLEDGER_STATE_FILE", os.path.join(os.getcwd(), "deployments", "local.json")
    )


NETWORK = os.getenv("VESTLEDGER_NETWORK", "testnet")

LOG_LEVEL = os.getenv("VESTLEDGER_LOG_LEVEL", "INFO").upper()
LOG_FILE = os.getenv("VESTLEDGER_LOG_FILE", "").strip()

REWARD_TOKEN_NAME = os.getenv("VESTLEDGER_REWARD_NAME", "Vested Reward")
REWARD_TOKEN_SYMBOL = os.getenv("VESTLEDGER_REWARD_SYMBOL", "VRWD")
ESCROW_TOKEN_NAME = os.getenv("VESTLEDGER_ESCROW_NAME", "Escrowed Reward")
ESCROW_TOKEN_SYMBOL = os.getenv("VESTLEDGER_ESCROW_SYMBOL", "esVRWD")
TOKEN_DECIMALS = 18
