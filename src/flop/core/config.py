"""
FLOP Token Configuration

Supports testnet and mainnet with separate configurations. Values come
from environment variables; module-level constants are read at import and
``load_deployment_settings`` re-reads them on demand (CLI, tests).

SECURITY NOTICE:
- Mainnet deployments MUST name their destination wallets explicitly
- Never reuse testnet state files on mainnet
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional

from flop.core.constants import (
    DEFAULT_BURN_FEE_PCT,
    DEFAULT_BUYBACK_FEE_PCT,
    DEFAULT_PREDICTION_POOL_FEE_PCT,
    INITIAL_SUPPLY,
    MAX_TOTAL_FEE_PCT,
)

logger = logging.getLogger(__name__)


class NetworkType(Enum):
    TESTNET = "testnet"
    MAINNET = "mainnet"


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


def _get_int(env: Mapping[str, str], name: str, default: int, minimum: int = 0) -> int:
    """Read a non-negative integer setting."""
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc
    if value < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {value}")
    return value


def _get_bool(env: Mapping[str, str], name: str, default: bool = False) -> bool:
    raw = env.get(name, "").strip().lower()
    if not raw:
        return default
    return raw in {"1", "true", "yes", "on"}


# Get network type from environment variable
NETWORK = os.getenv("FLOP_NETWORK", "testnet")  # Default to testnet for safety

STATE_PATH = os.getenv("FLOP_STATE_PATH", os.path.join(os.getcwd(), "data", "flop_state.json"))
LOG_LEVEL = os.getenv("FLOP_LOG_LEVEL", "INFO").upper()
LOG_JSON = _get_bool(os.environ, "FLOP_LOG_JSON")
API_HOST = os.getenv("FLOP_API_HOST", "127.0.0.1")
API_PORT = _get_int(os.environ, "FLOP_API_PORT", 8645, minimum=1)


class TestnetConfig:
    """Testnet Configuration (for local testing before mainnet)"""

    NETWORK_TYPE = NetworkType.TESTNET
    STATE_FILE = "flop_state_testnet.json"

    # Destinations are generated per deployment on testnet
    REQUIRE_EXPLICIT_DESTINATIONS = False
    INITIAL_SUPPLY = INITIAL_SUPPLY

    API_HOST = API_HOST
    API_PORT = API_PORT


class MainnetConfig:
    """Mainnet Configuration (production)"""

    NETWORK_TYPE = NetworkType.MAINNET
    STATE_FILE = "flop_state.json"

    REQUIRE_EXPLICIT_DESTINATIONS = True
    INITIAL_SUPPLY = INITIAL_SUPPLY

    API_HOST = API_HOST
    API_PORT = API_PORT


def get_config(network: Optional[str] = None):
    """Return the configuration class for ``network`` (defaults to FLOP_NETWORK)."""
    name = (network or NETWORK).strip().lower()
    if name == NetworkType.MAINNET.value:
        return MainnetConfig
    if name == NetworkType.TESTNET.value:
        return TestnetConfig
    raise ConfigurationError(f"Unknown network {name!r}; expected 'testnet' or 'mainnet'")


Config = get_config()


@dataclass(frozen=True)
class DeploymentSettings:
    """Parameters for deploying a new FLOP token."""

    network: NetworkType
    burn_fee_pct: int
    prediction_pool_fee_pct: int
    buyback_fee_pct: int
    initial_supply: int
    prediction_pool: str = ""
    buyback_wallet: str = ""

    @property
    def total_fee_pct(self) -> int:
        return self.burn_fee_pct + self.prediction_pool_fee_pct + self.buyback_fee_pct


def load_deployment_settings(env: Optional[Mapping[str, str]] = None) -> DeploymentSettings:
    """
    Read deployment settings from the environment.

    Raises:
        ConfigurationError: If a value is malformed, the fee total exceeds
            100, or mainnet destinations are missing
    """
    env = os.environ if env is None else env
    config = get_config(env.get("FLOP_NETWORK", "testnet"))

    settings = DeploymentSettings(
        network=config.NETWORK_TYPE,
        burn_fee_pct=_get_int(env, "FLOP_BURN_FEE_PCT", DEFAULT_BURN_FEE_PCT),
        prediction_pool_fee_pct=_get_int(
            env, "FLOP_PREDICTION_POOL_FEE_PCT", DEFAULT_PREDICTION_POOL_FEE_PCT
        ),
        buyback_fee_pct=_get_int(env, "FLOP_BUYBACK_FEE_PCT", DEFAULT_BUYBACK_FEE_PCT),
        initial_supply=_get_int(env, "FLOP_INITIAL_SUPPLY", config.INITIAL_SUPPLY),
        prediction_pool=env.get("FLOP_PREDICTION_POOL", "").strip(),
        buyback_wallet=env.get("FLOP_BUYBACK_WALLET", "").strip(),
    )

    if settings.total_fee_pct > MAX_TOTAL_FEE_PCT:
        raise ConfigurationError(
            f"Total fee {settings.total_fee_pct}% exceeds {MAX_TOTAL_FEE_PCT}%"
        )
    if config.REQUIRE_EXPLICIT_DESTINATIONS and not (
        settings.prediction_pool and settings.buyback_wallet
    ):
        raise ConfigurationError(
            "FLOP_PREDICTION_POOL and FLOP_BUYBACK_WALLET are required on mainnet"
        )

    logger.debug(
        "Deployment settings loaded",
        extra={"event": "config.deployment_loaded", "network": settings.network.value},
    )
    return settings
