"""
FLOP Token Constants

This module contains the magic numbers used by the FLOP contracts,
organized by category.

NOTE: Constants marked with [PROTOCOL] change observable token behaviour.
Existing state files assume these values.
"""

from typing import Final

# =============================================================================
# TOKEN METADATA
# =============================================================================

TOKEN_NAME: Final[str] = "Flop Token"
TOKEN_SYMBOL: Final[str] = "FLOP"
TOKEN_DECIMALS: Final[int] = 18
WEI_PER_TOKEN: Final[int] = 10**TOKEN_DECIMALS

# Initial issuance minted to the deployer (1 billion FLOP)
INITIAL_SUPPLY: Final[int] = 1_000_000_000 * WEI_PER_TOKEN

# =============================================================================
# ADDRESSES
# =============================================================================

ZERO_ADDRESS: Final[str] = "0x" + "0" * 40

# =============================================================================
# ARITHMETIC
# =============================================================================

UINT256_MAX: Final[int] = 2**256 - 1

# =============================================================================
# FEE SCHEDULE [PROTOCOL]
# =============================================================================

FEE_DENOMINATOR: Final[int] = 100  # Fees are whole percentage points
FEE_ROUNDING_BIAS: Final[int] = 50  # Round-half-up at the 0.5% boundary
MAX_TOTAL_FEE_PCT: Final[int] = 100

DEFAULT_BURN_FEE_PCT: Final[int] = 1
DEFAULT_PREDICTION_POOL_FEE_PCT: Final[int] = 1
DEFAULT_BUYBACK_FEE_PCT: Final[int] = 1

# =============================================================================
# XP SYSTEM [PROTOCOL]
# =============================================================================

MAX_XP_PER_TX: Final[int] = 10_000

# One XP per started 1024 base units wagered
XP_SHIFT: Final[int] = 10
XP_ROUNDING_BIAS: Final[int] = (1 << XP_SHIFT) - 1

# =============================================================================
# API
# =============================================================================

DEFAULT_EVENTS_PAGE_SIZE: Final[int] = 50
MAX_EVENTS_PAGE_SIZE: Final[int] = 500
