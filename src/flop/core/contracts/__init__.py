"""
FLOP Smart Contracts.

This module provides the token contracts:
- ERC20: Fungible balance ledger
- FlopToken: Fee-splitting ERC20 with airdrops and an XP ledger
- Fee engine, airdrop batcher and XP ledger components
- Access control and reentrancy guarding
"""

from .access import AccessControl, ReentrancyGuard
from .airdrop import AirdropBatcher
from .erc20 import ERC20Token
from .events import ContractEvent, EventLog
from .fee_engine import FeeConfig, FeeSplit, compute_fee_split
from .flop_token import FlopToken
from .safe_math import SafeMath
from .xp_ledger import XPLedger

__all__ = [
    # Tokens
    "ERC20Token",
    "FlopToken",
    # Components
    "FeeConfig",
    "FeeSplit",
    "compute_fee_split",
    "AirdropBatcher",
    "XPLedger",
    # Primitives
    "AccessControl",
    "ReentrancyGuard",
    "SafeMath",
    "ContractEvent",
    "EventLog",
]
