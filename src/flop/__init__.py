"""
FLOP - Fee-splitting token ledger with prediction XP

Main Components:
- Contracts: ERC20 balance ledger, fee engine, airdrop batcher, XP ledger
- API: Read-only Flask views over a deployed token
- CLI: Local token administration backed by a JSON state file
"""

__version__ = "0.1.0"
__author__ = "FLOP Development Team"

__all__ = []
