"""
FLOP Core Module

Core functionality for the FLOP token including contracts, configuration,
logging, metrics and state persistence.
"""

__all__ = []
