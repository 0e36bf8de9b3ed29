"""
FLOP HTTP API

Read-only Flask views over a deployed token plus a fee quote endpoint.
"""

from .app import create_app
from .token_bp import token_bp

__all__ = ["create_app", "token_bp"]
