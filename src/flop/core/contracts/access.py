"""
Single-owner access control and reentrancy guarding.

AccessControl holds the owner identity and answers ``is_owner`` /
``require_owner``. ReentrancyGuard is a per-call lock: it is acquired on
entry to a guarded operation and released on every exit path, and any
attempt to acquire it while held fails with ReentrantCallError.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import TracebackType
from typing import Optional, Type

from ..constants import ZERO_ADDRESS
from ..vm.exceptions import InvalidAddressError, NotOwnerError, ReentrantCallError

logger = logging.getLogger(__name__)


def normalize_address(address: str) -> str:
    """Normalize address to lowercase."""
    return address.strip().lower()


def is_zero_address(address: str) -> bool:
    normalized = normalize_address(address or "")
    return not normalized or normalized == ZERO_ADDRESS


def require_nonzero_address(address: str, field: str) -> str:
    """Validate address is not zero and return it normalized."""
    if is_zero_address(address):
        raise InvalidAddressError(f"FLOP: {field} is zero address", {"field": field})
    return normalize_address(address)


@dataclass
class AccessControl:
    """Owner-only authorization primitive."""

    owner: str

    def __post_init__(self) -> None:
        self.owner = require_nonzero_address(self.owner, "owner")

    def is_owner(self, caller: str) -> bool:
        return normalize_address(caller) == self.owner

    def require_owner(self, caller: str) -> None:
        """Require caller is owner."""
        if not self.is_owner(caller):
            raise NotOwnerError(
                "FLOP: caller is not owner",
                {"caller": normalize_address(caller)},
            )

    def transfer_ownership(self, caller: str, new_owner: str) -> None:
        """Transfer ownership (owner only)."""
        self.require_owner(caller)
        previous = self.owner
        self.owner = require_nonzero_address(new_owner, "new owner")
        logger.info(
            "Ownership transferred",
            extra={"event": "flop.ownership_transferred", "from": previous[:10], "to": self.owner[:10]},
        )


class ReentrancyGuard:
    """Exclusive lock scoped to a single guarded call.

    Usage:
        with guard:
            ...  # reentrant entry raises ReentrantCallError
    """

    def __init__(self) -> None:
        self._locked = False

    @property
    def locked(self) -> bool:
        return self._locked

    def acquire(self) -> None:
        if self._locked:
            raise ReentrantCallError("FLOP: reentrant call")
        self._locked = True

    def release(self) -> None:
        self._locked = False

    def __enter__(self) -> "ReentrancyGuard":
        self.acquire()
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.release()
