"""
XP (experience point) ledger.

XP is a non-transferable per-account counter kept alongside token
balances. Only the owner or an authorized caller may grant or spend XP,
every mutation requires the XP system to be unpaused, and a single grant
is capped at MAX_XP_PER_TX. Cumulative XP is unbounded apart from the
uint256 range.

Spends run under the token's reentrancy guard; grants do not.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Optional, Set

from ..constants import MAX_XP_PER_TX
from ..vm.exceptions import (
    InsufficientXPError,
    NotAuthorizedError,
    XPLimitExceededError,
    XPSystemPausedError,
)
from .access import AccessControl, ReentrancyGuard, normalize_address, require_nonzero_address
from .events import EventLog
from .safe_math import SafeMath

logger = logging.getLogger(__name__)


class XPLedger:
    """Authorization-gated, pausable XP counter."""

    def __init__(
        self,
        access: AccessControl,
        events: EventLog,
        guard: ReentrancyGuard,
        balances: Optional[Dict[str, int]] = None,
        authorized: Optional[Iterable[str]] = None,
        paused: bool = False,
    ) -> None:
        self.access = access
        self.events = events
        self.guard = guard
        self.balances: Dict[str, int] = dict(balances or {})
        self.authorized: Set[str] = {normalize_address(a) for a in (authorized or ())}
        self.paused = paused

    # ==================== Views ====================

    def get_xp(self, user: str) -> int:
        return self.balances.get(normalize_address(user), 0)

    def is_authorized(self, caller: str) -> bool:
        return self.access.is_owner(caller) or normalize_address(caller) in self.authorized

    # ==================== Mutations ====================

    def grant(self, caller: str, user: str, amount: int) -> int:
        """
        Grant XP to ``user``.

        Returns:
            The user's new XP total
        """
        self._require_not_paused()
        self._require_authorized(caller)
        SafeMath.require_uint(amount, "amount")
        if amount > MAX_XP_PER_TX:
            raise XPLimitExceededError(
                f"FLOP: XP grant {amount} exceeds per-transaction limit {MAX_XP_PER_TX}",
                {"amount": amount, "limit": MAX_XP_PER_TX},
            )
        user_norm = require_nonzero_address(user, "user")

        new_xp = self.credit(user_norm, amount)
        self.events.emit("XPGranted", admin=normalize_address(caller), user=user_norm, amount=amount)
        logger.info(
            "XP granted",
            extra={"event": "flop.xp.grant", "user": user_norm[:10], "amount": amount, "new_xp": new_xp},
        )
        return new_xp

    def spend(self, caller: str, user: str, amount: int) -> int:
        """
        Spend XP from ``user`` under the reentrancy guard.

        Returns:
            The user's remaining XP
        """
        with self.guard:
            self._require_not_paused()
            self._require_authorized(caller)
            SafeMath.require_uint(amount, "amount")
            user_norm = normalize_address(user)

            current = self.balances.get(user_norm, 0)
            if current < amount:
                raise InsufficientXPError(
                    f"FLOP: insufficient XP ({current} < {amount})",
                    {"user": user_norm, "xp": current, "amount": amount},
                )
            remaining = SafeMath.safe_sub(current, amount)
            self.balances[user_norm] = remaining

            self.events.emit("XPSpent", admin=normalize_address(caller), user=user_norm, amount=amount)
            logger.info(
                "XP spent",
                extra={"event": "flop.xp.spend", "user": user_norm[:10], "amount": amount, "new_xp": remaining},
            )
            return remaining

    def credit(self, user_norm: str, amount: int) -> int:
        """Unchecked-authorization XP credit used by self-service accrual."""
        new_xp = SafeMath.safe_add(self.balances.get(user_norm, 0), amount)
        self.balances[user_norm] = new_xp
        return new_xp

    # ==================== Administration ====================

    def toggle_pause(self, caller: str) -> bool:
        self.access.require_owner(caller)
        self.paused = not self.paused
        self.events.emit("XPSystemPaused", paused=self.paused)
        logger.warning(
            "XP system pause toggled",
            extra={"event": "flop.xp.pause", "paused": self.paused},
        )
        return self.paused

    def authorize(self, caller: str, identity: str) -> None:
        self.access.require_owner(caller)
        identity_norm = require_nonzero_address(identity, "identity")
        self.authorized.add(identity_norm)
        logger.info("XP caller authorized", extra={"event": "flop.xp.authorize", "identity": identity_norm[:10]})

    def revoke(self, caller: str, identity: str) -> None:
        self.access.require_owner(caller)
        identity_norm = normalize_address(identity)
        self.authorized.discard(identity_norm)
        logger.info("XP caller revoked", extra={"event": "flop.xp.revoke", "identity": identity_norm[:10]})

    # ==================== Helpers ====================

    def _require_not_paused(self) -> None:
        if self.paused:
            raise XPSystemPausedError("FLOP: XP system is paused")

    def _require_authorized(self, caller: str) -> None:
        if not self.is_authorized(caller):
            raise NotAuthorizedError(
                "FLOP: caller is not authorized for XP",
                {"caller": normalize_address(caller)},
            )

    # ==================== Atomicity & Serialization ====================

    def snapshot(self) -> Dict[str, Any]:
        return {
            "balances": dict(self.balances),
            "authorized": set(self.authorized),
            "paused": self.paused,
        }

    def restore(self, snapshot: Dict[str, Any]) -> None:
        self.balances = snapshot["balances"]
        self.authorized = snapshot["authorized"]
        self.paused = snapshot["paused"]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "balances": dict(self.balances),
            "authorized": sorted(self.authorized),
            "paused": self.paused,
        }
