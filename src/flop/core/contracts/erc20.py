"""
ERC20 Token Standard Implementation.

This module provides the balance ledger the FLOP token is built on:
- Basic token operations (transfer, approve, transferFrom)
- Owner-gated minting and holder burning
- Events (Transfer, Approval)
- Snapshot/restore so that every state-changing call is all-or-nothing

Security features:
- Overflow protection (checked 256-bit arithmetic)
- Zero address checks
- Balance underflow prevention
- Allowance validation
- Receive hooks, modelling recipients that run code when credited
"""

from __future__ import annotations

import copy
import hashlib
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator

from ..constants import TOKEN_DECIMALS, UINT256_MAX, ZERO_ADDRESS
from ..vm.exceptions import (
    InsufficientAllowanceError,
    InsufficientBalanceError,
    VMExecutionError,
)
from .access import AccessControl, normalize_address, require_nonzero_address
from .events import EventLog
from .safe_math import SafeMath

logger = logging.getLogger(__name__)

# Called as hook(token, sender, amount) after ``amount`` is credited
ReceiveHook = Callable[["ERC20Token", str, int], None]


@dataclass
class ERC20Token:
    """
    ERC20 balance ledger.

    All balances and allowances are stored in-memory and can be serialized
    with ``to_dict``/``from_dict``.

    Security considerations:
    - Uses 256-bit arithmetic with overflow checks
    - Zero address checks on all operations
    - Failed calls restore the pre-call snapshot
    """

    # Token metadata
    name: str
    symbol: str
    owner: str
    decimals: int = TOKEN_DECIMALS
    total_supply: int = 0

    # Contract address
    address: str = ""

    # State
    balances: dict[str, int] = field(default_factory=dict)
    allowances: dict[str, dict[str, int]] = field(default_factory=dict)

    # Event log
    events: EventLog = field(default_factory=EventLog)

    # Supply cap (0 = unlimited)
    max_supply: int = 0

    # Recipient callbacks (not persisted)
    receive_hooks: dict[str, ReceiveHook] = field(default_factory=dict, repr=False)

    UINT256_MAX: int = UINT256_MAX

    def __post_init__(self) -> None:
        """Initialize token after dataclass creation."""
        self.access = AccessControl(self.owner)
        self.owner = self.access.owner
        if not self.address:
            # Generate address from name/symbol hash
            addr_input = f"{self.name}{self.symbol}{time.time()}".encode()
            addr_hash = hashlib.sha3_256(addr_input).digest()
            self.address = f"0x{addr_hash[-20:].hex()}"
        self.address = normalize_address(self.address)

    # ==================== View Functions ====================

    def balance_of(self, account: str) -> int:
        """
        Get the token balance of an account.

        Args:
            account: Address to check

        Returns:
            Token balance
        """
        return self.balances.get(normalize_address(account), 0)

    def allowance(self, owner: str, spender: str) -> int:
        """
        Get the allowance granted by owner to spender.

        Args:
            owner: Token owner address
            spender: Spender address

        Returns:
            Approved amount
        """
        return self.allowances.get(normalize_address(owner), {}).get(
            normalize_address(spender), 0
        )

    # ==================== State-Changing Functions ====================

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        """
        Transfer tokens from sender to recipient.

        Args:
            sender: Address sending tokens (msg.sender)
            recipient: Address receiving tokens
            amount: Amount to transfer

        Returns:
            True if successful

        Raises:
            VMExecutionError: If transfer fails
        """
        SafeMath.require_uint(amount, "amount")
        recipient_norm = require_nonzero_address(recipient, "recipient")
        with self.atomic():
            self._move(normalize_address(sender), recipient_norm, amount)
        return True

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        """
        Approve spender to spend tokens on behalf of owner.

        Args:
            owner: Token owner (msg.sender)
            spender: Address being approved
            amount: Amount to approve

        Returns:
            True if successful
        """
        SafeMath.require_uint(amount, "amount")
        owner_norm = normalize_address(owner)
        spender_norm = require_nonzero_address(spender, "spender")

        self.allowances.setdefault(owner_norm, {})[spender_norm] = amount
        self.events.emit("Approval", owner=owner_norm, spender=spender_norm, value=amount)
        return True

    def transfer_from(self, spender: str, from_addr: str, to_addr: str, amount: int) -> bool:
        """
        Transfer tokens using an allowance.

        Args:
            spender: Address executing transfer (msg.sender)
            from_addr: Token owner
            to_addr: Recipient
            amount: Amount to transfer

        Returns:
            True if successful
        """
        SafeMath.require_uint(amount, "amount")
        to_norm = require_nonzero_address(to_addr, "recipient")
        from_norm = normalize_address(from_addr)
        with self.atomic():
            self._spend_allowance(from_norm, normalize_address(spender), amount)
            self._move(from_norm, to_norm, amount)
        return True

    def increase_allowance(self, owner: str, spender: str, added_value: int) -> bool:
        """Increase spender's allowance (saturates at UINT256_MAX)."""
        SafeMath.require_uint(added_value, "added_value")
        current = self.allowance(owner, spender)
        new_allowance = min(current + added_value, self.UINT256_MAX)
        return self.approve(owner, spender, new_allowance)

    def decrease_allowance(self, owner: str, spender: str, subtracted_value: int) -> bool:
        """
        Decrease spender's allowance.

        Raises:
            InsufficientAllowanceError: If decrease exceeds current allowance
        """
        SafeMath.require_uint(subtracted_value, "subtracted_value")
        current = self.allowance(owner, spender)
        if subtracted_value > current:
            raise InsufficientAllowanceError(
                "ERC20: decreased allowance below zero",
                {"allowance": current, "requested": subtracted_value},
            )
        return self.approve(owner, spender, current - subtracted_value)

    # ==================== Minting & Burning ====================

    def mint(self, minter: str, to: str, amount: int) -> bool:
        """
        Mint new tokens (owner only).

        Args:
            minter: Address calling mint (must be owner)
            to: Recipient of minted tokens
            amount: Amount to mint

        Returns:
            True if successful
        """
        self.access.require_owner(minter)
        SafeMath.require_uint(amount, "amount")
        to_norm = require_nonzero_address(to, "recipient")

        new_supply = SafeMath.safe_add(self.total_supply, amount)
        if self.max_supply > 0 and new_supply > self.max_supply:
            raise VMExecutionError(
                f"ERC20: mint would exceed max supply ({new_supply} > {self.max_supply})"
            )
        self._mint(to_norm, amount)

        logger.info(
            "ERC20 mint",
            extra={
                "event": "erc20.mint",
                "token": self.symbol,
                "to": to_norm[:10],
                "amount": amount,
                "new_supply": self.total_supply,
            },
        )
        return True

    def burn(self, holder: str, amount: int) -> bool:
        """Burn tokens from holder's balance."""
        SafeMath.require_uint(amount, "amount")
        with self.atomic():
            self._burn(normalize_address(holder), amount)
        return True

    def burn_from(self, spender: str, from_addr: str, amount: int) -> bool:
        """Burn tokens using allowance."""
        SafeMath.require_uint(amount, "amount")
        from_norm = normalize_address(from_addr)
        with self.atomic():
            self._spend_allowance(from_norm, normalize_address(spender), amount)
            self._burn(from_norm, amount)
        return True

    # ==================== Ownership ====================

    def transfer_ownership(self, caller: str, new_owner: str) -> bool:
        """Transfer ownership (owner only)."""
        self.access.transfer_ownership(caller, new_owner)
        self.owner = self.access.owner
        return True

    # ==================== Receive Hooks ====================

    def register_receive_hook(self, address: str, hook: ReceiveHook) -> None:
        """Run ``hook`` whenever ``address`` is credited by a transfer."""
        self.receive_hooks[normalize_address(address)] = hook

    def remove_receive_hook(self, address: str) -> None:
        self.receive_hooks.pop(normalize_address(address), None)

    # ==================== Ledger Primitives ====================

    def _move(self, from_norm: str, to_norm: str, amount: int) -> None:
        """Debit ``from_norm`` and credit ``to_norm``; emits Transfer."""
        from_balance = self.balances.get(from_norm, 0)
        if from_balance < amount:
            raise InsufficientBalanceError(
                f"ERC20: transfer amount exceeds balance ({amount} > {from_balance})",
                {"account": from_norm, "balance": from_balance, "amount": amount},
            )

        self.balances[from_norm] = SafeMath.safe_sub(from_balance, amount)
        self.balances[to_norm] = SafeMath.safe_add(self.balances.get(to_norm, 0), amount)
        self.events.emit("Transfer", **{"from": from_norm, "to": to_norm, "value": amount})

        logger.debug(
            "ERC20 transfer",
            extra={
                "event": "erc20.transfer",
                "token": self.symbol,
                "from": from_norm[:10],
                "to": to_norm[:10],
                "amount": amount,
            },
        )

        hook = self.receive_hooks.get(to_norm)
        if hook is not None:
            hook(self, from_norm, amount)

    def _mint(self, to_norm: str, amount: int) -> None:
        self.total_supply = SafeMath.safe_add(self.total_supply, amount)
        self.balances[to_norm] = SafeMath.safe_add(self.balances.get(to_norm, 0), amount)
        self.events.emit("Transfer", **{"from": ZERO_ADDRESS, "to": to_norm, "value": amount})

    def _burn(self, from_norm: str, amount: int) -> None:
        balance = self.balances.get(from_norm, 0)
        if balance < amount:
            raise InsufficientBalanceError(
                f"ERC20: burn amount exceeds balance ({amount} > {balance})",
                {"account": from_norm, "balance": balance, "amount": amount},
            )
        self.balances[from_norm] = balance - amount
        self.total_supply = SafeMath.safe_sub(self.total_supply, amount)
        self.events.emit("Transfer", **{"from": from_norm, "to": ZERO_ADDRESS, "value": amount})

    def _spend_allowance(self, owner_norm: str, spender_norm: str, amount: int) -> None:
        """Decrement allowance by ``amount`` (unless unlimited)."""
        current_allowance = self.allowance(owner_norm, spender_norm)
        if current_allowance < amount:
            raise InsufficientAllowanceError(
                f"ERC20: insufficient allowance ({current_allowance} < {amount})",
                {"owner": owner_norm, "spender": spender_norm, "allowance": current_allowance},
            )
        if current_allowance != self.UINT256_MAX:
            self.allowances[owner_norm][spender_norm] = current_allowance - amount

    # ==================== Atomicity ====================

    def snapshot(self) -> Dict[str, Any]:
        """Capture mutable ledger state for rollback."""
        return {
            "total_supply": self.total_supply,
            "balances": dict(self.balances),
            "allowances": copy.deepcopy(self.allowances),
            "events": len(self.events),
        }

    def restore(self, snapshot: Dict[str, Any]) -> None:
        """Restore ledger state captured by ``snapshot``."""
        self.total_supply = snapshot["total_supply"]
        self.balances = snapshot["balances"]
        self.allowances = snapshot["allowances"]
        self.events.truncate(snapshot["events"])

    @contextmanager
    def atomic(self) -> Iterator[None]:
        """Run the enclosed block all-or-nothing."""
        saved = self.snapshot()
        try:
            yield
        except Exception:
            self.restore(saved)
            raise

    # ==================== Serialization ====================

    def to_dict(self) -> Dict[str, Any]:
        """Serialize token state to dictionary."""
        return {
            "name": self.name,
            "symbol": self.symbol,
            "decimals": self.decimals,
            "total_supply": self.total_supply,
            "address": self.address,
            "owner": self.owner,
            "balances": dict(self.balances),
            "allowances": {k: dict(v) for k, v in self.allowances.items()},
            "max_supply": self.max_supply,
            "events": self.events.to_list(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ERC20Token":
        """Deserialize token state from dictionary."""
        return cls(
            name=data["name"],
            symbol=data["symbol"],
            owner=data["owner"],
            decimals=data.get("decimals", TOKEN_DECIMALS),
            total_supply=data.get("total_supply", 0),
            address=data.get("address", ""),
            balances={k: int(v) for k, v in data.get("balances", {}).items()},
            allowances={
                k: {s: int(a) for s, a in v.items()}
                for k, v in data.get("allowances", {}).items()
            },
            events=EventLog.from_list(data.get("events", [])),
            max_supply=data.get("max_supply", 0),
        )
