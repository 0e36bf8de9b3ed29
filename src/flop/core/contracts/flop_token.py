"""
FLOP Token Contract.

ERC20 ledger with a three-way transfer fee, owner-run airdrops and a
parallel XP counter:
- Every transfer pays ``(amount * total_pct + 50) // 100`` in fees, split
  across burn, the prediction pool and the buyback wallet
- Airdrops are fee-free, owner-only and consume one batch index each
- XP is granted/spent by the owner or authorized callers, and earned by
  anyone who places a prediction (one XP per started 1024 base units)

Every public state-changing call is all-or-nothing. The one exception is
the airdrop batch index, which is consumed before the distribution runs
and stays consumed if it fails.

Reentrancy: airdrop_batch and spend_xp share one guard. transfer,
transfer_from, place_prediction and grant_xp are not guarded.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Optional, Sequence

from ..constants import (
    INITIAL_SUPPLY,
    TOKEN_DECIMALS,
    TOKEN_NAME,
    TOKEN_SYMBOL,
    XP_ROUNDING_BIAS,
    XP_SHIFT,
)
from ..vm.exceptions import (
    InsufficientBalanceError,
    InvalidAddressError,
    InvalidBatchError,
    InvariantViolationError,
    VMExecutionError,
    ZeroAmountError,
)
from .access import ReentrancyGuard, normalize_address, require_nonzero_address
from .airdrop import AirdropBatcher
from .erc20 import ERC20Token
from .events import EventLog
from .fee_engine import FeeConfig, FeeSplit, compute_fee_split
from .safe_math import SafeMath
from .xp_ledger import XPLedger

if TYPE_CHECKING:
    from ..token_metrics import TokenMetrics

logger = logging.getLogger(__name__)


@dataclass
class FlopToken(ERC20Token):
    """
    Fee-splitting ERC20 token with airdrops and an XP ledger.

    Usage:
        token = FlopToken.deploy(deployer, prediction_pool, buyback_wallet)
        token.transfer(deployer, alice, 1000)      # alice receives 970
        token.place_prediction(alice, 500, "up")  # alice earns 1 XP
    """

    prediction_pool: str = ""
    buyback_wallet: str = ""
    fee_config: FeeConfig = field(default_factory=FeeConfig)
    native_balance: int = 0
    metrics: Optional[TokenMetrics] = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        super().__post_init__()
        self.prediction_pool = require_nonzero_address(self.prediction_pool, "prediction pool")
        self.buyback_wallet = require_nonzero_address(self.buyback_wallet, "buyback wallet")
        self._guard = ReentrancyGuard()
        self.xp = XPLedger(access=self.access, events=self.events, guard=self._guard)
        self.airdrops = AirdropBatcher()

    @classmethod
    def deploy(
        cls,
        deployer: str,
        prediction_pool: str,
        buyback_wallet: str,
        initial_supply: int = INITIAL_SUPPLY,
        fee_config: Optional[FeeConfig] = None,
        metrics: Optional[TokenMetrics] = None,
    ) -> "FlopToken":
        """Create the token and mint the initial supply to the deployer."""
        token = cls(
            name=TOKEN_NAME,
            symbol=TOKEN_SYMBOL,
            owner=deployer,
            prediction_pool=prediction_pool,
            buyback_wallet=buyback_wallet,
            fee_config=fee_config or FeeConfig(),
            metrics=metrics,
        )
        if initial_supply:
            token.mint(deployer, deployer, initial_supply)

        logger.info(
            "FLOP token deployed",
            extra={
                "event": "flop.deployed",
                "address": token.address,
                "owner": token.owner[:10],
                "initial_supply": initial_supply,
                "fees": token.fee_config.to_dict(),
            },
        )
        return token

    # ==================== Fee Transfers ====================

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        """Transfer ``amount`` from sender; the recipient gets it net of fees."""
        with self.atomic():
            split = self._apply_fee_transfer(sender, recipient, amount)
        self._record_transfer("transfer", split)
        return True

    def transfer_from(self, spender: str, from_addr: str, to_addr: str, amount: int) -> bool:
        """
        Delegated fee transfer.

        The allowance is reduced by the full ``amount``, not by the net
        amount the recipient receives.
        """
        SafeMath.require_uint(amount, "amount")
        from_norm = normalize_address(from_addr)
        with self.atomic():
            self._spend_allowance(from_norm, normalize_address(spender), amount)
            split = self._apply_fee_transfer(from_norm, to_addr, amount)
        self._record_transfer("transfer_from", split)
        return True

    def quote_fee(self, amount: int) -> FeeSplit:
        """Fee breakdown ``transfer`` would apply to ``amount``."""
        return compute_fee_split(amount, self.fee_config)

    def _apply_fee_transfer(self, from_addr: str, to_addr: str, amount: int) -> FeeSplit:
        from_norm = normalize_address(from_addr)
        to_norm = require_nonzero_address(to_addr, "recipient")
        SafeMath.require_uint(amount, "amount")
        if amount == 0:
            raise ZeroAmountError("FLOP: transfer amount must be positive")
        balance = self.balance_of(from_norm)
        if balance < amount:
            raise InsufficientBalanceError(
                f"FLOP: transfer amount exceeds balance ({amount} > {balance})",
                {"account": from_norm, "balance": balance, "amount": amount},
            )

        split = compute_fee_split(amount, self.fee_config)

        self._move(from_norm, to_norm, split.transfer_amount)
        if split.prediction_pool_amount > 0:
            self._move(from_norm, self.prediction_pool, split.prediction_pool_amount)
        if split.buyback_amount > 0:
            self._move(from_norm, self.buyback_wallet, split.buyback_amount)
            self.events.emit("BuybackExecuted", amount=split.buyback_amount)
        if split.burn_amount > 0:
            self._burn(from_norm, split.burn_amount)
            self.events.emit("Burned", amount=split.burn_amount)

        logger.info(
            "Fee transfer",
            extra={
                "event": "flop.fee_split",
                "from": from_norm[:10],
                "to": to_norm[:10],
                **split.to_dict(),
            },
        )
        return split

    # ==================== Predictions ====================

    def place_prediction(self, caller: str, amount: int, prediction: str) -> int:
        """
        Stake ``amount`` on ``prediction`` and earn XP.

        The amount is fee-transferred to the prediction pool. The caller is
        credited ``ceil(amount / 1024)`` XP without any authorization check.

        Returns:
            XP earned by this prediction
        """
        caller_norm = normalize_address(caller)
        SafeMath.require_uint(amount, "amount")
        if amount == 0:
            raise ZeroAmountError("FLOP: prediction amount must be positive")
        if not isinstance(prediction, str):
            raise VMExecutionError("FLOP: prediction must be a string")

        with self.atomic():
            split = self._apply_fee_transfer(caller_norm, self.prediction_pool, amount)

            xp_earned = SafeMath.safe_add(amount, XP_ROUNDING_BIAS) >> XP_SHIFT
            if xp_earned > amount:
                raise InvariantViolationError(
                    "FLOP: XP earned exceeds prediction amount",
                    {"amount": amount, "xp_earned": xp_earned},
                )
            new_xp = self.xp.credit(caller_norm, xp_earned)

            self.events.emit("PredictionPlaced", user=caller_norm, amount=amount, prediction=prediction)
            self.events.emit("FlopXPUpdated", user=caller_norm, newXP=new_xp)

        logger.info(
            "Prediction placed",
            extra={
                "event": "flop.prediction",
                "user": caller_norm[:10],
                "amount": amount,
                "xp_earned": xp_earned,
            },
        )
        self._record_transfer("prediction", split)
        if self.metrics is not None:
            self.metrics.record_prediction()
            self.metrics.record_xp_grant("prediction", xp_earned)
        return xp_earned

    # ==================== Airdrops ====================

    def airdrop_batch(self, caller: str, recipients: Sequence[str], amount_per_recipient: int) -> int:
        """
        Fee-free distribution of ``amount_per_recipient`` to each recipient.

        The batch index is consumed before any tokens move. If any
        recipient fails, every credit of the batch is rolled back and the
        consumed index stays consumed; retry under the next index.

        Returns:
            The batch index used
        """
        with self._guard:
            self.access.require_owner(caller)
            if not recipients:
                raise InvalidBatchError("FLOP: airdrop batch has no recipients")
            SafeMath.require_uint(amount_per_recipient, "amount")
            if amount_per_recipient == 0:
                raise ZeroAmountError("FLOP: airdrop amount must be positive")
            caller_norm = normalize_address(caller)

            batch = self.airdrops.claim_batch()
            try:
                with self.atomic():
                    for recipient in recipients:
                        recipient_norm = require_nonzero_address(recipient, "recipient")
                        self._move(caller_norm, recipient_norm, amount_per_recipient)
            except VMExecutionError as exc:
                logger.warning(
                    "Airdrop batch failed",
                    extra={"event": "flop.airdrop_failed", "batch": batch, "error": exc.code},
                )
                if self.metrics is not None:
                    self.metrics.record_airdrop("failed")
                raise

        logger.info(
            "Airdrop batch executed",
            extra={
                "event": "flop.airdrop",
                "batch": batch,
                "recipients": len(recipients),
                "amount_per_recipient": amount_per_recipient,
            },
        )
        if self.metrics is not None:
            self.metrics.record_airdrop("success", len(recipients))
        return batch

    @property
    def current_batch(self) -> int:
        return self.airdrops.current_batch

    def is_batch_processed(self, batch: int) -> bool:
        return self.airdrops.is_processed(batch)

    # ==================== XP ====================

    def grant_xp(self, caller: str, user: str, amount: int) -> int:
        new_xp = self.xp.grant(caller, user, amount)
        if self.metrics is not None:
            self.metrics.record_xp_grant("admin", amount)
        return new_xp

    def spend_xp(self, caller: str, user: str, amount: int) -> int:
        remaining = self.xp.spend(caller, user, amount)
        if self.metrics is not None:
            self.metrics.record_xp_spend(amount)
        return remaining

    def get_xp(self, user: str) -> int:
        return self.xp.get_xp(user)

    def toggle_xp_pause(self, caller: str) -> bool:
        return self.xp.toggle_pause(caller)

    @property
    def xp_paused(self) -> bool:
        return self.xp.paused

    def authorize(self, caller: str, identity: str) -> None:
        self.xp.authorize(caller, identity)

    def revoke(self, caller: str, identity: str) -> None:
        self.xp.revoke(caller, identity)

    def is_authorized(self, identity: str) -> bool:
        return self.xp.is_authorized(identity)

    # ==================== Admin Functions ====================

    def set_fees(
        self,
        caller: str,
        burn_fee_pct: int,
        prediction_pool_fee_pct: int,
        buyback_fee_pct: int,
    ) -> FeeConfig:
        """Replace the fee schedule (owner only); the total may not exceed 100."""
        self.access.require_owner(caller)
        self.fee_config = FeeConfig(
            burn_fee_pct=burn_fee_pct,
            prediction_pool_fee_pct=prediction_pool_fee_pct,
            buyback_fee_pct=buyback_fee_pct,
        )
        logger.info("Fees updated", extra={"event": "flop.fees_updated", **self.fee_config.to_dict()})
        return self.fee_config

    def set_prediction_pool(self, caller: str, address: str) -> None:
        self.access.require_owner(caller)
        self.prediction_pool = require_nonzero_address(address, "prediction pool")
        logger.info("Prediction pool updated", extra={"event": "flop.pool_updated", "address": self.prediction_pool[:10]})

    def set_buyback_wallet(self, caller: str, address: str) -> None:
        self.access.require_owner(caller)
        self.buyback_wallet = require_nonzero_address(address, "buyback wallet")
        logger.info("Buyback wallet updated", extra={"event": "flop.buyback_updated", "address": self.buyback_wallet[:10]})

    def mint(self, minter: str, to: str, amount: int) -> bool:
        result = super().mint(minter, to, amount)
        if self.metrics is not None:
            self.metrics.total_supply.set(self.total_supply)
        return result

    # ==================== Rescue ====================

    def receive_native(self, sender: str, amount: int) -> int:
        """Record native currency sent to the token contract."""
        SafeMath.require_uint(amount, "amount")
        self.native_balance = SafeMath.safe_add(self.native_balance, amount)
        logger.debug(
            "Native currency received",
            extra={"event": "flop.native_received", "from": normalize_address(sender)[:10], "amount": amount},
        )
        return self.native_balance

    def rescue_native(self, caller: str) -> int:
        """Withdraw the contract's whole native balance to the owner."""
        self.access.require_owner(caller)
        amount = self.native_balance
        self.native_balance = 0
        logger.warning(
            "Native balance rescued",
            extra={"event": "flop.rescue_native", "to": self.owner[:10], "amount": amount},
        )
        return amount

    def rescue_tokens(self, caller: str, token: ERC20Token, amount: int) -> bool:
        """Send a foreign token balance held by this contract to the owner."""
        self.access.require_owner(caller)
        if normalize_address(token.address) == self.address:
            raise InvalidAddressError("FLOP: cannot rescue FLOP itself", {"token": token.address})
        token.transfer(self.address, self.owner, amount)
        logger.warning(
            "Foreign tokens rescued",
            extra={"event": "flop.rescue_tokens", "token": token.symbol, "to": self.owner[:10], "amount": amount},
        )
        return True

    # ==================== Helpers ====================

    def _record_transfer(self, kind: str, split: FeeSplit) -> None:
        if self.metrics is not None:
            self.metrics.record_transfer(kind, split, self.total_supply)

    # ==================== Atomicity ====================

    def snapshot(self) -> Dict[str, Any]:
        saved = super().snapshot()
        saved.update(
            {
                "xp": self.xp.snapshot(),
                "airdrops": self.airdrops.to_dict(),
                "fee_config": self.fee_config,
                "prediction_pool": self.prediction_pool,
                "buyback_wallet": self.buyback_wallet,
                "native_balance": self.native_balance,
            }
        )
        return saved

    def restore(self, snapshot: Dict[str, Any]) -> None:
        super().restore(snapshot)
        self.xp.restore(snapshot["xp"])
        self.airdrops = AirdropBatcher.from_dict(snapshot["airdrops"])
        self.fee_config = snapshot["fee_config"]
        self.prediction_pool = snapshot["prediction_pool"]
        self.buyback_wallet = snapshot["buyback_wallet"]
        self.native_balance = snapshot["native_balance"]

    # ==================== Serialization ====================

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(
            {
                "prediction_pool": self.prediction_pool,
                "buyback_wallet": self.buyback_wallet,
                "fees": self.fee_config.to_dict(),
                "native_balance": self.native_balance,
                "xp": self.xp.to_dict(),
                "airdrop": self.airdrops.to_dict(),
            }
        )
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any], metrics: Optional[TokenMetrics] = None) -> "FlopToken":
        token = cls(
            name=data.get("name", TOKEN_NAME),
            symbol=data.get("symbol", TOKEN_SYMBOL),
            owner=data["owner"],
            decimals=data.get("decimals", TOKEN_DECIMALS),
            total_supply=int(data.get("total_supply", 0)),
            address=data.get("address", ""),
            balances={k: int(v) for k, v in data.get("balances", {}).items()},
            allowances={
                k: {s: int(a) for s, a in v.items()}
                for k, v in data.get("allowances", {}).items()
            },
            events=EventLog.from_list(data.get("events", [])),
            max_supply=data.get("max_supply", 0),
            prediction_pool=data["prediction_pool"],
            buyback_wallet=data["buyback_wallet"],
            fee_config=FeeConfig.from_dict(data.get("fees", {})),
            native_balance=int(data.get("native_balance", 0)),
            metrics=metrics,
        )
        xp_data = data.get("xp", {})
        token.xp.balances = {k: int(v) for k, v in xp_data.get("balances", {}).items()}
        token.xp.authorized = set(xp_data.get("authorized", []))
        token.xp.paused = bool(xp_data.get("paused", False))
        token.airdrops = AirdropBatcher.from_dict(data.get("airdrop", {}))
        return token
