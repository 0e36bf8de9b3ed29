"""
Contract execution exception hierarchy for FLOP.

Every failed contract call raises a subclass of VMExecutionError. Each
subclass carries a stable ``code`` so API and CLI layers can report
failures without parsing messages.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class VMExecutionError(Exception):
    """Base exception for all contract execution failures.

    Attributes:
        message: Human-readable error description
        details: Additional context about the failure
        code: Stable machine-readable error code
    """

    code = "ExecutionError"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


# ==================== Input Validation ====================


class InvalidAddressError(VMExecutionError):
    """Raised when an address is empty or the zero address."""

    code = "InvalidAddress"


class ZeroAmountError(VMExecutionError):
    """Raised when an operation requires a positive amount."""

    code = "ZeroAmount"


class InvalidBatchError(VMExecutionError):
    """Raised when an airdrop batch has no recipients."""

    code = "InvalidBatch"


# ==================== Balances ====================


class InsufficientBalanceError(VMExecutionError):
    """Raised when an account lacks the balance for a debit."""

    code = "InsufficientBalance"


class InsufficientAllowanceError(VMExecutionError):
    """Raised when a delegated spend exceeds the approved allowance."""

    code = "InsufficientAllowance"


class InsufficientXPError(VMExecutionError):
    """Raised when an XP spend exceeds the user's XP."""

    code = "InsufficientXP"


# ==================== Access Control ====================


class NotAuthorizedError(VMExecutionError):
    """Raised when the caller lacks the owner or authorized-caller role."""

    code = "NotAuthorized"


class NotOwnerError(NotAuthorizedError):
    """Raised when an owner-only operation is called by someone else."""

    code = "NotOwner"


class ReentrantCallError(VMExecutionError):
    """Raised when a guarded operation is entered while the guard is held."""

    code = "ReentrantCall"


# ==================== XP System ====================


class XPSystemPausedError(VMExecutionError):
    """Raised when XP is mutated while the XP system is paused."""

    code = "XPSystemPaused"


class XPLimitExceededError(VMExecutionError):
    """Raised when a single grant exceeds MAX_XP_PER_TX."""

    code = "XPLimitExceeded"


# ==================== Airdrops ====================


class BatchAlreadyProcessedError(VMExecutionError):
    """Raised when the current airdrop batch index was already used."""

    code = "BatchAlreadyProcessed"


# ==================== Arithmetic & Invariants ====================


class ArithmeticOverflowError(VMExecutionError):
    """Raised when checked arithmetic leaves the uint256 range."""

    code = "ArithmeticOverflow"


class InvalidFeeConfigError(VMExecutionError):
    """Raised when fee percentages are negative or sum above 100."""

    code = "InvalidFeeConfig"


class InvariantViolationError(VMExecutionError):
    """Raised when an internal accounting invariant does not hold."""

    code = "InvariantViolation"
