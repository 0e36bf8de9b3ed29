"""
JSON persistence for FLOP token state.

State is written atomically: serialized to ``<path>.tmp``, fsynced, then
moved over the target with ``os.replace`` so readers never observe a
partially written file.
"""

from __future__ import annotations

import json
import logging
import os
import time
from typing import TYPE_CHECKING, Optional

from flop.core.contracts.flop_token import FlopToken

if TYPE_CHECKING:
    from flop.core.token_metrics import TokenMetrics

logger = logging.getLogger(__name__)

STATE_FORMAT_VERSION = 1


class StateStoreError(Exception):
    """Raised when the state file is missing, unreadable or incompatible."""
    pass


class TokenStateStore:
    """Loads and saves a single FlopToken to a JSON file."""

    def __init__(self, path: str) -> None:
        self.path = path

    def exists(self) -> bool:
        return os.path.exists(self.path)

    def load(self, metrics: Optional["TokenMetrics"] = None) -> FlopToken:
        if not self.exists():
            raise StateStoreError(f"No token state at {self.path}; run 'flop init' first")
        try:
            with open(self.path, "r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except (OSError, json.JSONDecodeError) as exc:
            raise StateStoreError(f"Cannot read token state {self.path}: {exc}") from exc

        if not isinstance(payload, dict):
            raise StateStoreError(f"Token state {self.path} is not a JSON object")
        version = payload.get("version")
        if version != STATE_FORMAT_VERSION:
            raise StateStoreError(
                f"Unsupported state version {version!r} (expected {STATE_FORMAT_VERSION})"
            )
        try:
            return FlopToken.from_dict(payload["token"], metrics=metrics)
        except KeyError as exc:
            raise StateStoreError(f"Token state is missing field {exc}") from exc

    def save(self, token: FlopToken) -> None:
        payload = {
            "version": STATE_FORMAT_VERSION,
            "saved_at": time.time(),
            "token": token.to_dict(),
        }
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)

        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as handle:
            json.dump(payload, handle, indent=2, sort_keys=True)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, self.path)

        logger.debug(
            "Token state saved",
            extra={"event": "flop.state_saved", "path": self.path, "events": len(token.events)},
        )
