"""
Airdrop batch bookkeeping.

Each airdrop consumes one batch index. The index is marked processed
before any tokens move, so an index is never executed twice even if the
distribution itself fails. A failed batch is retried under the next
index, never under the one it burned.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict

from ..vm.exceptions import BatchAlreadyProcessedError


@dataclass
class AirdropBatcher:
    """Batch cursor plus the set of consumed batch indices."""

    current_batch: int = 0
    processed_batches: set[int] = field(default_factory=set)

    def is_processed(self, batch: int) -> bool:
        return batch in self.processed_batches

    def claim_batch(self) -> int:
        """
        Mark the current batch processed and advance the cursor.

        Returns:
            The claimed batch index

        Raises:
            BatchAlreadyProcessedError: If the cursor points at a used index
        """
        batch = self.current_batch
        if batch in self.processed_batches:
            raise BatchAlreadyProcessedError(
                f"FLOP: airdrop batch {batch} already processed", {"batch": batch}
            )
        self.processed_batches.add(batch)
        self.current_batch = batch + 1
        return batch

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current_batch": self.current_batch,
            "processed_batches": sorted(self.processed_batches),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AirdropBatcher":
        return cls(
            current_batch=int(data.get("current_batch", 0)),
            processed_batches={int(b) for b in data.get("processed_batches", [])},
        )
