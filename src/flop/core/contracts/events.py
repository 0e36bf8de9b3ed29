"""
Observable contract events.

Events are append-only records with a fixed field schema per event type.
The log can be truncated back to an earlier length only by the token's
own rollback path when an operation fails.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

# Field schema per event type
EVENT_SCHEMAS: Dict[str, tuple[str, ...]] = {
    "Transfer": ("from", "to", "value"),
    "Approval": ("owner", "spender", "value"),
    "XPGranted": ("admin", "user", "amount"),
    "XPSpent": ("admin", "user", "amount"),
    "XPSystemPaused": ("paused",),
    "PredictionPlaced": ("user", "amount", "prediction"),
    "FlopXPUpdated": ("user", "newXP"),
    "BuybackExecuted": ("amount",),
    "Burned": ("amount",),
}


@dataclass
class ContractEvent:
    """Represents a single emitted event."""

    event_type: str
    args: Dict[str, Any]
    timestamp: float = field(default_factory=time.time)
    sequence: int = 0

    def __post_init__(self) -> None:
        schema = EVENT_SCHEMAS.get(self.event_type)
        if schema is None:
            raise ValueError(f"Unknown event type: {self.event_type}")
        if set(self.args) != set(schema):
            raise ValueError(
                f"{self.event_type} expects fields {schema}, got {tuple(self.args)}"
            )
        self.args = {name: self.args[name] for name in schema}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type,
            "args": dict(self.args),
            "timestamp": self.timestamp,
            "sequence": self.sequence,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ContractEvent":
        return cls(
            event_type=data["event_type"],
            args=dict(data["args"]),
            timestamp=data.get("timestamp", 0.0),
            sequence=data.get("sequence", 0),
        )


class EventLog:
    """Append-only event log shared by the token's components."""

    def __init__(self, events: Optional[List[ContractEvent]] = None) -> None:
        self._events: List[ContractEvent] = list(events or [])

    def emit(self, event_type: str, **args: Any) -> ContractEvent:
        event = ContractEvent(event_type=event_type, args=args, sequence=len(self._events))
        self._events.append(event)
        return event

    def filter(self, event_type: Optional[str] = None) -> List[ContractEvent]:
        if event_type is None:
            return list(self._events)
        return [e for e in self._events if e.event_type == event_type]

    def page(
        self, limit: int, offset: int = 0, event_type: Optional[str] = None
    ) -> List[ContractEvent]:
        return self.filter(event_type)[offset : offset + limit]

    def truncate(self, length: int) -> None:
        del self._events[length:]

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[ContractEvent]:
        return iter(self._events)

    def __getitem__(self, index: int) -> ContractEvent:
        return self._events[index]

    def to_list(self) -> List[Dict[str, Any]]:
        return [e.to_dict() for e in self._events]

    @classmethod
    def from_list(cls, data: List[Dict[str, Any]]) -> "EventLog":
        return cls([ContractEvent.from_dict(item) for item in data])
