from __future__ import annotations

from pydantic import BaseModel, Field

from flop.core.constants import DEFAULT_EVENTS_PAGE_SIZE, MAX_EVENTS_PAGE_SIZE, UINT256_MAX


class FeeQuoteInput(BaseModel):
    amount: int = Field(gt=0, le=UINT256_MAX)


class EventsQueryInput(BaseModel):
    limit: int = Field(default=DEFAULT_EVENTS_PAGE_SIZE, ge=1, le=MAX_EVENTS_PAGE_SIZE)
    offset: int = Field(default=0, ge=0)
    event_type: str | None = None
