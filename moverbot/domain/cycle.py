"""Ranked view and cycle result models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from moverbot.domain.quote import InstrumentQuote, MarketSnapshot


class RankedView(BaseModel):
    """Gainers, losers, favorites and alerts derived from one snapshot."""

    model_config = ConfigDict(frozen=True)

    gainers: tuple[InstrumentQuote, ...] = ()
    losers: tuple[InstrumentQuote, ...] = ()
    favorites: tuple[InstrumentQuote, ...] = ()
    alerts: tuple[InstrumentQuote, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.gainers or self.losers or self.favorites or self.alerts)


class CycleState(str, Enum):
    """Lifecycle states of a periodic cycle."""

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"  # Trigger dropped because a cycle was already running


class DestinationOutcome(BaseModel):
    """Delivery result for one destination."""

    destination: str
    delivered: bool
    chunks_sent: int = 0
    error: str | None = None


class CycleResult(BaseModel):
    """Transient report of one cycle; never persisted."""

    state: CycleState
    snapshot: MarketSnapshot | None = None
    ranked_view: RankedView | None = None
    outcomes: list[DestinationOutcome] = Field(default_factory=list)
    error: str | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None

    @property
    def failed_destinations(self) -> list[str]:
        return [o.destination for o in self.outcomes if not o.delivered]

    @property
    def duration_ms(self) -> int | None:
        if self.started_at is None or self.finished_at is None:
            return None
        return int((self.finished_at - self.started_at).total_seconds() * 1000)
