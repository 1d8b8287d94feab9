"""Quote and snapshot domain models.

Type-safe representations of one feed fetch. Optional numeric fields use
``None`` as the "unavailable" sentinel; zero is a real value.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class InstrumentQuote(BaseModel):
    """One instrument's quote in a snapshot."""

    model_config = ConfigDict(frozen=True)

    # Mandatory
    symbol: str = Field(..., min_length=1, description="Ticker symbol (uppercase)")
    last_price: Decimal = Field(..., description="Last traded price")
    change_percent: Decimal = Field(..., description="Percent change vs previous close")

    # Price
    open_price: Decimal | None = Field(None, description="Opening price")
    close_price: Decimal | None = Field(None, description="Closing price")
    high: Decimal | None = Field(None, description="Day high")
    low: Decimal | None = Field(None, description="Day low")

    # Activity
    volume: Decimal | None = Field(None, description="Traded volume")

    # Fundamentals
    pe_ratio: Decimal | None = Field(None, description="Price/earnings ratio")
    eps: Decimal | None = Field(None, description="Earnings per share")
    market_cap: Decimal | None = Field(None, description="Market capitalization")
    week52_high: Decimal | None = Field(None, description="52-week high")
    week52_low: Decimal | None = Field(None, description="52-week low")

    @field_validator("symbol")
    @classmethod
    def normalize_symbol(cls, v: str) -> str:
        return v.strip().upper()

    @property
    def is_gainer(self) -> bool:
        return self.change_percent > 0

    @property
    def is_loser(self) -> bool:
        return self.change_percent < 0

    @property
    def abs_change(self) -> Decimal:
        return abs(self.change_percent)


class MarketSnapshot(BaseModel):
    """Ordered quotes from a single feed fetch.

    ``captured_at`` is stamped by the ingesting process, not taken from the feed.
    """

    model_config = ConfigDict(frozen=True)

    quotes: tuple[InstrumentQuote, ...] = ()
    captured_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    dropped: int = Field(default=0, ge=0, description="Raw records rejected by the parser")
    source: str = ""

    def __len__(self) -> int:
        return len(self.quotes)

    def find(self, symbol: str) -> InstrumentQuote | None:
        """Case-insensitive lookup by symbol."""
        wanted = symbol.strip().upper()
        for quote in self.quotes:
            if quote.symbol == wanted:
                return quote
        return None

    @property
    def symbols(self) -> list[str]:
        return [q.symbol for q in self.quotes]
