"""Domain models for strongly-typed data throughout the application.

Usage:
    from moverbot.domain import InstrumentQuote, MarketSnapshot, RankedView

    snapshot: MarketSnapshot = await feed_client.fetch_snapshot()
    quote = snapshot.find("gp")
"""

from moverbot.domain.cycle import (
    CycleResult,
    CycleState,
    DestinationOutcome,
    RankedView,
)
from moverbot.domain.quote import (
    InstrumentQuote,
    MarketSnapshot,
)

__all__ = [
    # Quotes
    "InstrumentQuote",
    "MarketSnapshot",
    # Cycle
    "CycleResult",
    "CycleState",
    "DestinationOutcome",
    "RankedView",
]
