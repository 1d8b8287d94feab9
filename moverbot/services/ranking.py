"""
Ranking of snapshot quotes into gainers, losers, favorites and alerts.

Everything here is a pure function of its arguments: same inputs, same
RankedView. Ties on change percent are broken by symbol ascending.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Sequence

from moverbot.domain import InstrumentQuote, MarketSnapshot, RankedView


DEFAULT_LIMIT = 10
DEFAULT_ALERT_THRESHOLD = Decimal("5.0")


def _check_limit(limit: int) -> None:
    if limit < 0:
        raise ValueError(f"limit must be >= 0, got {limit}")


def top_gainers(quotes: Iterable[InstrumentQuote], limit: int = DEFAULT_LIMIT) -> tuple[InstrumentQuote, ...]:
    """Positive movers, largest change first."""
    _check_limit(limit)
    gainers = [q for q in quotes if q.change_percent > 0]
    gainers.sort(key=lambda q: (-q.change_percent, q.symbol))
    return tuple(gainers[:limit])


def top_losers(quotes: Iterable[InstrumentQuote], limit: int = DEFAULT_LIMIT) -> tuple[InstrumentQuote, ...]:
    """Negative movers, largest drop first."""
    _check_limit(limit)
    losers = [q for q in quotes if q.change_percent < 0]
    losers.sort(key=lambda q: (q.change_percent, q.symbol))
    return tuple(losers[:limit])


def select_favorites(
    quotes: Iterable[InstrumentQuote],
    favorites: Sequence[str],
) -> tuple[InstrumentQuote, ...]:
    """Quotes for configured favorites, in configured order.

    Favorites missing from the snapshot are omitted.
    """
    by_symbol: dict[str, InstrumentQuote] = {}
    for quote in quotes:
        by_symbol.setdefault(quote.symbol, quote)

    selected: list[InstrumentQuote] = []
    seen: set[str] = set()
    for symbol in favorites:
        key = symbol.strip().upper()
        if key in seen:
            continue
        seen.add(key)
        quote = by_symbol.get(key)
        if quote is not None:
            selected.append(quote)
    return tuple(selected)


def select_alerts(
    quotes: Iterable[InstrumentQuote],
    threshold: Decimal = DEFAULT_ALERT_THRESHOLD,
) -> tuple[InstrumentQuote, ...]:
    """Every quote whose absolute change meets the threshold (inclusive), uncapped."""
    alerts = [q for q in quotes if q.abs_change >= threshold]
    alerts.sort(key=lambda q: (-q.abs_change, q.symbol))
    return tuple(alerts)


def rank(
    snapshot: MarketSnapshot,
    favorites: Sequence[str] = (),
    limit: int = DEFAULT_LIMIT,
    alert_threshold: Decimal = DEFAULT_ALERT_THRESHOLD,
) -> RankedView:
    """Derive the full ranked view for a snapshot."""
    quotes = snapshot.quotes
    threshold = alert_threshold if isinstance(alert_threshold, Decimal) else Decimal(str(alert_threshold))
    return RankedView(
        gainers=top_gainers(quotes, limit),
        losers=top_losers(quotes, limit),
        favorites=select_favorites(quotes, favorites),
        alerts=select_alerts(quotes, threshold),
    )
