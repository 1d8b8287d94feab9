"""Message building for notifications.

Renders ranked lists and single-instrument details as plain text. Every quote
entry is a single line so the dispatcher can split long messages on line
boundaries without cutting an entry in half. Empty input always renders an
explicit marker instead of an empty string.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Sequence

from moverbot.domain import InstrumentQuote, RankedView


NO_DATA = "No data available."
NOT_AVAILABLE = "N/A"
ADVICE_UNAVAILABLE = "Advice unavailable right now."


class ListStyle(str, Enum):
    """Per-entry layout for ranked lists."""

    COMPACT = "compact"  # symbol, price, change
    FULL = "full"        # plus volume
    ALERT = "alert"      # direction marker, symbol, price, change


def format_percent(value: Decimal | None) -> str:
    """Signed percentage with two decimals."""
    if value is None:
        return NOT_AVAILABLE
    return f"{value:+.2f}%"


def format_price(value: Decimal | None, currency: str | None = None) -> str:
    """Price with two decimals and thousands separators."""
    if value is None:
        return NOT_AVAILABLE
    text = f"{value:,.2f}"
    return f"{text} {currency}" if currency else text


def format_number(value: Decimal | None) -> str:
    """Counts (volume) grouped by thousands; fractional values keep two decimals."""
    if value is None:
        return NOT_AVAILABLE
    if value == value.to_integral_value():
        return f"{value:,.0f}"
    return f"{value:,.2f}"


def format_compact(value: Decimal | None) -> str:
    """Large amounts (market cap) abbreviated to K/M/B."""
    if value is None:
        return NOT_AVAILABLE
    magnitude = abs(value)
    if magnitude >= Decimal("1e9"):
        return f"{value / Decimal('1e9'):.2f}B"
    elif magnitude >= Decimal("1e6"):
        return f"{value / Decimal('1e6'):.2f}M"
    elif magnitude >= Decimal("1e3"):
        return f"{value / Decimal('1e3'):.2f}K"
    return f"{value:,.2f}"


def format_ratio(value: Decimal | None) -> str:
    if value is None:
        return NOT_AVAILABLE
    return f"{value:.2f}"


def _direction(quote: InstrumentQuote) -> str:
    if quote.is_gainer:
        return "▲"
    if quote.is_loser:
        return "▼"
    return "•"


def render_entry(
    index: int,
    quote: InstrumentQuote,
    style: ListStyle = ListStyle.COMPACT,
    currency: str | None = None,
) -> str:
    """Render one quote as a single line."""
    price = format_price(quote.last_price, currency)
    change = format_percent(quote.change_percent)

    if style == ListStyle.FULL:
        return f"{index}. {quote.symbol} | {price} | Vol: {format_number(quote.volume)} | Chg: {change}"
    elif style == ListStyle.ALERT:
        return f"{_direction(quote)} {quote.symbol} | {price} | Chg: {change}"
    return f"{index}. {quote.symbol} | {price} | Chg: {change}"


def render_list(
    title: str,
    quotes: Sequence[InstrumentQuote],
    style: ListStyle = ListStyle.COMPACT,
    currency: str | None = None,
) -> str:
    """Render a titled list of quotes, or the no-data marker when empty."""
    lines = [title]
    if not quotes:
        lines.append(NO_DATA)
    else:
        lines.extend(
            render_entry(i, quote, style, currency) for i, quote in enumerate(quotes, start=1)
        )
    return "\n".join(lines)


def render_detail(quote: InstrumentQuote, currency: str | None = None) -> str:
    """Render every field of a single quote; missing fields show N/A."""
    return "\n".join([
        f"{quote.symbol}",
        f"Last price: {format_price(quote.last_price, currency)}",
        f"Change: {format_percent(quote.change_percent)}",
        f"Open: {format_price(quote.open_price)}",
        f"Close: {format_price(quote.close_price)}",
        f"High: {format_price(quote.high)}",
        f"Low: {format_price(quote.low)}",
        f"Volume: {format_number(quote.volume)}",
        f"P/E: {format_ratio(quote.pe_ratio)}",
        f"EPS: {format_ratio(quote.eps)}",
        f"Market cap: {format_compact(quote.market_cap)}",
        f"52-week high: {format_price(quote.week52_high)}",
        f"52-week low: {format_price(quote.week52_low)}",
    ])


def render_advice(title: str, text: str | None) -> str:
    """Wrap advisory text under a title; blank text becomes the placeholder."""
    body = (text or "").strip() or ADVICE_UNAVAILABLE
    return f"{title}\n{body}"


def render_cycle_header(captured_at: datetime) -> str:
    stamp = captured_at.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
    return f"Market update - {stamp}"


def render_updates(
    view: RankedView,
    captured_at: datetime,
    currency: str | None = None,
    include_favorites: bool = True,
) -> str:
    """Cycle message for the updates destination: gainers, losers, favorites.

    Blocks are separated by a blank line, which the dispatcher prefers as a
    split point.
    """
    blocks = [
        render_cycle_header(captured_at),
        render_list("Top Gainers", view.gainers, ListStyle.FULL, currency),
        render_list("Top Losers", view.losers, ListStyle.FULL, currency),
    ]
    if include_favorites:
        blocks.append(render_list("Favorite Stocks", view.favorites, ListStyle.FULL, currency))
    return "\n\n".join(blocks)


def render_alerts(view: RankedView, threshold: Decimal, currency: str | None = None) -> str:
    """Cycle message for the alerts destination."""
    title = f"Price Alerts (|change| >= {threshold:.2f}%)"
    return render_list(title, view.alerts, ListStyle.ALERT, currency)
