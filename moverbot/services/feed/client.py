"""
Market feed client.

Fetches the raw market feed over httpx and turns it into a ``MarketSnapshot``.
Transport problems are all-or-nothing (``FeedUnavailableError``); bad rows are
dropped individually by the parser and only reported as a count.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from urllib.parse import quote as url_quote

import httpx

from moverbot.core.exceptions import FeedUnavailableError, InstrumentNotFoundError
from moverbot.core.logging import get_logger
from moverbot.domain import InstrumentQuote, MarketSnapshot
from moverbot.services.feed.parsers import parse_payload

logger = get_logger("feed.client")

# Exchange tickers: letters, digits and a few separators (BRAC-BANK, 1JANATAMF)
TICKER_PATTERN = re.compile(r"^[A-Z0-9][A-Z0-9.&-]{0,19}$")


def is_valid_ticker(symbol: str) -> bool:
    return bool(TICKER_PATTERN.match((symbol or "").strip().upper()))


DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; moverbot/1.0)",
    "Accept": "text/html,application/json;q=0.9,*/*;q=0.8",
}


class FeedClient:
    """Fetches snapshots and single instruments from the market feed.

    Usage:
        async with httpx.AsyncClient() as http:
            feed = FeedClient(http, url=settings.feed_url)
            snapshot = await feed.fetch_snapshot()
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        url: str,
        feed_format: str = "auto",
        timeout: float = 20.0,
        instrument_url_template: str | None = None,
    ):
        self._http = http_client
        self.url = url
        self.feed_format = feed_format
        self.timeout = timeout
        self.instrument_url_template = instrument_url_template

    async def _get(self, url: str) -> httpx.Response:
        try:
            response = await self._http.get(url, timeout=self.timeout, headers=DEFAULT_HEADERS)
            response.raise_for_status()
            return response
        except httpx.TimeoutException as e:
            raise FeedUnavailableError(
                f"Timeout fetching market feed: {e}", details={"url": url}
            ) from e
        except httpx.HTTPStatusError as e:
            raise FeedUnavailableError(
                f"Market feed returned HTTP {e.response.status_code}",
                details={"url": url, "status": e.response.status_code},
            ) from e
        except httpx.HTTPError as e:
            raise FeedUnavailableError(
                f"Error fetching market feed: {e}", details={"url": url}
            ) from e

    async def _fetch(self, url: str) -> MarketSnapshot:
        response = await self._get(url)
        captured_at = datetime.now(timezone.utc)

        try:
            quotes, dropped = parse_payload(
                response.text,
                fmt=self.feed_format,
                content_type=response.headers.get("content-type"),
            )
        except ValueError as e:
            raise FeedUnavailableError(
                f"Unreadable market feed document: {e}", details={"url": url}
            ) from e

        if dropped:
            logger.warning(
                f"Dropped {dropped} malformed feed records",
                extra={"dropped": dropped, "parsed": len(quotes)},
            )

        logger.debug(f"Fetched {len(quotes)} quotes from {url}")
        return MarketSnapshot(
            quotes=tuple(quotes),
            captured_at=captured_at,
            dropped=dropped,
            source=url,
        )

    async def fetch_snapshot(self) -> MarketSnapshot:
        """Fetch and parse the full market feed.

        Raises:
            FeedUnavailableError: network/HTTP failure or unreadable document
        """
        return await self._fetch(self.url)

    async def fetch_instrument(self, symbol: str) -> InstrumentQuote:
        """Fetch one instrument by ticker (case-insensitive).

        Raises:
            InstrumentNotFoundError: ticker absent from the feed
            FeedUnavailableError: network/HTTP failure or unreadable document
        """
        wanted = (symbol or "").strip().upper()
        if not TICKER_PATTERN.match(wanted):
            raise InstrumentNotFoundError(wanted)

        if self.instrument_url_template:
            url = self.instrument_url_template.replace("{symbol}", url_quote(wanted, safe=""))
            snapshot = await self._fetch(url)
        else:
            snapshot = await self.fetch_snapshot()

        quote = snapshot.find(wanted)
        if quote is None:
            raise InstrumentNotFoundError(wanted)
        return quote
