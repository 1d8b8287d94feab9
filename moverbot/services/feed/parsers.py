"""
Feed payload parsing.

Raw feed payloads come in two shapes: tabular markup (the DSE latest share
price page) and JSON. Each shape is first extracted into raw records
(``TabularRow`` / ``JsonRecord``) and every raw record goes through the single
``parse_record`` conversion into ``InstrumentQuote``. Validation lives here and
nowhere else: a bad record is dropped and counted, never fatal.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, DecimalException, InvalidOperation
from typing import Any, Iterable, Literal, Union

from bs4 import BeautifulSoup
from pydantic import ValidationError

from moverbot.core.exceptions import RecordParseError
from moverbot.core.logging import get_logger
from moverbot.domain import InstrumentQuote

logger = get_logger("feed.parsers")


# =============================================================================
# Raw record variants
# =============================================================================


@dataclass(frozen=True)
class TabularRow:
    """One ``<tr>`` of a price table, keyed by header text."""

    cells: dict[str, str]
    position: int = 0
    kind: Literal["table"] = field(default="table", init=False)


@dataclass(frozen=True)
class JsonRecord:
    """One object from a JSON feed document."""

    fields: dict[str, Any]
    position: int = 0
    kind: Literal["json"] = field(default="json", init=False)


RawRecord = Union[TabularRow, JsonRecord]


# =============================================================================
# Field aliases
# =============================================================================

# Column layout of the DSE latest share price table, used when no header row exists
DSE_COLUMNS = (
    "#",
    "TRADING CODE",
    "LTP*",
    "HIGH",
    "LOW",
    "CLOSEP*",
    "YCP*",
    "CHANGE",
    "TRADE",
    "VALUE (mn)",
    "VOLUME",
)

_ALIASES: dict[str, tuple[str, ...]] = {
    "symbol": ("tradingcode", "tradecode", "scrip", "symbol", "ticker", "code", "instrument"),
    "last_price": ("ltp", "lastprice", "last", "lasttradedprice", "lasttradeprice", "price"),
    "change_percent": (
        "changepercent",
        "percentchange",
        "changeper",
        "changepct",
        "pctchange",
        "chgpercent",
        "percentchg",
        "changeinpercent",
    ),
    "change": ("change", "chg", "netchange"),
    "previous_close": ("ycp", "prevclose", "previousclose", "yesterdayclose", "yesterdayclosingprice"),
    "open_price": ("open", "openp", "openprice", "openingprice"),
    "close_price": ("close", "closep", "closeprice", "closingprice"),
    "high": ("high", "dayhigh", "highprice"),
    "low": ("low", "daylow", "lowprice"),
    "volume": ("volume", "vol", "totalvolume"),
    "pe_ratio": ("pe", "peratio", "pricetoearnings"),
    "eps": ("eps", "earningspershare"),
    "market_cap": ("marketcap", "mcap", "marketcapitalization"),
    "week52_high": ("52weekhigh", "week52high", "fiftytwoweekhigh", "yearhigh", "52whigh", "high52week"),
    "week52_low": ("52weeklow", "week52low", "fiftytwoweeklow", "yearlow", "52wlow", "low52week"),
}

_KEY_TO_FIELD: dict[str, str] = {
    alias: canonical for canonical, aliases in _ALIASES.items() for alias in aliases
}

_MANDATORY = ("symbol", "last_price", "change_percent")

_OPTIONAL_DECIMALS = (
    "open_price",
    "close_price",
    "high",
    "low",
    "volume",
    "pe_ratio",
    "eps",
    "market_cap",
    "week52_high",
    "week52_low",
)

_PLACEHOLDERS = {"", "-", "--", "n/a", "na", "null", "none"}

_CENT = Decimal("0.01")

# Largest accepted power of ten for any feed number
MAX_EXPONENT = 15


def normalize_key(key: str) -> str:
    """Collapse a header/key to lowercase alphanumerics, reading '%' as 'percent'."""
    lowered = str(key).lower().replace("%", "percent")
    return re.sub(r"[^a-z0-9]", "", lowered)


def canonical_field(key: str) -> str | None:
    """Map a feed column/key name to an ``InstrumentQuote`` field name."""
    return _KEY_TO_FIELD.get(normalize_key(key))


# =============================================================================
# Value parsing
# =============================================================================


def parse_decimal(raw: Any) -> Decimal | None:
    """Parse a feed value into Decimal.

    Returns None for placeholder markers; raises ValueError for anything else
    that is not a finite number with an exponent within +/-MAX_EXPONENT.
    """
    if raw is None:
        return None
    if isinstance(raw, bool):
        raise ValueError(f"boolean is not a number: {raw!r}")
    if isinstance(raw, Decimal):
        value = raw
    elif isinstance(raw, (int, float)):
        value = Decimal(str(raw))
    else:
        text = str(raw).strip()
        if text.lower() in _PLACEHOLDERS:
            return None
        text = text.replace(",", "").rstrip("%").strip()
        try:
            value = Decimal(text)
        except InvalidOperation as e:
            raise ValueError(f"not a decimal: {raw!r}") from e
    if not value.is_finite():
        raise ValueError(f"not a finite decimal: {raw!r}")
    if not value:
        return Decimal(0)
    if abs(value.adjusted()) > MAX_EXPONENT:
        raise ValueError(f"out of range: {raw!r}")
    return value


def _parse_symbol(raw: Any) -> str | None:
    if raw is None:
        return None
    text = str(raw).strip()
    if text.lower() in _PLACEHOLDERS:
        return None
    return text.upper()


def derive_change_percent(change: Decimal, previous_close: Decimal) -> Decimal | None:
    """Percent change from an absolute change and the previous close."""
    if previous_close == 0:
        return None
    percent = (change / previous_close * 100).quantize(_CENT, rounding=ROUND_HALF_UP)
    if percent and percent.adjusted() > MAX_EXPONENT:
        raise ValueError(f"derived change percent out of range: {percent}")
    return percent


# =============================================================================
# Record conversion
# =============================================================================


def _raw_items(raw: RawRecord) -> Iterable[tuple[str, Any]]:
    if isinstance(raw, TabularRow):
        return raw.cells.items()
    return raw.fields.items()


def parse_record(raw: RawRecord) -> InstrumentQuote:
    """Convert one raw record into an InstrumentQuote.

    Raises:
        RecordParseError: mandatory field missing or any field unparseable
    """
    values: dict[str, Any] = {}
    for key, value in _raw_items(raw):
        name = canonical_field(key)
        if name is not None and name not in values:
            values[name] = value

    origin = {"kind": raw.kind, "position": raw.position}

    symbol = _parse_symbol(values.get("symbol"))
    if symbol is None:
        raise RecordParseError("Missing symbol", details=origin)
    origin["symbol"] = symbol

    numbers: dict[str, Decimal | None] = {}
    for name in ("last_price", "change_percent", "change", "previous_close", *_OPTIONAL_DECIMALS):
        try:
            numbers[name] = parse_decimal(values.get(name))
        except (ValueError, DecimalException) as e:
            raise RecordParseError(f"Invalid {name}: {e}", details=origin) from e

    change_percent = numbers["change_percent"]
    if change_percent is None and numbers["change"] is not None and numbers["previous_close"] is not None:
        try:
            change_percent = derive_change_percent(numbers["change"], numbers["previous_close"])
        except (ValueError, DecimalException) as e:
            raise RecordParseError(f"Cannot derive change percent: {e}", details=origin) from e

    if numbers["last_price"] is None:
        raise RecordParseError("Missing last price", details=origin)
    if change_percent is None:
        raise RecordParseError("Missing change percent", details=origin)

    try:
        return InstrumentQuote(
            symbol=symbol,
            last_price=numbers["last_price"],
            change_percent=change_percent,
            **{name: numbers[name] for name in _OPTIONAL_DECIMALS},
        )
    except ValidationError as e:
        raise RecordParseError(f"Invalid record: {e.error_count()} errors", details=origin) from e


def parse_records(raws: Iterable[RawRecord]) -> tuple[list[InstrumentQuote], int]:
    """Convert raw records, dropping invalid and duplicate ones.

    Returns:
        Tuple of (quotes in feed order, dropped count)
    """
    quotes: list[InstrumentQuote] = []
    seen: set[str] = set()
    dropped = 0

    for raw in raws:
        try:
            quote = parse_record(raw)
        except RecordParseError as e:
            dropped += 1
            logger.debug(f"Dropped feed record: {e.message}", extra=e.details)
            continue

        if quote.symbol in seen:
            dropped += 1
            logger.debug(f"Dropped duplicate record for {quote.symbol}")
            continue

        seen.add(quote.symbol)
        quotes.append(quote)

    return quotes, dropped


# =============================================================================
# Payload extraction
# =============================================================================


def _is_header(cells: list[str], all_th: bool) -> bool:
    if all_th:
        return True
    names = {canonical_field(c) for c in cells}
    return "symbol" in names and ("last_price" in names or "change_percent" in names)


def extract_table_rows(html: str) -> list[TabularRow]:
    """Extract price rows from tabular markup.

    The last header row seen names the columns of the rows after it. Without
    any header row the DSE column layout is assumed. Rows with fewer than two
    cells are layout noise and are skipped entirely.
    """
    soup = BeautifulSoup(html, "html.parser")
    header: list[str] = list(DSE_COLUMNS)
    rows: list[TabularRow] = []

    for tr in soup.find_all("tr"):
        cell_tags = tr.find_all(["th", "td"], recursive=False)
        if len(cell_tags) < 2:
            continue
        cells = [tag.get_text(" ", strip=True) for tag in cell_tags]
        all_th = all(tag.name == "th" for tag in cell_tags)

        if _is_header(cells, all_th):
            header = cells
            continue

        rows.append(TabularRow(cells=dict(zip(header, cells)), position=len(rows)))

    return rows


_JSON_LIST_KEYS = ("data", "quotes", "results", "stocks", "items", "records")


def extract_json_records(document: str | bytes) -> list[JsonRecord]:
    """Extract quote objects from a JSON feed document.

    Accepts a top-level list, an object wrapping a list under a common key, a
    single quote object, or an object of objects keyed by symbol.

    Raises:
        ValueError: document is not JSON or has no recognizable records
    """
    payload = json.loads(document)

    if isinstance(payload, dict):
        for key in _JSON_LIST_KEYS:
            if isinstance(payload.get(key), list):
                payload = payload[key]
                break
        else:
            if any(canonical_field(k) == "symbol" for k in payload):
                payload = [payload]
            elif payload and all(isinstance(v, dict) for v in payload.values()):
                payload = [{"symbol": k, **v} for k, v in payload.items()]
            else:
                raise ValueError("JSON document contains no quote records")

    if not isinstance(payload, list):
        raise ValueError(f"Unexpected JSON document type: {type(payload).__name__}")

    return [
        JsonRecord(fields=item if isinstance(item, dict) else {}, position=i)
        for i, item in enumerate(payload)
    ]


def detect_format(body: str, content_type: str | None = None) -> Literal["html", "json"]:
    """Guess the payload format from the content type and the first character."""
    if content_type and "json" in content_type.lower():
        return "json"
    stripped = body.lstrip()
    if stripped[:1] in ("{", "["):
        return "json"
    return "html"


def parse_payload(
    body: str,
    fmt: str = "auto",
    content_type: str | None = None,
) -> tuple[list[InstrumentQuote], int]:
    """Parse a full feed document into quotes.

    Raises:
        ValueError: the document itself (not a record) is unreadable
    """
    resolved = detect_format(body, content_type) if fmt == "auto" else fmt
    if resolved == "json":
        raws: list[RawRecord] = list(extract_json_records(body))
    else:
        raws = list(extract_table_rows(body))
    return parse_records(raws)
