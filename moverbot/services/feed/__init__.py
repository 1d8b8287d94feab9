"""Market feed ingestion: fetch raw payloads and parse them into snapshots."""

from moverbot.services.feed.client import TICKER_PATTERN, FeedClient, is_valid_ticker
from moverbot.services.feed.parsers import (
    JsonRecord,
    RawRecord,
    TabularRow,
    extract_json_records,
    extract_table_rows,
    parse_payload,
    parse_record,
    parse_records,
)

__all__ = [
    "FeedClient",
    "TICKER_PATTERN",
    "is_valid_ticker",
    "JsonRecord",
    "RawRecord",
    "TabularRow",
    "extract_json_records",
    "extract_table_rows",
    "parse_payload",
    "parse_record",
    "parse_records",
]
