"""Tests for feed payload parsing."""

from __future__ import annotations

import json
from decimal import Decimal

import pytest

from moverbot.core.exceptions import RecordParseError
from moverbot.services.feed.parsers import (
    JsonRecord,
    TabularRow,
    canonical_field,
    derive_change_percent,
    extract_json_records,
    extract_table_rows,
    parse_decimal,
    parse_payload,
    parse_record,
    parse_records,
)
from moverbot.services.ranking import rank
from tests.factories import DSE_HTML, make_snapshot


# =============================================================================
# Value parsing
# =============================================================================


class TestParseDecimal:
    """Tests for parse_decimal."""

    def test_strips_thousands_separators(self):
        """Thousands separators are ignored."""
        assert parse_decimal("1,010.50") == Decimal("1010.50")

    def test_strips_percent_sign(self):
        """A trailing percent sign is ignored."""
        assert parse_decimal("-3.25%") == Decimal("-3.25")

    def test_placeholders_are_unavailable(self):
        """Feed placeholder markers parse as unavailable."""
        for marker in ("", "-", "--", "N/A", "null"):
            assert parse_decimal(marker) is None

    def test_zero_is_a_real_value(self):
        """Zero is a value, not a missing field."""
        assert parse_decimal("0") == Decimal("0")

    def test_numbers_pass_through(self):
        """Native ints and floats become Decimals."""
        assert parse_decimal(12) == Decimal("12")
        assert parse_decimal(1.5) == Decimal("1.5")

    def test_garbage_raises(self):
        """Non-numeric text is rejected."""
        with pytest.raises(ValueError):
            parse_decimal("abc")

    def test_boolean_raises(self):
        """Booleans are not numbers."""
        with pytest.raises(ValueError):
            parse_decimal(True)

    def test_non_finite_raises(self):
        """NaN is rejected."""
        with pytest.raises(ValueError):
            parse_decimal("NaN")

    def test_out_of_range_exponent_raises(self):
        """Numbers beyond the decimal context's reach are rejected, not carried."""
        for raw in ("1E+999999999", "1000000000000000000000000000000", "1E-999999999", 1e300):
            with pytest.raises(ValueError):
                parse_decimal(raw)

    def test_zero_with_huge_exponent_is_zero(self):
        """Any spelling of zero parses as plain zero."""
        assert parse_decimal("0E-999999999") == Decimal("0")


class TestFieldAliases:
    """Column and key names from different feeds map to the same field."""

    def test_dse_headers(self):
        """DSE table headers map to quote fields."""
        assert canonical_field("TRADING CODE") == "symbol"
        assert canonical_field("LTP*") == "last_price"
        assert canonical_field("YCP*") == "previous_close"
        assert canonical_field("CLOSEP*") == "close_price"

    def test_json_keys(self):
        """JSON key spellings map to quote fields."""
        assert canonical_field("changePercent") == "change_percent"
        assert canonical_field("change_%") == "change_percent"
        assert canonical_field("lastPrice") == "last_price"

    def test_unknown_key(self):
        """Unrelated columns are ignored."""
        assert canonical_field("VALUE (mn)") is None

    def test_derived_change_percent_rounds_half_up(self):
        """Derived percentages round half-up to two places."""
        assert derive_change_percent(Decimal("12.40"), Decimal("238.00")) == Decimal("5.21")
        assert derive_change_percent(Decimal("1"), Decimal("8")) == Decimal("12.50")

    def test_derived_change_percent_zero_close(self):
        """A zero previous close gives no percentage."""
        assert derive_change_percent(Decimal("1"), Decimal("0")) is None


# =============================================================================
# Record conversion
# =============================================================================


class TestParseRecord:
    """Tests for parse_record."""

    def test_json_record(self):
        """A complete JSON record converts every field."""
        quote = parse_record(JsonRecord(fields={
            "symbol": "gp",
            "ltp": "250.40",
            "changePercent": "5.2",
            "volume": "200,500",
            "pe": "--",
        }))
        assert quote.symbol == "GP"
        assert quote.last_price == Decimal("250.40")
        assert quote.change_percent == Decimal("5.2")
        assert quote.volume == Decimal("200500")
        assert quote.pe_ratio is None

    def test_table_row_derives_percent_from_change_and_ycp(self):
        """DSE rows without a percent column derive it from CHANGE and YCP."""
        quote = parse_record(TabularRow(cells={
            "TRADING CODE": "BATA",
            "LTP*": "1,010.00",
            "YCP*": "1,050.00",
            "CHANGE": "-40.00",
        }))
        assert quote.change_percent == Decimal("-3.81")

    def test_explicit_percent_wins_over_derivation(self):
        """A feed-supplied percentage is used as is."""
        quote = parse_record(JsonRecord(fields={
            "symbol": "GP", "price": "10", "change_percent": "1.00", "change": "5", "ycp": "10",
        }))
        assert quote.change_percent == Decimal("1.00")

    def test_missing_symbol(self):
        """A record without a symbol is invalid."""
        with pytest.raises(RecordParseError):
            parse_record(JsonRecord(fields={"ltp": "1", "changePercent": "1"}))

    def test_missing_change_percent(self):
        """A record without any change data is invalid and names its symbol."""
        with pytest.raises(RecordParseError) as exc_info:
            parse_record(JsonRecord(fields={"symbol": "GP", "ltp": "1"}))
        assert exc_info.value.details["symbol"] == "GP"

    def test_non_numeric_price(self):
        """An unparseable price invalidates the record."""
        with pytest.raises(RecordParseError):
            parse_record(JsonRecord(fields={"symbol": "GP", "ltp": "n/a?", "changePercent": "1"}))


class TestParseRecords:
    """Tests for parse_records dropping behavior."""

    def test_row_missing_change_percent_is_dropped(self):
        """One bad row is dropped while valid rows survive."""
        raws = [
            JsonRecord(fields={"symbol": "AAA", "ltp": "10", "changePercent": "1.5"}, position=0),
            JsonRecord(fields={"symbol": "BBB", "ltp": "20"}, position=1),
            JsonRecord(fields={"symbol": "CCC", "ltp": "30", "changePercent": "-2"}, position=2),
        ]
        quotes, dropped = parse_records(raws)
        assert [q.symbol for q in quotes] == ["AAA", "CCC"]
        assert dropped == 1

    def test_duplicate_symbols_keep_first(self):
        """The first record for a symbol wins."""
        raws = [
            JsonRecord(fields={"symbol": "GP", "ltp": "10", "changePercent": "1"}),
            JsonRecord(fields={"symbol": "gp", "ltp": "11", "changePercent": "2"}),
        ]
        quotes, dropped = parse_records(raws)
        assert len(quotes) == 1
        assert quotes[0].last_price == Decimal("10")
        assert dropped == 1

    def test_overflowing_rows_are_dropped(self):
        """Rows whose numbers overflow decimal arithmetic are dropped, not fatal."""
        raws = [
            TabularRow(cells={
                "TRADING CODE": "HUGE",
                "LTP*": "10",
                "YCP*": "0.000000000000001",
                "CHANGE": "999999999999999",
            }, position=0),
            JsonRecord(fields={"symbol": "WILD", "ltp": "10", "changePercent": "1E+999999999"}, position=1),
            JsonRecord(fields={"symbol": "GP", "ltp": "250.40", "changePercent": "5.21"}, position=2),
        ]
        quotes, dropped = parse_records(raws)

        assert [q.symbol for q in quotes] == ["GP"]
        assert dropped == 2
        view = rank(make_snapshot(*quotes), limit=5, alert_threshold=Decimal("5"))
        assert [q.symbol for q in view.gainers] == ["GP"]


# =============================================================================
# Payload extraction
# =============================================================================


class TestExtractTableRows:
    """Tests for HTML table extraction."""

    def test_dse_table(self):
        """Rows of the DSE table are keyed by header text."""
        rows = extract_table_rows(DSE_HTML)
        assert len(rows) == 4
        assert rows[0].cells["TRADING CODE"] == "ACI"
        assert rows[1].cells["LTP*"] == "1,010.00"

    def test_headerless_table_uses_dse_layout(self):
        """Tables without a header row use the DSE column order."""
        html = (
            "<table><tr><td>1</td><td>GP</td><td>250.40</td><td>252</td><td>245</td>"
            "<td>250.40</td><td>238.00</td><td>12.40</td><td>1</td><td>1</td><td>100</td></tr></table>"
        )
        quotes, dropped = parse_payload(html, fmt="html")
        assert dropped == 0
        assert quotes[0].symbol == "GP"
        assert quotes[0].change_percent == Decimal("5.21")
        assert quotes[0].volume == Decimal("100")

    def test_single_cell_rows_are_skipped(self):
        """Spacer rows are not records."""
        html = "<table><tr><td colspan='11'>Latest prices</td></tr></table>"
        assert extract_table_rows(html) == []

    def test_full_dse_document(self):
        """A full DSE page parses into quotes."""
        quotes, dropped = parse_payload(DSE_HTML)
        assert dropped == 0
        by_symbol = {q.symbol: q for q in quotes}
        assert by_symbol["ACI"].change_percent == Decimal("7.14")
        assert by_symbol["GP"].change_percent == Decimal("5.21")
        assert by_symbol["SQURPHARMA"].change_percent == Decimal("1.18")
        assert by_symbol["BATA"].high == Decimal("1055.00")


class TestExtractJsonRecords:
    """Tests for JSON document shapes."""

    def test_top_level_list(self):
        """A JSON list is a list of records."""
        records = extract_json_records(json.dumps([{"symbol": "GP"}, {"symbol": "ACI"}]))
        assert [r.fields["symbol"] for r in records] == ["GP", "ACI"]

    def test_wrapped_list(self):
        """A list under a data key is unwrapped."""
        records = extract_json_records(json.dumps({"data": [{"symbol": "GP"}]}))
        assert len(records) == 1

    def test_single_object(self):
        """A single JSON object is one record."""
        records = extract_json_records(json.dumps({"symbol": "GP", "ltp": 1}))
        assert records[0].fields["symbol"] == "GP"

    def test_object_keyed_by_symbol(self):
        """An object keyed by ticker supplies the symbol from its keys."""
        records = extract_json_records(json.dumps({"GP": {"ltp": 1, "changePercent": 2}}))
        assert records[0].fields["symbol"] == "GP"

    def test_non_object_items_become_empty_records(self):
        """Non-object list items become records that fail validation."""
        quotes, dropped = parse_payload(json.dumps([1, {"symbol": "GP", "ltp": 1, "changePercent": 2}]))
        assert len(quotes) == 1
        assert dropped == 1

    def test_unrecognized_document_raises(self):
        """A JSON document with no records is unreadable."""
        with pytest.raises(ValueError):
            extract_json_records(json.dumps({"status": "ok"}))

    def test_invalid_json_raises(self):
        """Malformed JSON is unreadable."""
        with pytest.raises(ValueError):
            parse_payload("[not json", fmt="json")
