"""Tests for ranking: gainers, losers, favorites and alerts."""

from __future__ import annotations

from decimal import Decimal

import pytest

from moverbot.services.ranking import (
    rank,
    select_alerts,
    select_favorites,
    top_gainers,
    top_losers,
)
from tests.factories import make_quote, make_snapshot


def _symbols(quotes) -> list[str]:
    return [q.symbol for q in quotes]


class TestGainersAndLosers:
    """Tests for top_gainers / top_losers."""

    def test_gainers_sorted_descending(self):
        """Gainers are ordered by change, largest first."""
        quotes = [make_quote("A", "1.0"), make_quote("B", "7.5"), make_quote("C", "3.2")]
        assert _symbols(top_gainers(quotes)) == ["B", "C", "A"]

    def test_losers_sorted_ascending(self):
        """Losers are ordered by change, largest drop first."""
        quotes = [make_quote("A", "-1.0"), make_quote("B", "-7.5"), make_quote("C", "-3.2")]
        assert _symbols(top_losers(quotes)) == ["B", "C", "A"]

    def test_gainers_exclude_flat_and_negative(self):
        """Only positive movers are gainers."""
        quotes = [make_quote("UP", "0.01"), make_quote("FLAT", "0"), make_quote("DOWN", "-2")]
        assert _symbols(top_gainers(quotes)) == ["UP"]
        assert _symbols(top_losers(quotes)) == ["DOWN"]

    def test_limit_applies(self):
        """The list is cut at the limit."""
        quotes = [make_quote(f"S{i:02d}", str(i)) for i in range(1, 16)]
        gainers = top_gainers(quotes, limit=10)
        assert len(gainers) == 10
        assert gainers[0].symbol == "S15"

    def test_ties_broken_by_symbol(self):
        """Equal changes are ordered by symbol."""
        quotes = [make_quote("ZED", "2.0"), make_quote("ABC", "2.0"), make_quote("MID", "2.0")]
        assert _symbols(top_gainers(quotes)) == ["ABC", "MID", "ZED"]
        losers = [make_quote("ZED", "-2.0"), make_quote("ABC", "-2.0")]
        assert _symbols(top_losers(losers)) == ["ABC", "ZED"]

    def test_negative_limit_rejected(self):
        """A negative limit is an error."""
        with pytest.raises(ValueError):
            top_gainers([], limit=-1)

    def test_zero_limit_is_empty(self):
        """A zero limit yields an empty list."""
        assert top_gainers([make_quote("A", "1")], limit=0) == ()


class TestFavorites:
    """Tests for select_favorites."""

    def test_configured_order_and_missing_skipped(self):
        """Favorites keep configured order and skip absent symbols."""
        quotes = [make_quote("BATA", "-1"), make_quote("ACI", "2"), make_quote("GP", "1")]
        favorites = select_favorites(quotes, ["GP", "UNKNOWN", "BATA"])
        assert _symbols(favorites) == ["GP", "BATA"]

    def test_case_insensitive_and_deduplicated(self):
        """Favorite symbols match case-insensitively and only once."""
        quotes = [make_quote("GP", "1")]
        assert _symbols(select_favorites(quotes, ["gp", "GP", " Gp "])) == ["GP"]

    def test_no_favorites(self):
        """No configured favorites yields an empty list."""
        assert select_favorites([make_quote("GP", "1")], []) == ()


class TestAlerts:
    """Tests for select_alerts."""

    def test_threshold_inclusive_and_ordered_by_magnitude(self):
        """Alerts include the threshold and sort by absolute change."""
        quotes = [
            make_quote("A", "6.2"),
            make_quote("B", "-7.1"),
            make_quote("C", "3.0"),
            make_quote("D", "5.0"),
        ]
        alerts = select_alerts(quotes, Decimal("5.0"))
        assert [q.change_percent for q in alerts] == [Decimal("-7.1"), Decimal("6.2"), Decimal("5.0")]

    def test_alerts_are_not_capped(self):
        """Every qualifying alert is kept regardless of the limit."""
        quotes = [make_quote(f"S{i:02d}", "9") for i in range(25)]
        assert len(select_alerts(quotes, Decimal("5"))) == 25


class TestRank:
    """Tests for the combined ranked view."""

    def test_empty_snapshot(self):
        """An empty snapshot ranks to an empty view."""
        view = rank(make_snapshot(), favorites=["GP"])
        assert view.is_empty
        assert view.gainers == ()
        assert view.alerts == ()

    def test_full_view(self):
        """rank() fills all four lists."""
        snapshot = make_snapshot(
            make_quote("GP", "5.21"),
            make_quote("BATA", "-3.81"),
            make_quote("ACI", "7.14"),
        )
        view = rank(snapshot, favorites=["GP", "BATA"], limit=10, alert_threshold=Decimal("5"))
        assert _symbols(view.gainers) == ["ACI", "GP"]
        assert _symbols(view.losers) == ["BATA"]
        assert _symbols(view.favorites) == ["GP", "BATA"]
        assert _symbols(view.alerts) == ["ACI", "GP"]

    def test_idempotent(self):
        """Ranking the same input twice gives the same view."""
        snapshot = make_snapshot(make_quote("A", "1"), make_quote("B", "-1"), make_quote("C", "9"))
        assert rank(snapshot, ["A"]) == rank(snapshot, ["A"])

    def test_float_threshold_accepted(self):
        """A float threshold is coerced to Decimal."""
        snapshot = make_snapshot(make_quote("A", "5.1"))
        assert _symbols(rank(snapshot, alert_threshold=5.1).alerts) == ["A"]
