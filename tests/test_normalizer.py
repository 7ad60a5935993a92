"""
Tests for the Normalizer agent.

Run with:  pytest tests/test_normalizer.py
"""
from __future__ import annotations

from datetime import datetime

from src.agents.normalizer import (
    calculate_position_value,
    calculate_total_value,
    normalize_market,
    normalize_positions,
    normalize_trades,
)
from src.models import Market, Position


def _make_position(value: str) -> Position:
    return Position(
        id="p",
        market=Market(id="m", question="Q?"),
        outcome="Yes",
        quantity="1",
        price="1",
        value=value,
        timestamp="2026-01-01T00:00:00+00:00",
    )


class TestNormalizeMarket:
    def test_primary_keys(self):
        market = normalize_market({
            "id": "m1",
            "question": "Will it rain?",
            "slug": "will-it-rain",
            "endDate": "2026-12-31",
            "image": "https://img",
            "tags": ["weather"],
            "liquidity": "1500.5",
            "volume": 42,
            "active": False,
        })
        assert market.id == "m1"
        assert market.question == "Will it rain?"
        assert market.slug == "will-it-rain"
        assert market.end_date == "2026-12-31"
        assert market.image == "https://img"
        assert market.tags == ["weather"]
        assert market.liquidity == 1500.5
        assert market.volume == 42.0
        assert market.active is False

    def test_alternate_keys(self):
        market = normalize_market({
            "marketId": "m2",
            "title": "Alt title",
            "endDateISO": "2027-01-01",
            "imageUrl": "https://alt",
        })
        assert market.id == "m2"
        assert market.question == "Alt title"
        assert market.end_date == "2027-01-01"
        assert market.image == "https://alt"

    def test_primary_key_wins_over_alternate(self):
        market = normalize_market({"id": "primary", "marketId": "alt", "question": "Q", "title": "T"})
        assert market.id == "primary"
        assert market.question == "Q"

    def test_defaults_for_empty_payload(self):
        market = normalize_market({})
        assert market.id == ""
        assert market.question == ""
        assert market.slug == ""
        assert market.tags == []
        assert market.liquidity is None
        assert market.volume is None
        assert market.active is True

    def test_non_mapping_input_does_not_raise(self):
        assert normalize_market(None).id == ""
        assert normalize_market("garbage").question == ""

    def test_unparsable_numbers_left_absent(self):
        market = normalize_market({"liquidity": "lots", "volume": "nan"})
        assert market.liquidity is None
        assert market.volume is None

    def test_non_boolean_active_defaults_true(self):
        assert normalize_market({"active": "no"}).active is True


class TestNormalizePositions:
    def test_value_computed_when_missing(self):
        [position] = normalize_positions([{"id": "p1", "quantity": "10", "price": "2.5"}])
        assert position.value == "25.000000"

    def test_source_value_preferred(self):
        [position] = normalize_positions([{"quantity": "10", "price": "2.5", "value": "99"}])
        assert position.value == "99"

    def test_alternate_keys(self):
        [position] = normalize_positions([{
            "positionId": "p2",
            "marketData": {"marketId": "m9", "title": "Nested"},
            "outcomeToken": "No",
            "size": 4,
            "lastPrice": 0.25,
            "createdAt": "2026-02-02T00:00:00Z",
        }])
        assert position.id == "p2"
        assert position.market.id == "m9"
        assert position.market.question == "Nested"
        assert position.outcome == "No"
        assert position.quantity == "4"
        assert position.price == "0.25"
        assert position.value == "1.000000"
        assert position.timestamp == "2026-02-02T00:00:00Z"

    def test_missing_fields_get_defaults(self):
        [position] = normalize_positions([{}])
        assert position.id == ""
        assert position.outcome == ""
        assert position.quantity == "0"
        assert position.price == "0"
        assert position.value == "0.000000"
        assert position.market.id == ""
        # Timestamp falls back to "now"
        datetime.fromisoformat(position.timestamp)

    def test_non_numeric_quantity_degrades_to_zero(self):
        [position] = normalize_positions([{"quantity": "abc", "price": "1"}])
        assert position.value == "0"

    def test_order_and_count_preserved(self):
        positions = normalize_positions([{"id": "a"}, "not-a-dict", {"id": "c"}])
        assert [p.id for p in positions] == ["a", "", "c"]


class TestNormalizeTrades:
    def test_explicit_side(self):
        [trade] = normalize_trades([{"id": "t1", "side": "SELL", "quantity": "5", "price": "0.4"}])
        assert trade.side == "sell"
        assert trade.quantity == "5"
        assert trade.price == "0.4"

    def test_side_inferred_from_is_buy(self):
        buy, sell = normalize_trades([{"isBuy": True}, {"isBuy": False}])
        assert buy.side == "buy"
        assert sell.side == "sell"

    def test_alternate_keys(self):
        [trade] = normalize_trades([{
            "tradeId": "t2",
            "executionPrice": "0.61",
            "size": "12",
            "txHash": "0xhash",
            "userAddress": "0xuser",
            "market": {"id": "m1", "question": "Q?"},
        }])
        assert trade.id == "t2"
        assert trade.price == "0.61"
        assert trade.quantity == "12"
        assert trade.transaction_hash == "0xhash"
        assert trade.user == "0xuser"
        assert trade.market.question == "Q?"

    def test_missing_fields_get_defaults(self):
        [trade] = normalize_trades([{}])
        assert trade.id == ""
        assert trade.quantity == "0"
        assert trade.price == "0"
        assert trade.transaction_hash is None
        assert trade.user == ""
        datetime.fromisoformat(trade.timestamp)


class TestValues:
    def test_calculate_position_value(self):
        assert calculate_position_value("3", "0.5") == "1.500000"
        assert calculate_position_value(None, "0.5") == "0"

    def test_total_value_sums_to_six_decimals(self):
        positions = [_make_position("1.5"), _make_position("2.25"), _make_position("bad")]
        assert calculate_total_value(positions) == "3.750000"

    def test_total_value_empty(self):
        assert calculate_total_value([]) == "0.000000"
