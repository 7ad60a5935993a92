"""
Tests for the Change Detector agent.

Run with:  pytest tests/test_change_detector.py
"""
from __future__ import annotations

from src.agents.change_detector import ChangeDetector
from src.models import Market, Trade, TradingStatus


def _make_trade(trade_id: str) -> Trade:
    return Trade(
        id=trade_id,
        market=Market(id="m1", question="Test market question?"),
        outcome="Yes",
        side="buy",
        quantity="10",
        price="0.5",
        timestamp="2026-01-01T00:00:00+00:00",
    )


def _make_status(trade_ids=(), total_positions: int = 1, total_value: str = "100.000000") -> TradingStatus:
    return TradingStatus(
        user="0x1234",
        total_positions=total_positions,
        total_value=total_value,
        recent_trades=[_make_trade(t) for t in trade_ids],
        open_positions=[],
        last_updated="2026-01-01T00:00:00+00:00",
    )


class TestHasSignificantChange:
    def test_first_snapshot_always_significant(self):
        detector = ChangeDetector()
        assert detector.has_significant_change(None, _make_status()) is True

    def test_first_snapshot_records_trade_ids(self):
        detector = ChangeDetector()
        detector.has_significant_change(None, _make_status(["A", "B"]))
        assert detector.trade_ids == {"A", "B"}

    def test_no_changes(self):
        detector = ChangeDetector(["A", "B"])
        previous = _make_status(["A", "B"])
        current = _make_status(["A", "B"])
        assert detector.has_significant_change(previous, current) is False

    def test_new_trade_detected_and_ids_replaced(self):
        detector = ChangeDetector(["A", "B"])
        previous = _make_status(["A", "B"])
        current = _make_status(["C", "A"])
        assert detector.has_significant_change(previous, current) is True
        assert detector.trade_ids == {"C", "A"}

    def test_ids_not_refreshed_without_new_trades(self):
        detector = ChangeDetector(["A", "B", "C"])
        previous = _make_status(["A", "B", "C"])
        current = _make_status(["A"], total_positions=2)
        assert detector.has_significant_change(previous, current) is True
        assert detector.trade_ids == {"A", "B", "C"}

    def test_position_count_change(self):
        detector = ChangeDetector(["A"])
        previous = _make_status(["A"], total_positions=1)
        current = _make_status(["A"], total_positions=2)
        assert detector.has_significant_change(previous, current) is True

    def test_small_value_drift_ignored(self):
        detector = ChangeDetector(["A"])
        previous = _make_status(["A"], total_value="100")
        current = _make_status(["A"], total_value="100.5")  # 0.5 %
        assert detector.has_significant_change(previous, current) is False

    def test_value_move_over_one_percent(self):
        detector = ChangeDetector(["A"])
        previous = _make_status(["A"], total_value="100")
        current = _make_status(["A"], total_value="102")  # 2 %
        assert detector.has_significant_change(previous, current) is True

    def test_zero_previous_value_uses_floor(self):
        detector = ChangeDetector()
        previous = _make_status(total_value="0")
        assert detector.has_significant_change(previous, _make_status(total_value="0.00005")) is False
        assert detector.has_significant_change(previous, _make_status(total_value="0.5")) is True
