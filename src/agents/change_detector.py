"""
Change Detector Agent: decides whether a fresh TradingStatus differs enough
from the last delivered one to be worth surfacing.
"""
from __future__ import annotations

import logging
from typing import Iterable, Optional

from src.models import TradingStatus
from src.utils.fields import parse_float

log = logging.getLogger(__name__)

# Relative total-value move that counts as significant (1 %)
VALUE_CHANGE_THRESHOLD = 0.01
# Denominator floor so a zero previous value does not divide by zero
MIN_BASE_VALUE = 0.01


class ChangeDetector:
    """
    Holds the retained trade-id set used to spot new trades.

    Rules, first match wins:
      1. no previous snapshot (the current trade ids are recorded as the baseline)
      2. a trade id not in the retained set (the set is then replaced)
      3. a different number of open positions
      4. total value moved by more than VALUE_CHANGE_THRESHOLD
    """

    def __init__(self, trade_ids: Optional[Iterable[str]] = None):
        self.trade_ids: set[str] = set(trade_ids or ())

    def has_significant_change(
        self,
        previous: Optional[TradingStatus],
        current: TradingStatus,
    ) -> bool:
        current_ids = {t.id for t in current.recent_trades}

        if previous is None:
            self.trade_ids = current_ids
            log.debug("[%s] First snapshot, %d trade id(s) recorded", current.user, len(current_ids))
            return True

        new_ids = current_ids - self.trade_ids
        if new_ids:
            log.info("[%s] %d new trade(s) detected", current.user, len(new_ids))
            self.trade_ids = current_ids
            return True

        if current.total_positions != previous.total_positions:
            log.info(
                "[%s] Open positions changed: %d -> %d",
                current.user, previous.total_positions, current.total_positions,
            )
            return True

        previous_value = parse_float(previous.total_value) or 0.0
        current_value = parse_float(current.total_value) or 0.0
        change = abs(current_value - previous_value) / max(previous_value, MIN_BASE_VALUE)
        if change > VALUE_CHANGE_THRESHOLD:
            log.info(
                "[%s] Total value moved %.2f%%: %.6f -> %.6f",
                current.user, change * 100, previous_value, current_value,
            )
            return True

        return False
