"""
Normalizer Agent: maps the various Data API payload shapes onto the canonical
Market / Position / Trade records.

The upstream schema differs between endpoint variants, so nothing in here
raises. A malformed item produces a low-information record instead of
aborting the batch.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from src.models import Market, Position, Trade, TradeSide
from src.utils.fields import (
    as_mapping,
    first_present,
    format_decimal,
    now_iso,
    parse_float,
    pick_optional_str,
    pick_str,
)

log = logging.getLogger(__name__)

# Candidate keys, in priority order
MARKET_ID_KEYS = ("id", "marketId")
MARKET_QUESTION_KEYS = ("question", "title")
MARKET_END_DATE_KEYS = ("endDate", "endDateISO")
MARKET_IMAGE_KEYS = ("image", "imageUrl")
EMBEDDED_MARKET_KEYS = ("market", "marketData")

POSITION_ID_KEYS = ("id", "positionId")
POSITION_PRICE_KEYS = ("price", "lastPrice")
TRADE_ID_KEYS = ("id", "tradeId")
TRADE_PRICE_KEYS = ("price", "executionPrice")
OUTCOME_KEYS = ("outcome", "outcomeToken")
QUANTITY_KEYS = ("quantity", "size")
TIMESTAMP_KEYS = ("timestamp", "createdAt")
TX_HASH_KEYS = ("transactionHash", "txHash")
TRADE_USER_KEYS = ("user", "userAddress")


def normalize_market(data: Any) -> Market:
    """Build a Market from an arbitrary payload. Never raises."""
    item = as_mapping(data)

    tags = item.get("tags")
    active = item.get("active")

    return Market(
        id=pick_str(item, MARKET_ID_KEYS),
        question=pick_str(item, MARKET_QUESTION_KEYS),
        slug=pick_str(item, ("slug",)),
        description=pick_optional_str(item, ("description",)),
        end_date=pick_optional_str(item, MARKET_END_DATE_KEYS),
        image=pick_optional_str(item, MARKET_IMAGE_KEYS),
        icon=pick_optional_str(item, ("icon",)),
        resolution_source=pick_optional_str(item, ("resolutionSource",)),
        tags=[str(t) for t in tags] if isinstance(tags, list) else [],
        liquidity=parse_float(item.get("liquidity")),
        volume=parse_float(item.get("volume")),
        active=active if isinstance(active, bool) else True,
    )


def _embedded_market(item: Mapping[str, Any]) -> Market:
    return normalize_market(first_present(item, EMBEDDED_MARKET_KEYS, None))


def calculate_position_value(quantity: Any, price: Any) -> str:
    """quantity * price to 6 decimals; anything non-numeric degrades to "0"."""
    q = parse_float(quantity)
    p = parse_float(price)
    if q is None or p is None:
        return "0"
    value = parse_float(q * p)
    return "0" if value is None else format_decimal(value)


def calculate_total_value(positions: Iterable[Position]) -> str:
    """Sum of position values, fixed to 6 decimals. Unparsable values count as zero."""
    total = sum(parse_float(p.value) or 0.0 for p in positions)
    return format_decimal(total)


def _normalize_position(data: Any) -> Position:
    item = as_mapping(data)
    quantity = pick_str(item, QUANTITY_KEYS, "0")
    price = pick_str(item, POSITION_PRICE_KEYS, "0")

    return Position(
        id=pick_str(item, POSITION_ID_KEYS),
        market=_embedded_market(item),
        outcome=pick_str(item, OUTCOME_KEYS),
        quantity=quantity,
        price=price,
        value=pick_str(item, ("value",)) or calculate_position_value(quantity, price),
        timestamp=pick_str(item, TIMESTAMP_KEYS) or now_iso(),
    )


def _parse_side(item: Mapping[str, Any]) -> TradeSide:
    """Explicit buy/sell field first, then the boolean isBuy flag."""
    side = str(item.get("side") or "").strip().lower()
    if side == "buy":
        return "buy"
    if side == "sell":
        return "sell"
    return "buy" if item.get("isBuy") else "sell"


def _normalize_trade(data: Any) -> Trade:
    item = as_mapping(data)

    return Trade(
        id=pick_str(item, TRADE_ID_KEYS),
        market=_embedded_market(item),
        outcome=pick_str(item, OUTCOME_KEYS),
        side=_parse_side(item),
        quantity=pick_str(item, QUANTITY_KEYS, "0"),
        price=pick_str(item, TRADE_PRICE_KEYS, "0"),
        timestamp=pick_str(item, TIMESTAMP_KEYS) or now_iso(),
        transaction_hash=pick_optional_str(item, TX_HASH_KEYS),
        user=pick_str(item, TRADE_USER_KEYS),
    )


def normalize_positions(items: Iterable[Any]) -> list[Position]:
    """Normalize raw position items one-to-one, preserving order."""
    positions = [_normalize_position(item) for item in items]
    log.debug("Normalized %d position(s)", len(positions))
    return positions


def normalize_trades(items: Iterable[Any]) -> list[Trade]:
    """Normalize raw trade items one-to-one, preserving order."""
    trades = [_normalize_trade(item) for item in items]
    log.debug("Normalized %d trade(s)", len(trades))
    return trades
