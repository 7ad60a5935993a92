"""
Data models used across the Polymarket Account Monitor.

Monetary and quantity fields are kept as decimal strings exactly as they are
delivered to the caller; they are only parsed to float for aggregation.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Literal, Optional

TradeSide = Literal["buy", "sell"]


@dataclass(frozen=True)
class Market:
    id: str                          # e.g. "0x5f3c..." or a numeric market id
    question: str                    # e.g. "Will Oscar Piastri be the 2026 F1 Drivers' Champion?"
    slug: str = ""
    description: Optional[str] = None
    end_date: Optional[str] = None   # ISO date string as delivered by the API
    image: Optional[str] = None
    icon: Optional[str] = None
    resolution_source: Optional[str] = None
    tags: list[str] = field(default_factory=list)
    liquidity: Optional[float] = None
    volume: Optional[float] = None
    active: bool = True


@dataclass
class Position:
    id: str
    market: Market
    outcome: str                     # e.g. "Yes"
    quantity: str                    # shares held, decimal string
    price: str                       # decimal string
    value: str                       # quantity * price when the API omits it
    timestamp: str


@dataclass
class Trade:
    id: str                          # stable across polls, used for new-trade detection
    market: Market
    outcome: str
    side: TradeSide
    quantity: str
    price: str
    timestamp: str
    transaction_hash: Optional[str] = None
    user: str = ""


@dataclass
class UserPositions:
    user: str
    positions: list[Position]
    total_value: str                 # sum of position values, 6 decimals
    timestamp: str


@dataclass
class UserTrades:
    user: str
    trades: list[Trade]              # newest first, as supplied by the API
    total_trades: int
    timestamp: str


@dataclass
class TradingStatus:
    """Snapshot delivered to the caller and compared across polling cycles."""

    user: str
    total_positions: int
    total_value: str
    recent_trades: list[Trade]       # at most 10, most recent first
    open_positions: list[Position]
    last_updated: str


class MonitorState(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
