"""
Status Formatter: renders a TradingStatus as a human-readable console report.
"""
from __future__ import annotations

from datetime import datetime

from src.models import Position, Trade, TradingStatus
from src.utils.fields import parse_float

MAX_LISTED_TRADES = 5
MAX_LISTED_POSITIONS = 5

_RULE = "=" * 62


def _shorten(text: str, head: int, tail: int) -> str:
    if len(text) <= head + tail + 3:
        return text
    return f"{text[:head]}...{text[-tail:]}"


def _truncate(text: str, width: int) -> str:
    return text if len(text) <= width else text[: width - 3] + "..."


def _format_money(value: str) -> str:
    return f"${(parse_float(value) or 0.0):,.2f}"


def _format_shares(quantity: str) -> str:
    return f"{(parse_float(quantity) or 0.0):,.2f}".rstrip("0").rstrip(".")


def _format_price(price: str) -> str:
    return f"${(parse_float(price) or 0.0):.4f}"


def _format_timestamp(iso: str) -> str:
    try:
        return datetime.fromisoformat(iso.replace("Z", "+00:00")).strftime("%Y-%m-%d %H:%M:%S %Z").strip()
    except ValueError:
        return iso


def _side_emoji(side: str) -> str:
    return "🟢" if side == "buy" else "🔴"


def format_trade(index: int, trade: Trade) -> list[str]:
    title = _truncate(trade.market.question or "Unknown Market", 45)
    lines = [
        f"   {index}. {_side_emoji(trade.side)} {trade.side.upper()} "
        f"{_format_shares(trade.quantity)} shares @ {_format_price(trade.price)}",
        f"      {title}",
    ]
    if trade.transaction_hash:
        lines.append(f"      TX: {_shorten(trade.transaction_hash, 10, 8)}")
    return lines


def format_position(index: int, position: Position) -> list[str]:
    title = _truncate(position.market.question or "Unknown Market", 50)
    return [
        f"   {index}. {position.outcome}: {_format_shares(position.quantity)} shares "
        f"@ {_format_price(position.price)}",
        f"      Current Value: {_format_money(position.value)}",
        f"      Market: {title}",
    ]


def format_status(status: TradingStatus) -> str:
    """Render header, portfolio summary, up to 5 recent trades and up to 5 open positions."""
    lines = [
        "",
        _RULE,
        "  Polymarket Account Monitor - Trading Status",
        _RULE,
        "",
        f"👤 Account: {_shorten(status.user, 10, 8)}",
        f"🕐 Last Updated: {_format_timestamp(status.last_updated)}",
        "",
        "📊 Portfolio Summary:",
        f"   • Open Positions: {status.total_positions}",
        f"   • Total Value: {_format_money(status.total_value)}",
        "",
    ]

    trades = status.recent_trades[:MAX_LISTED_TRADES]
    if trades:
        lines.append(f"📈 Recent Trading Activity (last {len(trades)}):")
        for i, trade in enumerate(trades, start=1):
            lines.extend(format_trade(i, trade))
    else:
        lines.append("📈 Recent Trading Activity: No completed trades found")

    lines.append("")
    positions = status.open_positions[:MAX_LISTED_POSITIONS]
    if positions:
        lines.append(
            f"💼 Currently Open Positions (showing {len(positions)} of {len(status.open_positions)}):"
        )
        for i, position in enumerate(positions, start=1):
            lines.extend(format_position(i, position))
    else:
        lines.append("💼 Currently Open Positions: No active positions")

    lines.extend(["", _RULE, ""])
    return "\n".join(lines)
