"""
Account Monitor Agent: polls one wallet's positions and trades on a timer and
hands significant changes to the caller.

Callbacks may be plain functions or coroutine functions. Errors raised during
a background cycle are routed to ``on_error`` and never stop the timer.
"""
from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Optional, Union

from src.agents.change_detector import ChangeDetector
from src.agents.polymarket_client import PolymarketClient
from src.config import DEFAULT_POLL_INTERVAL_MS
from src.models import MonitorState, TradingStatus, UserPositions, UserTrades
from src.utils.fields import now_iso

log = logging.getLogger(__name__)

# Trades requested per cycle and trades kept in a snapshot
RECENT_TRADES_FETCH_LIMIT = 20
MAX_RECENT_TRADES = 10

UpdateCallback = Callable[[TradingStatus], Union[None, Awaitable[None]]]
ErrorCallback = Callable[[Exception], Union[None, Awaitable[None]]]


def _log_error(exc: Exception) -> None:
    log.error("Monitor error: %s", exc, exc_info=exc)


async def _invoke(callback: Callable[[Any], Any], arg: Any) -> None:
    result = callback(arg)
    if inspect.isawaitable(result):
        await result


class AccountMonitor:
    def __init__(
        self,
        client: PolymarketClient,
        target_address: str,
        *,
        poll_interval: Optional[int] = None,
        enable_websocket: bool = False,
        on_update: Optional[UpdateCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ):
        """
        Parameters
        ----------
        client : PolymarketClient
            Source of positions and trades.
        target_address : str
            Wallet to monitor. Required.
        poll_interval : int, optional
            Milliseconds between background cycles (default 30000).
        enable_websocket : bool
            Accepted for compatibility; only polling is implemented.
        on_update : callable, optional
            Receives each TradingStatus that differs significantly from the last one.
        on_error : callable, optional
            Receives errors from the monitoring cycle. Defaults to logging them.
        """
        if not target_address:
            raise ValueError("Target address is required")
        if poll_interval is not None and poll_interval <= 0:
            raise ValueError(f"Poll interval must be positive, got {poll_interval}")

        self.client = client
        self.target_address = target_address
        self.poll_interval = poll_interval or DEFAULT_POLL_INTERVAL_MS
        self.enable_websocket = enable_websocket
        self.on_update: UpdateCallback = on_update or (lambda status: None)
        self.on_error: ErrorCallback = on_error or _log_error

        self._state = MonitorState.IDLE
        self._detector = ChangeDetector()
        self._last_status: Optional[TradingStatus] = None
        self._timer: Optional[asyncio.Task] = None
        self._cycle: Optional[asyncio.Future] = None

    @property
    def state(self) -> MonitorState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is MonitorState.RUNNING

    @property
    def last_status(self) -> Optional[TradingStatus]:
        """The last snapshot handed to on_update, if any."""
        return self._last_status

    async def start(self) -> None:
        """Run one cycle immediately, then keep polling every poll_interval ms until stop()."""
        if self._state is MonitorState.RUNNING:
            log.warning("Monitor is already running")
            return

        # Flip state before the first await so a concurrent start() is a no-op
        self._state = MonitorState.RUNNING
        log.info("Starting monitor for address: %s", self.target_address)

        await self._update_status()

        if self._state is not MonitorState.RUNNING:
            return
        if self._timer is None or self._timer.done():
            self._timer = asyncio.create_task(self._poll_loop())

        if self.enable_websocket:
            log.info("WebSocket monitoring not yet implemented, using polling")

    def stop(self) -> None:
        """Cancel the timer. A cycle already in flight still runs to completion."""
        if self._state is MonitorState.IDLE:
            return

        self._state = MonitorState.IDLE
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        log.info("Monitor stopped")

    async def get_status(self) -> TradingStatus:
        """
        Fetch a fresh TradingStatus, bypassing the timer and change detection.

        Errors are reported to on_error and then re-raised.
        """
        try:
            return await self._fetch_status()
        except Exception as exc:
            await self._report_error(exc)
            raise

    async def _poll_loop(self) -> None:
        interval = self.poll_interval / 1000
        while self._state is MonitorState.RUNNING:
            await asyncio.sleep(interval)
            if self._state is not MonitorState.RUNNING:
                break
            # Shielded so stop() cancels the timer but not a running cycle
            self._cycle = asyncio.ensure_future(self._update_status())
            await asyncio.shield(self._cycle)

    async def _update_status(self) -> None:
        try:
            status = await self._fetch_status()
            if self._detector.has_significant_change(self._last_status, status):
                self._last_status = status
                await _invoke(self.on_update, status)
            else:
                log.debug("[%s] No significant change", self.target_address)
        except Exception as exc:
            await self._report_error(exc)

    async def _fetch_status(self) -> TradingStatus:
        address = self.target_address
        positions_result, trades_result = await asyncio.gather(
            self.client.get_user_positions(address),
            self.client.get_user_trades(address, RECENT_TRADES_FETCH_LIMIT),
            return_exceptions=True,
        )

        positions: UserPositions = self._settle(
            positions_result,
            "positions",
            lambda: UserPositions(user=address, positions=[], total_value="0", timestamp=now_iso()),
        )
        trades: UserTrades = self._settle(
            trades_result,
            "trades",
            lambda: UserTrades(user=address, trades=[], total_trades=0, timestamp=now_iso()),
        )

        return TradingStatus(
            user=address,
            total_positions=len(positions.positions),
            total_value=positions.total_value,
            recent_trades=trades.trades[:MAX_RECENT_TRADES],
            open_positions=positions.positions,
            last_updated=now_iso(),
        )

    @staticmethod
    def _settle(result: Any, label: str, empty: Callable[[], Any]) -> Any:
        """Return *result*, or an empty default (with a warning) if the fetch failed."""
        if isinstance(result, Exception):
            log.warning("Failed to fetch %s: %s", label, result)
            return empty()
        if isinstance(result, BaseException):
            raise result
        return result

    async def _report_error(self, exc: Exception) -> None:
        try:
            await _invoke(self.on_error, exc)
        except Exception:
            log.exception("Error callback raised while handling: %s", exc)
