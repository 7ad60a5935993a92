"""
main.py: Entry point. Starts monitoring the configured wallet.

Run with:
    python -m src.main
"""
from __future__ import annotations

import asyncio
import logging

from src.agents.account_monitor import AccountMonitor
from src.agents.polymarket_client import PolymarketClient
from src.agents.status_formatter import format_status
from src.config import load_config
from src.models import TradingStatus
from src.utils.logger import setup_logging

log = logging.getLogger(__name__)


def print_status(status: TradingStatus) -> None:
    print(format_status(status), flush=True)


def report_error(exc: Exception) -> None:
    log.error("Monitor error: %s", exc)


async def main() -> None:
    setup_logging()

    log.info("Loading configuration …")
    try:
        config = load_config()
    except ValueError as exc:
        log.critical("Configuration error: %s", exc)
        return

    setup_logging(config.log_level)

    async with PolymarketClient(config.client) as client:
        monitor = AccountMonitor(
            client,
            config.target_address,
            poll_interval=config.poll_interval_ms,
            enable_websocket=config.enable_websocket,
            on_update=print_status,
            on_error=report_error,
        )

        log.info(
            "Polymarket Account Monitor started. Polling every %.1fs for %s.",
            config.poll_interval_ms / 1000,
            config.target_address,
        )

        try:
            await monitor.start()
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            # Ctrl-C under asyncio.run arrives here as a cancellation
            log.info("Shutting down ...")
            raise
        finally:
            monitor.stop()


def run() -> None:
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
