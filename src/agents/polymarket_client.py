"""
Polymarket Client Agent: fetches positions, trades and markets from the Data API.

Positions and trades are requested with a primary request shape (address in
the path) and, when that fails, a fallback shape (address as a query
parameter). A 404 from both shapes means "nothing for this address" and yields
an empty result; anything else is wrapped in PolymarketAPIError.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable, Optional

import httpx

from src.agents.normalizer import (
    calculate_total_value,
    normalize_market,
    normalize_positions,
    normalize_trades,
)
from src.config import ClientConfig
from src.models import Market, UserPositions, UserTrades
from src.utils.fields import now_iso
from src.utils.http_client import DEFAULT_MAX_RETRIES, build_client, get_json, is_not_found

log = logging.getLogger(__name__)

DEFAULT_TRADE_LIMIT = 50
MAX_CONCURRENT_MARKET_FETCHES = 10

# Both request shapes answered 404
_NOT_FOUND = object()


class PolymarketAPIError(Exception):
    """A request failed for a reason other than "not found"."""


def _unwrap_items(payload: Any, key: str) -> list:
    """
    Pull the item list out of a response body.

    Handles {"<key>": [...]}, {"data": [...]} and a bare list. Anything else is
    treated as no items.
    """
    if isinstance(payload, dict):
        payload = payload.get(key) or payload.get("data") or []
    return payload if isinstance(payload, list) else []


class PolymarketClient:
    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
    ):
        self.config = config or ClientConfig()
        self.max_retries = max_retries
        self._owns_client = http_client is None
        self._http = http_client or build_client(self.config.data_api_url, self.config.api_key)

    async def __aenter__(self) -> "PolymarketClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client and not self._http.is_closed:
            await self._http.aclose()

    async def _get(self, url: str, params: Optional[dict[str, Any]] = None) -> Any:
        log.debug("GET %s params=%s", url, params)
        return await get_json(self._http, url, params, max_retries=self.max_retries)

    async def _get_items_body(self, url: str, params: dict[str, Any]) -> dict | list:
        """GET a list endpoint; a body that is neither an object nor an array counts as a failure."""
        payload = await self._get(url, params)
        if not isinstance(payload, (dict, list)):
            raise PolymarketAPIError(f"Unexpected response body from {url}: {payload!r}")
        return payload

    async def _get_with_fallback(
        self,
        primary: tuple[str, dict[str, Any]],
        fallback: tuple[str, dict[str, Any]],
    ) -> Any:
        """
        Try the primary request shape, then the fallback.

        Returns the first usable body, or _NOT_FOUND when both shapes answered
        404. Otherwise re-raises the first error that was not a 404.
        """
        try:
            return await self._get_items_body(*primary)
        except Exception as primary_exc:
            log.debug("Primary request %s failed (%s), trying %s", primary[0], primary_exc, fallback[0])
            try:
                return await self._get_items_body(*fallback)
            except Exception as fallback_exc:
                if is_not_found(primary_exc) and is_not_found(fallback_exc):
                    return _NOT_FOUND
                if not is_not_found(primary_exc):
                    raise primary_exc
                raise fallback_exc

    async def get_user_positions(self, address: str) -> UserPositions:
        """
        Fetch the active positions held by *address*.

        Returns an empty UserPositions with total_value "0" when the API reports
        that the address has none.

        Raises
        ------
        PolymarketAPIError
            If both request shapes fail for a reason other than not-found.
        """
        try:
            payload = await self._get_with_fallback(
                (f"/users/{address}/positions", {"active": "true"}),
                ("/positions", {"user": address, "active": "true"}),
            )
        except Exception as exc:
            raise PolymarketAPIError(f"Failed to fetch user positions: {exc}") from exc

        if payload is _NOT_FOUND:
            log.info("No positions found for %s", address)
            return UserPositions(user=address, positions=[], total_value="0", timestamp=now_iso())

        positions = normalize_positions(_unwrap_items(payload, "positions"))
        log.info("Fetched %d position(s) for %s", len(positions), address)
        return UserPositions(
            user=address,
            positions=positions,
            total_value=calculate_total_value(positions),
            timestamp=now_iso(),
        )

    async def get_user_trades(self, address: str, limit: int = DEFAULT_TRADE_LIMIT) -> UserTrades:
        """
        Fetch up to *limit* of the most recent trades made by *address*, newest first.

        Same not-found / error contract as get_user_positions.
        """
        params = {"limit": limit, "sort": "desc"}
        try:
            payload = await self._get_with_fallback(
                (f"/users/{address}/trades", params),
                ("/trades", {"user": address, **params}),
            )
        except Exception as exc:
            raise PolymarketAPIError(f"Failed to fetch user trades: {exc}") from exc

        if payload is _NOT_FOUND:
            log.info("No trades found for %s", address)
            return UserTrades(user=address, trades=[], total_trades=0, timestamp=now_iso())

        trades = normalize_trades(_unwrap_items(payload, "trades"))
        log.info("Fetched %d trade(s) for %s", len(trades), address)
        return UserTrades(user=address, trades=trades, total_trades=len(trades), timestamp=now_iso())

    async def get_market(self, market_id: str) -> Market:
        """Fetch a single market. A missing market is an error, not an empty result."""
        try:
            payload = await self._get(f"/markets/{market_id}")
        except Exception as exc:
            raise PolymarketAPIError(f"Failed to fetch market: {exc}") from exc
        return normalize_market(payload)

    async def get_markets(self, market_ids: Iterable[str]) -> list[Market]:
        """
        Fetch several markets concurrently.

        Best effort: markets that fail to load are left out of the result and
        never fail the batch. The result keeps the order of *market_ids*.
        """
        semaphore = asyncio.Semaphore(MAX_CONCURRENT_MARKET_FETCHES)

        async def _fetch(market_id: str) -> Market:
            async with semaphore:
                return await self.get_market(market_id)

        ids = list(market_ids)
        results = await asyncio.gather(*(_fetch(i) for i in ids), return_exceptions=True)

        markets: list[Market] = []
        for market_id, result in zip(ids, results):
            if isinstance(result, BaseException):
                log.debug("Dropping market %s: %s", market_id, result)
                continue
            markets.append(result)
        return markets
