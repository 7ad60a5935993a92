"""
Async HTTP transport for the Polymarket APIs, with retry and timeout logic.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import httpx

log = logging.getLogger(__name__)

# Fixed per-request budget (seconds)
REQUEST_TIMEOUT = 30.0
_CONNECT_TIMEOUT = 10.0

# Retry settings
DEFAULT_MAX_RETRIES = 3
_BACKOFF_DELAYS = [5, 15, 45]  # seconds between attempts

USER_AGENT = "polymarket-account-monitor/1.0"


def build_client(
    base_url: str,
    api_key: Optional[str] = None,
    *,
    timeout: float = REQUEST_TIMEOUT,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """
    Create an AsyncClient bound to *base_url*.

    When *api_key* is set it is attached to every request as a bearer token.
    *transport* lets callers (and tests) plug in their own fetch layer.
    """
    headers = {
        "Content-Type": "application/json",
        "Accept": "application/json",
        "User-Agent": USER_AGENT,
    }
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"

    return httpx.AsyncClient(
        base_url=base_url,
        timeout=httpx.Timeout(timeout, connect=min(_CONNECT_TIMEOUT, timeout)),
        follow_redirects=True,
        headers=headers,
        transport=transport,
    )


def is_not_found(exc: BaseException) -> bool:
    """True when *exc* is the upstream's "nothing here for this address" signal (HTTP 404)."""
    return isinstance(exc, httpx.HTTPStatusError) and exc.response.status_code == 404


async def get_json(
    client: httpx.AsyncClient,
    url: str,
    params: Optional[dict[str, Any]] = None,
    *,
    max_retries: int = DEFAULT_MAX_RETRIES,
) -> Any:
    """
    Perform a GET request and return the parsed JSON response.

    Timeouts, network errors and 429s are retried up to *max_retries* times.
    Any other non-2xx response raises httpx.HTTPStatusError straight away.
    """
    attempts = max(1, max_retries)
    last_exc: Exception | None = None

    for attempt in range(attempts):
        try:
            response = await client.get(url, params=params)
            response.raise_for_status()
            return response.json()
        except (httpx.TimeoutException, httpx.NetworkError) as exc:
            last_exc = exc
            if attempt + 1 >= attempts:
                break
            delay = _BACKOFF_DELAYS[min(attempt, len(_BACKOFF_DELAYS) - 1)]
            log.warning(
                "Request to %s failed (attempt %d/%d): %s, retrying in %ds",
                url, attempt + 1, attempts, exc, delay,
            )
            await asyncio.sleep(delay)
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code != 429:
                raise
            last_exc = exc
            if attempt + 1 >= attempts:
                break
            retry_after = int(exc.response.headers.get("Retry-After", "10"))
            log.warning("Rate-limited by %s, waiting %ds", url, retry_after)
            await asyncio.sleep(retry_after)

    raise RuntimeError(f"All {attempts} attempts to GET {url} failed: {last_exc}") from last_exc
