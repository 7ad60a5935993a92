"""
Config loader: reads .env and the process environment into typed config objects.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env from the project root (one level above src/)
_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(_ROOT / ".env")

DATA_API_URL = "https://data-api.polymarket.com"

DEFAULT_POLL_INTERVAL_MS = 30_000

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class ClientConfig:
    api_key: Optional[str] = None
    data_api_url: str = DATA_API_URL      # base for positions / trades / markets requests


@dataclass
class AppConfig:
    target_address: str
    poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS
    enable_websocket: bool = False
    log_level: str = "INFO"
    client: ClientConfig = field(default_factory=ClientConfig)


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in _TRUTHY


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer number of milliseconds, got {raw!r}") from exc


def load_config() -> AppConfig:
    """Load and validate configuration from .env and the environment."""
    target = os.getenv("TARGET_ADDRESS", "").strip()
    if not target:
        raise ValueError(
            "TARGET_ADDRESS is not set. Copy .env.example to .env and fill in the wallet to monitor."
        )

    poll_interval = _env_int("POLL_INTERVAL_MS", DEFAULT_POLL_INTERVAL_MS)
    if poll_interval <= 0:
        raise ValueError(f"POLL_INTERVAL_MS must be positive, got {poll_interval}")

    client = ClientConfig(
        api_key=os.getenv("POLYMARKET_API_KEY") or None,
        data_api_url=os.getenv("POLYMARKET_DATA_API_URL") or DATA_API_URL,
    )

    return AppConfig(
        target_address=target,
        poll_interval_ms=poll_interval,
        enable_websocket=_env_bool("ENABLE_WEBSOCKET"),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
        client=client,
    )
