"""
Helpers for reading fields out of loosely shaped API payloads.

Each logical field is described by an ordered tuple of candidate key names;
the first candidate holding a usable value wins.
"""
from __future__ import annotations

import math
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Optional, Sequence, TypeVar

T = TypeVar("T")


def as_mapping(data: Any) -> Mapping[str, Any]:
    """Return *data* if it is a mapping, otherwise an empty dict."""
    return data if isinstance(data, Mapping) else {}


def first_present(item: Mapping[str, Any], keys: Sequence[str], default: T) -> Any | T:
    """Return the value of the first key in *keys* that is present and not None/empty."""
    for key in keys:
        value = item.get(key)
        if value is None or value == "":
            continue
        return value
    return default


def pick_str(item: Mapping[str, Any], keys: Sequence[str], default: str = "") -> str:
    value = first_present(item, keys, None)
    return default if value is None else str(value)


def pick_optional_str(item: Mapping[str, Any], keys: Sequence[str]) -> Optional[str]:
    value = first_present(item, keys, None)
    return None if value is None else str(value)


def parse_float(value: Any) -> Optional[float]:
    """Parse a str/int/float into a finite float, or None when that is not possible."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def format_decimal(value: float, places: int = 6) -> str:
    return f"{value:.{places}f}"


def now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()
