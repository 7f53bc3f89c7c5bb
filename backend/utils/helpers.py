"""
Helper Functions

This module contains utility functions used throughout the application.
"""

import math
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence

from dateutil import parser as dtparser
from dateutil import tz


def parse_ts(x: Any) -> Optional[datetime]:
    """Parse timestamp from ISO-8601 or free-form strings (naive values are server-local time)"""
    if not x:
        return None
    if isinstance(x, datetime):
        dt = x
    else:
        try:
            dt = dtparser.isoparse(str(x).strip())
        except (ValueError, OverflowError):
            try:
                dt = dtparser.parse(str(x))
            except (ValueError, OverflowError):
                return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=tz.tzlocal())
    return dt.astimezone(timezone.utc)


def safe_int(x: Any) -> Optional[int]:
    """Safely convert to int ("200", 200.0 and " 404 " all work)"""
    if x is None or isinstance(x, bool):
        return None
    try:
        return int(x)
    except (TypeError, ValueError):
        try:
            return int(float(str(x).strip()))
        except (TypeError, ValueError, OverflowError):
            return None


def safe_float(x: Any) -> Optional[float]:
    """Safely convert to float"""
    if x is None or isinstance(x, bool):
        return None
    try:
        value = float(x)
    except (TypeError, ValueError):
        return None
    return value if math.isfinite(value) else None


def first_present(d: Dict[str, Any], keys: Sequence[str]) -> Any:
    """Return the first value under `keys` that is not None or blank"""
    for k in keys:
        value = d.get(k)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def percentile(values: Iterable[float], p: float) -> float:
    """
    Nearest-rank percentile.
    Index is ceil(p/100 * n) - 1 on the ascending values, clamped to [0, n-1].
    """
    sorted_vals: List[float] = sorted(values)
    n = len(sorted_vals)
    if n == 0:
        return 0.0
    index = math.ceil(p / 100.0 * n) - 1
    index = max(0, min(index, n - 1))
    return float(sorted_vals[index])


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean, 0 for an empty sequence"""
    return (sum(values) / len(values)) if values else 0.0


def rate(part: int, total: int) -> float:
    """Percentage of part in total, 0 when total is 0"""
    return (part / total * 100.0) if total else 0.0
