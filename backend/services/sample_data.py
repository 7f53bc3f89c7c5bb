"""Synthetic access logs for demos and for trying the dashboard without an export."""

import random
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence

from models.data_models import LogEntry

SAMPLE_METHODS: Dict[str, Sequence[str]] = {
    "/auth/register": ("POST",),
    "/auth/login": ("POST",),
    "/products": ("GET",),
    "/recommendations": ("GET", "POST"),
    "/users/profile": ("GET",),
    "/users/follows": ("GET", "POST"),
    "/saved-items": ("GET", "POST", "DELETE"),
}

FAILURE_RATIO = 0.1


def generate_sample_logs(
    days: int = 30,
    count: int = 500,
    seed: Optional[int] = None,
    now: Optional[datetime] = None,
) -> List[LogEntry]:
    """
    Random requests spread over the last `days` days.
    About 10% fail (half 400, half 500); response times are 50-549 ms.
    """
    if days < 1:
        raise ValueError("days must be at least 1")
    if count < 0:
        raise ValueError("count must not be negative")

    rng = random.Random(seed)
    anchor = now or datetime.now(timezone.utc)
    endpoints = list(SAMPLE_METHODS)

    logs: List[LogEntry] = []
    for _ in range(count):
        day = anchor - timedelta(days=rng.randrange(days))
        ts = day.replace(hour=rng.randrange(24))

        endpoint = rng.choice(endpoints)
        if rng.random() < FAILURE_RATIO:
            status = 400 if rng.random() < 0.5 else 500
        else:
            status = 200

        logs.append(
            LogEntry(
                timestamp=ts,
                ip=f"192.168.1.{rng.randrange(255)}",
                endpoint=endpoint,
                status_code=status,
                response_time=float(rng.randrange(50, 550)),
                user_agent="Mozilla/5.0",
                method=rng.choice(SAMPLE_METHODS[endpoint]),
                username=f"user{rng.randrange(100)}",
                device_id=f"device{rng.randrange(50)}",
            )
        )
    return logs
