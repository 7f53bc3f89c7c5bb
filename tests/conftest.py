"""
Shared pytest fixtures.

Timestamps are built from naive local datetimes so that hour-of-day
assertions hold whatever the machine timezone is.
"""

import time
from datetime import datetime

import pytest

from models.data_models import LogEntry
from services.aggregator import Aggregator
from services.parser import LogParser


def local_ts(hour: int = 12, day: int = 5, minute: int = 0) -> datetime:
    """Aware datetime for the given local wall-clock time on 2024-03-<day>"""
    return datetime(2024, 3, day, hour, minute).astimezone()


def make_entry(
    endpoint: str = "/a",
    status_code: int = 200,
    response_time: float = 100.0,
    hour: int = 12,
    day: int = 5,
    ip: str = "10.0.0.1",
    method: str = "GET",
    username: str = "",
    device_id: str = "",
) -> LogEntry:
    return LogEntry(
        timestamp=local_ts(hour=hour, day=day),
        ip=ip,
        endpoint=endpoint,
        status_code=status_code,
        response_time=response_time,
        method=method,
        username=username,
        device_id=device_id,
    )


@pytest.fixture
def parser() -> LogParser:
    return LogParser()


@pytest.fixture
def aggregator(parser) -> Aggregator:
    return Aggregator(parser)


@pytest.fixture
def entry_factory():
    return make_entry


@pytest.fixture
def new_york_tz(monkeypatch):
    """Run the test with the process timezone set to America/New_York"""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available on this platform")
    monkeypatch.setenv("TZ", "America/New_York")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()
