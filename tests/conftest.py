"""Shared fixtures for calendar site tests."""
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from processor.event_store import EventStore
from processor.models import Event
from processor.settings import SiteConfig

PHOENIX = ZoneInfo('America/Phoenix')


@pytest.fixture
def tz():
    """Display timezone used across tests."""
    return PHOENIX


@pytest.fixture
def make_event():
    """Factory for events starting at a local Phoenix time."""
    def _make(summary, year, month, day, hour=10, minute=0, hours=1, **kwargs):
        return Event(
            summary=summary,
            start=datetime(year, month, day, hour, minute, tzinfo=PHOENIX),
            duration=timedelta(hours=hours),
            uid=kwargs.pop('uid', f"{summary}-{year}{month:02}{day:02}"),
            **kwargs
        )
    return _make


@pytest.fixture
def make_store(tz):
    """Factory for an EventStore holding the given events."""
    def _make(events):
        return EventStore(tz, events)
    return _make


@pytest.fixture
def config(tmp_path):
    """Site configuration with a fixed cursor date."""
    return SiteConfig(
        calendar_today_date='2024-03-15',
        output_dir=tmp_path,
    )
