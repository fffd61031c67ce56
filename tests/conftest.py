"""
Pytest configuration and shared fixtures.
"""

import sys
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from core import config  # noqa: E402
from core.database import create_tables, get_connection, set_setting  # noqa: E402
from core.timezone import civil_datetime_to_instant  # noqa: E402


@pytest.fixture
def denver():
    """Default company timezone."""
    return ZoneInfo("America/Denver")


@pytest.fixture
def make_event(denver):
    """Factory for stored event records with local start/end times."""

    def _make(
        start="2024-01-01T00:00",
        end=None,
        rule="",
        is_all_day=False,
        exceptions=None,
        event_id=1,
        is_active=True,
        zone=denver,
    ):
        start_local = datetime.fromisoformat(start)
        end_local = datetime.fromisoformat(end) if end else None
        return {
            "id": event_id,
            "title": f"Event {event_id}",
            "start_instant": civil_datetime_to_instant(start_local, zone),
            "end_instant": civil_datetime_to_instant(end_local, zone) if end_local else None,
            "is_all_day": is_all_day,
            "recurrence_rule": rule,
            "exceptions": exceptions or [],
            "is_active": is_active,
            "pattern": None,
        }

    return _make


@pytest.fixture
def sample_event(make_event):
    """Weekly trivia night, Mondays and Fridays from Jan 1 2024, 19:00-22:00."""
    return make_event(
        start="2024-01-01T19:00",
        end="2024-01-01T22:00",
        rule="FREQ=WEEKLY;BYDAY=MO,FR",
    )


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    """Empty calendar database with the company timezone set to America/Denver."""
    path = tmp_path / "calendar.db"
    monkeypatch.setattr(config, "DB_PATH", path)

    conn = get_connection(path)
    create_tables(conn)
    set_setting(conn, config.TIMEZONE_SETTING_KEY, "America/Denver")
    conn.close()
    return path


@pytest.fixture
def db_conn(db_path):
    conn = get_connection(db_path)
    yield conn
    conn.close()
