"""Tests for company timezone resolution and storage."""

from datetime import date, datetime, timezone

import pytest

from core.config import TIMEZONE_SETTING_KEY
from core.database import (
    fetch_event,
    fetch_events,
    get_connection,
    get_setting,
    insert_event,
    set_setting,
    update_event_exceptions,
)
from core.timezone import TimezoneConfigError
from services.company_timezone import CompanyTimezoneResolver, read_timezone_setting
from services.staffing import occurrence_dates, staffing_days

UTC = timezone.utc


class TestCompanyTimezoneResolver:
    def test_stored_setting_wins(self, db_conn):
        assert CompanyTimezoneResolver(db_conn, default="Europe/Berlin").name == "America/Denver"

    def test_updated_setting(self, db_conn):
        set_setting(db_conn, TIMEZONE_SETTING_KEY, "Europe/Berlin")
        assert CompanyTimezoneResolver(db_conn).name == "Europe/Berlin"

    def test_zone_is_resolved_once(self, db_conn):
        resolver = CompanyTimezoneResolver(db_conn)
        assert resolver.name == "America/Denver"
        set_setting(db_conn, TIMEZONE_SETTING_KEY, "Europe/Berlin")
        assert resolver.name == "America/Denver"

    def test_blank_setting_falls_back_to_default(self, db_conn):
        set_setting(db_conn, TIMEZONE_SETTING_KEY, "  ")
        assert CompanyTimezoneResolver(db_conn, default="Asia/Tokyo").name == "Asia/Tokyo"

    def test_no_connection_uses_default(self):
        assert CompanyTimezoneResolver(None, default="Europe/Berlin").name == "Europe/Berlin"

    def test_invalid_stored_zone_raises(self, db_conn):
        set_setting(db_conn, TIMEZONE_SETTING_KEY, "Mars/Olympus_Mons")
        with pytest.raises(TimezoneConfigError):
            CompanyTimezoneResolver(db_conn).resolve()

    def test_invalid_default_raises(self):
        with pytest.raises(TimezoneConfigError):
            CompanyTimezoneResolver(None, default="Nowhere").resolve()

    def test_unreadable_store_falls_back(self, tmp_path):
        # Database without tables
        conn = get_connection(tmp_path / "empty.db")
        try:
            assert read_timezone_setting(conn) is None
            assert CompanyTimezoneResolver(conn, default="Europe/Berlin").name == "Europe/Berlin"
        finally:
            conn.close()

    def test_closed_connection_falls_back(self, db_path):
        conn = get_connection(db_path)
        conn.close()
        assert read_timezone_setting(conn) is None


class TestEventStorage:
    def test_insert_and_fetch(self, db_conn, sample_event):
        sample_event["exceptions"] = ["2024-01-08"]
        event_id = insert_event(db_conn, sample_event)

        stored = fetch_event(db_conn, event_id)
        assert stored["id"] == event_id
        assert stored["start_instant"] == datetime(2024, 1, 2, 2, 0, tzinfo=UTC)
        assert stored["end_instant"] == datetime(2024, 1, 2, 5, 0, tzinfo=UTC)
        assert stored["recurrence_rule"] == "FREQ=WEEKLY;BYDAY=MO,FR"
        assert stored["exceptions"] == ["2024-01-08"]
        assert stored["is_all_day"] is False

    def test_missing_event(self, db_conn):
        assert fetch_event(db_conn, 404) is None

    def test_fetch_events_skips_inactive(self, db_conn, make_event):
        insert_event(db_conn, make_event(event_id=None, start="2024-01-05T10:00"))
        insert_event(db_conn, make_event(event_id=None, start="2024-01-04T10:00", is_active=False))
        assert len(fetch_events(db_conn)) == 1
        assert len(fetch_events(db_conn, active_only=False)) == 2

    def test_update_exceptions(self, db_conn, sample_event):
        event_id = insert_event(db_conn, sample_event)
        update_event_exceptions(db_conn, event_id, ["2024-01-08", "2024-01-12"])
        assert fetch_event(db_conn, event_id)["exceptions"] == ["2024-01-08", "2024-01-12"]

    def test_setting_upsert(self, db_conn):
        set_setting(db_conn, "color", "blue")
        set_setting(db_conn, "color", "green")
        assert get_setting(db_conn, "color") == "green"
        assert get_setting(db_conn, "missing") is None


class TestStaffingDays:
    def test_one_entry_per_day(self, sample_event, make_event, denver):
        monthly = make_event(event_id=2, start="2024-01-05T00:00", is_all_day=True, rule="FREQ=MONTHLY;BYMONTHDAY=5")
        days = staffing_days([sample_event, monthly], "2024-01-01", "2024-01-07", denver)

        assert [d["date"] for d in days] == [date(2024, 1, n) for n in range(1, 8)]
        assert days[0] == {"date": date(2024, 1, 1), "weekday": "Monday", "event_ids": [1]}
        assert days[1]["event_ids"] == []
        assert days[4]["event_ids"] == [1, 2]
        assert days[6]["weekday"] == "Sunday"

    def test_inactive_events_are_ignored(self, make_event, denver):
        event = make_event(start="2024-01-05T10:00", is_active=False)
        days = staffing_days([event], "2024-01-05", "2024-01-05", denver)
        assert days == [{"date": date(2024, 1, 5), "weekday": "Friday", "event_ids": []}]

    def test_invalid_window(self, sample_event, denver):
        assert staffing_days([sample_event], "2024-01-07", "2024-01-01", denver) == []
        assert staffing_days([sample_event], "soon", "2024-01-01", denver) == []

    def test_occurrence_dates(self, sample_event, denver):
        assert occurrence_dates(sample_event, "2024-01-01", "2024-01-07", denver) == [
            date(2024, 1, 1),
            date(2024, 1, 5),
        ]
