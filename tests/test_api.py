"""Tests for the HTTP API."""

import pytest
from fastapi.testclient import TestClient

from api import dependencies
from api.main import app
from core import config
from core.database import get_connection

API_KEY = "test-key"
HEADERS = {"X-API-Key": API_KEY}

WEEKLY_TRIVIA = {
    "title": "Trivia",
    "start": "2024-01-01T19:00",
    "end": "2024-01-01T22:00",
    "recurrence": {"frequency": "weekly", "days": ["Monday"]},
}


@pytest.fixture
def client(db_path, monkeypatch):
    monkeypatch.setattr(dependencies, "CALENDAR_API_KEY", API_KEY)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def trivia_id(client):
    response = client.post("/v1/events", json=WEEKLY_TRIVIA, headers=HEADERS)
    assert response.status_code == 201
    return response.json()["id"]


class TestHealth:
    def test_healthy(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["timezone"] == "America/Denver"
        assert body["database_available"] is True

    def test_missing_database(self, tmp_path, monkeypatch):
        monkeypatch.setattr(config, "DB_PATH", tmp_path / "missing.db")
        response = TestClient(app).get("/health")
        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"

    def test_invalid_stored_timezone(self, client, db_conn):
        db_conn.execute("UPDATE settings SET value = 'Nowhere/Special' WHERE key = 'timezone'")
        db_conn.commit()
        response = client.get("/health")
        assert response.status_code == 503
        assert "Nowhere/Special" in response.json()["error"]


class TestAuth:
    def test_missing_key(self, client):
        response = client.post("/v1/events", json=WEEKLY_TRIVIA)
        assert response.status_code == 422

    def test_wrong_key(self, client):
        response = client.post("/v1/events", json=WEEKLY_TRIVIA, headers={"X-API-Key": "nope"})
        assert response.status_code == 401
        assert response.json()["detail"]["code"] == "UNAUTHORIZED"

    def test_key_not_configured(self, client, monkeypatch):
        monkeypatch.setattr(dependencies, "CALENDAR_API_KEY", "")
        response = client.post("/v1/events", json=WEEKLY_TRIVIA, headers=HEADERS)
        assert response.status_code == 500


class TestEvents:
    def test_create_weekly_event(self, client):
        response = client.post("/v1/events", json=WEEKLY_TRIVIA, headers=HEADERS)
        assert response.status_code == 201
        body = response.json()
        assert body["start_instant"] == "2024-01-02T02:00:00+00:00"
        assert body["start_local"] == "2024-01-01T19:00"
        assert body["end_local"] == "2024-01-01T22:00"
        assert body["recurrence_rule"] == "FREQ=WEEKLY;BYDAY=MO"
        assert body["recurrence"] == {"frequency": "weekly", "days": ["Monday"], "monthDay": None, "until": None}

    def test_create_all_day_event(self, client):
        response = client.post(
            "/v1/events",
            json={"title": "Holiday", "start": "2024-07-04", "end": "2024-07-04", "is_all_day": True},
            headers=HEADERS,
        )
        assert response.status_code == 201
        body = response.json()
        assert body["start_local"] == "2024-07-04"
        assert body["end_local"] == "2024-07-04"
        assert body["recurrence"]["frequency"] == "none"

    def test_create_with_rule_string(self, client):
        response = client.post(
            "/v1/events",
            json={"title": "Rent", "start": "2024-01-15T09:00", "recurrence_rule": "freq=monthly;bymonthday=15"},
            headers=HEADERS,
        )
        assert response.status_code == 201
        assert response.json()["recurrence_rule"] == "FREQ=MONTHLY;BYMONTHDAY=15"

    def test_validation_error(self, client):
        response = client.post(
            "/v1/events",
            json={"title": "X", "start": "2024-01-05T10:00", "end": "2024-01-05T09:00"},
            headers=HEADERS,
        )
        assert response.status_code == 422
        detail = response.json()["detail"]
        assert detail["code"] == "VALIDATION_ERROR"
        assert detail["details"] == ["End date & time must be after start date & time"]

    def test_get_event(self, client, trivia_id):
        response = client.get(f"/v1/events/{trivia_id}")
        assert response.status_code == 200
        assert response.json()["title"] == "Trivia"

    def test_get_missing_event(self, client):
        response = client.get("/v1/events/999")
        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "NOT_FOUND"

    def test_local_times_follow_timezone_setting(self, client, trivia_id):
        response = client.put("/v1/settings/timezone", json={"timezone": "Europe/Berlin"}, headers=HEADERS)
        assert response.status_code == 200

        body = client.get(f"/v1/events/{trivia_id}").json()
        assert body["start_local"] == "2024-01-02T03:00"


class TestOccurrences:
    def test_weekly_occurrences(self, client, trivia_id):
        response = client.get(f"/v1/events/{trivia_id}/occurrences", params={"start": "2024-01-01", "end": "2024-01-31"})
        assert response.status_code == 200
        body = response.json()
        assert body["timezone"] == "America/Denver"
        assert [o["occurrence_date"] for o in body["occurrences"]] == [
            "2024-01-01",
            "2024-01-08",
            "2024-01-15",
            "2024-01-22",
            "2024-01-29",
        ]
        assert body["occurrences"][0]["display_start"] == "2024-01-01T19:00"
        assert body["occurrences"][0]["start_instant"] == "2024-01-02T02:00:00+00:00"

    def test_exception_removes_occurrence(self, client, trivia_id):
        response = client.post(f"/v1/events/{trivia_id}/exception", json={"date": "2024-01-08"}, headers=HEADERS)
        assert response.status_code == 200
        assert response.json()["exceptions"] == ["2024-01-08"]

        body = client.get(
            f"/v1/events/{trivia_id}/occurrences", params={"start": "2024-01-01", "end": "2024-01-31"}
        ).json()
        assert "2024-01-08" not in [o["occurrence_date"] for o in body["occurrences"]]
        assert len(body["occurrences"]) == 4

    def test_exception_on_one_off_event(self, client):
        event_id = client.post(
            "/v1/events", json={"title": "Once", "start": "2024-01-05T10:00"}, headers=HEADERS
        ).json()["id"]
        response = client.post(f"/v1/events/{event_id}/exception", json={"date": "2024-01-05"}, headers=HEADERS)
        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "Event is not recurring"

    def test_exception_with_bad_date(self, client, trivia_id):
        response = client.post(f"/v1/events/{trivia_id}/exception", json={"date": "next week"}, headers=HEADERS)
        assert response.status_code == 400

    def test_exception_on_missing_event(self, client):
        response = client.post("/v1/events/999/exception", json={"date": "2024-01-08"}, headers=HEADERS)
        assert response.status_code == 404

    def test_malformed_window(self, client, trivia_id):
        response = client.get(f"/v1/events/{trivia_id}/occurrences", params={"start": "January", "end": "2024-01-31"})
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "INVALID_REQUEST"

    def test_window_too_large(self, client, trivia_id):
        response = client.get(f"/v1/events/{trivia_id}/occurrences", params={"start": "2024-01-01", "end": "2027-01-01"})
        assert response.status_code == 400

    def test_inverted_window_is_empty(self, client, trivia_id):
        response = client.get(f"/v1/events/{trivia_id}/occurrences", params={"start": "2024-01-31", "end": "2024-01-01"})
        assert response.status_code == 200
        assert response.json()["occurrences"] == []

    def test_calendar(self, client, trivia_id):
        client.post(
            "/v1/events",
            json={"title": "Holiday", "start": "2024-01-01", "end": "2024-01-01", "is_all_day": True},
            headers=HEADERS,
        )
        body = client.get("/v1/calendar", params={"start": "2024-01-01", "end": "2024-01-07"}).json()
        first, second = body["occurrences"]
        assert first["is_all_day"] is True
        assert first["display_start"] == "2024-01-01"
        assert second["event_id"] == trivia_id


class TestTimezoneSetting:
    def test_get(self, client):
        assert client.get("/v1/settings/timezone").json() == {"timezone": "America/Denver"}

    def test_update(self, client):
        response = client.put("/v1/settings/timezone", json={"timezone": "Europe/Berlin"}, headers=HEADERS)
        assert response.json() == {"timezone": "Europe/Berlin"}
        assert client.get("/v1/settings/timezone").json() == {"timezone": "Europe/Berlin"}

    def test_invalid_timezone_is_rejected(self, client):
        response = client.put("/v1/settings/timezone", json={"timezone": "Mars/Base"}, headers=HEADERS)
        assert response.status_code == 422
        assert client.get("/v1/settings/timezone").json() == {"timezone": "America/Denver"}

    def test_invalid_stored_timezone_is_configuration_error(self, client, db_conn):
        db_conn.execute("UPDATE settings SET value = 'Nowhere/Special' WHERE key = 'timezone'")
        db_conn.commit()
        response = client.get("/v1/settings/timezone")
        assert response.status_code == 500
        assert response.json()["detail"]["code"] == "CONFIGURATION_ERROR"


class TestRequestLogging:
    def test_requests_are_logged(self, client, trivia_id, db_path):
        client.get(f"/v1/events/{trivia_id}/occurrences", params={"start": "2024-01-01", "end": "2024-01-31"})
        client.get(f"/v1/events/{trivia_id}/occurrences", params={"start": "bad", "end": "2024-01-31"})

        conn = get_connection(db_path)
        try:
            rows = conn.execute(
                "SELECT endpoint, status_code, error_code, occurrences_returned FROM api_requests ORDER BY id"
            ).fetchall()
        finally:
            conn.close()

        assert [tuple(row) for row in rows] == [
            ("/v1/events", 201, None, None),
            (f"/v1/events/{trivia_id}/occurrences", 200, None, 5),
            (f"/v1/events/{trivia_id}/occurrences", 400, "INVALID_REQUEST", None),
        ]
