"""
SQLite database operations for settings and calendar events.

Instants are stored as UTC ISO-8601 strings, recurrence rules as their
canonical string and exceptions as a JSON list of YYYY-MM-DD dates.
"""

import json
import sqlite3
from datetime import datetime
from pathlib import Path

from core import config
from core.timezone import to_instant
from models.events import EventRecord


def get_connection(db_path: Path | None = None) -> sqlite3.Connection:
    """Get a database connection."""
    conn = sqlite3.connect(db_path or config.DB_PATH, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    return conn


def create_tables(conn: sqlite3.Connection) -> None:
    """Create all tables and indexes if they don't exist."""
    cursor = conn.cursor()

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS settings (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at TEXT DEFAULT CURRENT_TIMESTAMP
        )
    """)

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS events (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            title TEXT NOT NULL,
            start_instant TEXT NOT NULL,
            end_instant TEXT,
            is_all_day INTEGER NOT NULL DEFAULT 0,
            recurrence_rule TEXT NOT NULL DEFAULT '',
            exceptions TEXT NOT NULL DEFAULT '[]',
            is_active INTEGER NOT NULL DEFAULT 1,
            pattern TEXT,
            create_date TEXT DEFAULT CURRENT_TIMESTAMP
        )
    """)

    # API request logging
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS api_requests (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            request_id TEXT UNIQUE NOT NULL,
            timestamp TEXT NOT NULL,
            endpoint TEXT NOT NULL,
            method TEXT NOT NULL,
            client_ip TEXT,
            event_id INTEGER,
            window_start TEXT,
            window_end TEXT,
            status_code INTEGER NOT NULL,
            error_code TEXT,
            error_message TEXT,
            processing_time_ms INTEGER NOT NULL,
            occurrences_returned INTEGER
        )
    """)

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS api_request_details (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            request_id TEXT NOT NULL,
            detail_type TEXT NOT NULL CHECK(detail_type IN ('validation_error', 'warning')),
            message TEXT NOT NULL,
            FOREIGN KEY (request_id) REFERENCES api_requests(request_id)
        )
    """)

    cursor.execute("CREATE INDEX IF NOT EXISTS idx_events_start ON events(start_instant)")
    cursor.execute(
        "CREATE INDEX IF NOT EXISTS idx_api_requests_timestamp ON api_requests(timestamp)"
    )
    cursor.execute(
        "CREATE INDEX IF NOT EXISTS idx_api_request_details_request ON api_request_details(request_id)"
    )
    conn.commit()


# =============================================================================
# SETTINGS
# =============================================================================


def get_setting(conn: sqlite3.Connection, key: str) -> str | None:
    row = conn.execute("SELECT value FROM settings WHERE key = ?", (key,)).fetchone()
    return row[0] if row else None


def set_setting(conn: sqlite3.Connection, key: str, value: str) -> None:
    conn.execute(
        """
        INSERT INTO settings (key, value) VALUES (?, ?)
        ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = CURRENT_TIMESTAMP
        """,
        (key, value),
    )
    conn.commit()


# =============================================================================
# EVENTS
# =============================================================================


def _format_instant(value: datetime | None) -> str | None:
    return to_instant(value).isoformat() if value is not None else None


def _parse_instant(value: str | None) -> datetime | None:
    return to_instant(datetime.fromisoformat(value)) if value else None


def _row_to_event(row: sqlite3.Row) -> EventRecord:
    return EventRecord(
        id=row["id"],
        title=row["title"],
        start_instant=_parse_instant(row["start_instant"]),
        end_instant=_parse_instant(row["end_instant"]),
        is_all_day=bool(row["is_all_day"]),
        recurrence_rule=row["recurrence_rule"] or "",
        exceptions=json.loads(row["exceptions"] or "[]"),
        is_active=bool(row["is_active"]),
        pattern=json.loads(row["pattern"]) if row["pattern"] else None,
    )


def insert_event(conn: sqlite3.Connection, event: EventRecord) -> int:
    """Insert an event and return its id."""
    cursor = conn.cursor()
    cursor.execute(
        """
        INSERT INTO events (
            title, start_instant, end_instant, is_all_day,
            recurrence_rule, exceptions, is_active, pattern
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            event["title"],
            _format_instant(event["start_instant"]),
            _format_instant(event["end_instant"]),
            int(event["is_all_day"]),
            event["recurrence_rule"],
            json.dumps(event["exceptions"]),
            int(event["is_active"]),
            json.dumps(event["pattern"]) if event["pattern"] else None,
        ),
    )
    conn.commit()
    return cursor.lastrowid


def fetch_event(conn: sqlite3.Connection, event_id: int) -> EventRecord | None:
    row = conn.execute("SELECT * FROM events WHERE id = ?", (event_id,)).fetchone()
    return _row_to_event(row) if row else None


def fetch_events(conn: sqlite3.Connection, active_only: bool = True) -> list[EventRecord]:
    """All events ordered by start."""
    query = "SELECT * FROM events"
    if active_only:
        query += " WHERE is_active = 1"
    query += " ORDER BY start_instant, id"
    return [_row_to_event(row) for row in conn.execute(query).fetchall()]


def update_event_exceptions(conn: sqlite3.Connection, event_id: int, exceptions: list[str]) -> None:
    conn.execute(
        "UPDATE events SET exceptions = ? WHERE id = ?",
        (json.dumps(exceptions), event_id),
    )
    conn.commit()
