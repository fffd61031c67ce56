"""
Data models for calendar events and their expanded occurrences.

Stored events are plain dictionaries typed with TypedDict, matching how rows
move between the database layer and the services. Occurrences are computed on
every read and never stored.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import TypedDict


class EventPattern(TypedDict):
    """Pattern columns stored next to a recurring event."""
    frequency: str
    day_of_week: int | None  # Monday == 0
    month_day: int | None
    days: list[str]


class EventRecord(TypedDict):
    """Stored event. Instants are aware UTC datetimes."""
    id: int | None
    title: str
    start_instant: datetime
    end_instant: datetime | None
    is_all_day: bool
    recurrence_rule: str
    exceptions: list[str]  # YYYY-MM-DD
    is_active: bool
    pattern: EventPattern | None


@dataclass(frozen=True)
class Occurrence:
    """
    One concrete appearance of an event on the calendar.

    For all-day events ``display_start``/``display_end`` are dates; for timed
    events they are naive company-local datetimes. ``start_instant`` and
    ``end_instant`` are the matching UTC instants.
    """

    event_id: int | None
    occurrence_date: date
    display_start: date | datetime
    display_end: date | datetime | None
    start_instant: datetime
    end_instant: datetime | None
    is_all_day: bool

    def sort_key(self) -> tuple:
        minutes = 0 if self.is_all_day else self.display_start.hour * 60 + self.display_start.minute
        return (self.occurrence_date, not self.is_all_day, minutes, self.event_id or 0)
