"""
Calendar days for staffing auto-generation.

Staffing only needs to know which events fall on which company-local day so
shift requirements can be lined up with the calendar.
"""

from datetime import timedelta
from zoneinfo import ZoneInfo

from core.date_codec import decode
from core.timezone import WEEKDAY_NAMES, as_zone
from models.events import EventRecord
from services.occurrences import event_occurrences


def occurrence_dates(event: EventRecord, start, end, zone: ZoneInfo | str) -> list:
    """Dates the event occurs on between ``start`` and ``end``."""
    return [o.occurrence_date for o in event_occurrences(event, start, end, zone)]


def staffing_days(events: list[EventRecord], start, end, zone: ZoneInfo | str) -> list[dict]:
    """
    One entry per day in the window: ``{date, weekday, event_ids}``.

    Days with no events are included so callers can apply weekly templates.
    An invalid or inverted window gives ``[]``.
    """
    zone = as_zone(zone)
    start_day = decode(start, zone)
    end_day = decode(end, zone)
    if start_day is None or end_day is None or end_day < start_day:
        return []

    by_date: dict = {}
    for event in events:
        if not event.get("is_active", True):
            continue
        for day in occurrence_dates(event, start_day, end_day, zone):
            by_date.setdefault(day, []).append(event.get("id"))

    days = []
    current = start_day
    while current <= end_day:
        days.append(
            {
                "date": current,
                "weekday": WEEKDAY_NAMES[current.weekday()],
                "event_ids": sorted(by_date.get(current, []), key=lambda i: (i is None, i or 0)),
            }
        )
        current += timedelta(days=1)
    return days
