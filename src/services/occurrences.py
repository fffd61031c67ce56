"""
Occurrences of stored events inside a viewing window.

This is what calendar rendering and staffing call. Expansion is recomputed
from the stored rule on every call, so edits to the rule or the exception
list show up on the next read.
"""

from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from core.date_codec import decode
from core.recurrence import from_rule
from core.timezone import (
    as_zone,
    civil_datetime_to_instant,
    civil_midnight_to_instant,
    instant_to_civil_datetime,
)
from models.events import EventRecord, Occurrence
from services.expander import expand_occurrences


def event_occurrences(
    event: EventRecord,
    window_start,
    window_end,
    zone: ZoneInfo | str,
) -> list[Occurrence]:
    """
    Expand one event into occurrences between two dates (inclusive).

    Window bounds may be dates, ``YYYY-MM-DD`` strings or instants; they are
    read in ``zone``. Timed occurrences keep the template's wall-clock start
    and end time on every date, so an event at 18:00 stays at 18:00 across
    daylight saving changes.
    """
    zone = as_zone(zone)
    start_day = decode(window_start, zone)
    end_day = decode(window_end, zone)
    if start_day is None or end_day is None:
        return []

    template_start = instant_to_civil_datetime(event["start_instant"], zone)
    template_end = None
    if event.get("end_instant") is not None:
        template_end = instant_to_civil_datetime(event["end_instant"], zone)

    dates = expand_occurrences(
        from_rule(event.get("recurrence_rule")),
        template_start.date(),
        start_day,
        end_day,
        event.get("exceptions") or (),
    )

    is_all_day = bool(event.get("is_all_day"))
    end_offset = None
    if template_end is not None:
        end_offset = template_end.date() - template_start.date()

    return [
        _build_occurrence(event.get("id"), day, template_start, template_end, end_offset, is_all_day, zone)
        for day in dates
    ]


def _build_occurrence(
    event_id: int | None,
    day: date,
    template_start: datetime,
    template_end: datetime | None,
    end_offset: timedelta | None,
    is_all_day: bool,
    zone: ZoneInfo,
) -> Occurrence:
    if is_all_day:
        end_day = day + end_offset if end_offset is not None else day
        return Occurrence(
            event_id=event_id,
            occurrence_date=day,
            display_start=day,
            display_end=end_day,
            start_instant=civil_midnight_to_instant(day, zone),
            end_instant=civil_midnight_to_instant(end_day, zone),
            is_all_day=True,
        )

    display_start = datetime.combine(day, template_start.time())
    display_end = None
    end_instant = None
    if template_end is not None:
        display_end = datetime.combine(day + end_offset, template_end.time())
        end_instant = civil_datetime_to_instant(display_end, zone)
    return Occurrence(
        event_id=event_id,
        occurrence_date=day,
        display_start=display_start,
        display_end=display_end,
        start_instant=civil_datetime_to_instant(display_start, zone),
        end_instant=end_instant,
        is_all_day=False,
    )


def calendar_occurrences(
    events: list[EventRecord],
    window_start,
    window_end,
    zone: ZoneInfo | str,
) -> list[Occurrence]:
    """All occurrences of active events, ordered by date, all-day first, then start time."""
    zone = as_zone(zone)
    occurrences: list[Occurrence] = []
    for event in events:
        if not event.get("is_active", True):
            continue
        occurrences.extend(event_occurrences(event, window_start, window_end, zone))
    return sorted(occurrences, key=Occurrence.sort_key)
