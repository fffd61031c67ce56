"""
Event form handling: turns form input into a stored event record.

Form widgets only ever send ``YYYY-MM-DD`` or ``YYYY-MM-DDTHH:mm`` strings
plus a recurrence selection. Conversion to UTC instants happens here, once,
using the company timezone resolved by the caller.
"""

from datetime import date, datetime, time
from zoneinfo import ZoneInfo

from core.config import ALL_DAY_END_TIME, DEFAULT_TIMED_EVENT_HOURS
from core.date_codec import (
    add_hours_local,
    decode,
    decode_instant,
    encode,
    parse_date_string,
)
from core.recurrence import RecurrenceKind, RecurrenceRule, Weekday, from_rule
from core.timezone import as_zone, civil_datetime_to_instant, civil_midnight_to_instant, instant_to_civil_date
from models.events import EventPattern, EventRecord


# =============================================================================
# FORM VALIDATION
# =============================================================================


def validate_event_times(start, end, is_all_day: bool, zone: ZoneInfo | str) -> str | None:
    """
    Check start/end ordering. Returns an error message or None.

    All-day events compare calendar dates (same day is fine). Timed events
    must end strictly after they start; ending after midnight is allowed.
    """
    if not start or not end:
        return None
    zone = as_zone(zone)

    if is_all_day:
        start_day = decode(start, zone)
        end_day = decode(end, zone)
        if start_day and end_day and end_day < start_day:
            return "End date must be on or after start date"
        return None

    start_instant = decode_instant(start, zone)
    end_instant = decode_instant(end, zone)
    if start_instant and end_instant and end_instant <= start_instant:
        return "End date & time must be after start date & time"
    return None


def suggest_end(start: str | None, zone: ZoneInfo | str) -> str:
    """Default end for a new timed event."""
    return add_hours_local(start, DEFAULT_TIMED_EVENT_HOURS, zone)


def all_day_end(start: str | None) -> str:
    """End value used when an event is switched to all-day."""
    if not start:
        return ""
    day = parse_date_string(start.split("T", 1)[0])
    return f"{encode(day)}T{ALL_DAY_END_TIME}" if day else ""


def default_weekly_days(start, zone: ZoneInfo | str) -> list[str]:
    """Weekday of the start date, pre-selected when weekly repeat is chosen."""
    day = decode(start, zone)
    return [Weekday.for_date(day).value] if day else []


# =============================================================================
# PATTERN METADATA
# =============================================================================


def extract_event_pattern(
    start_instant: datetime, rule: RecurrenceRule | str | None, zone: ZoneInfo | str
) -> EventPattern | None:
    """Summarize a recurring event's pattern; None for one-off events."""
    if not isinstance(rule, RecurrenceRule):
        rule = from_rule(rule)
    if not rule.is_active:
        return None

    if rule.kind is RecurrenceKind.WEEKLY:
        return EventPattern(
            frequency="weekly",
            day_of_week=instant_to_civil_date(start_instant, zone).weekday(),
            month_day=None,
            days=[day.value for day in rule.days],
        )
    return EventPattern(
        frequency="monthly",
        day_of_week=None,
        month_day=rule.day_of_month,
        days=[],
    )


# =============================================================================
# FORM -> RECORD
# =============================================================================


def _coerce_rule(recurrence) -> RecurrenceRule:
    if isinstance(recurrence, RecurrenceRule):
        return recurrence
    if isinstance(recurrence, dict):
        return RecurrenceRule.from_selection(recurrence)
    return from_rule(recurrence)


def build_event_record(
    title: str,
    start,
    end,
    is_all_day: bool,
    zone: ZoneInfo | str,
    recurrence=None,
    exceptions=None,
    is_active: bool = True,
) -> EventRecord:
    """
    Convert form values into a record ready to store.

    Raises:
        ValueError: if the title or start is missing or the times are out of order
    """
    zone = as_zone(zone)
    errors = []
    if not title or not title.strip():
        errors.append("Title is required")

    start_instant = None
    end_instant = None
    if is_all_day:
        start_day = decode(start, zone)
        if start_day is None:
            errors.append("Start date is required")
        else:
            start_instant = civil_midnight_to_instant(start_day, zone)
        end_day = decode(end, zone) if end else None
        if end and end_day is None:
            errors.append("End date is not a valid date")
        elif end_day is not None:
            hour, minute = (int(part) for part in ALL_DAY_END_TIME.split(":"))
            end_instant = civil_datetime_to_instant(datetime.combine(end_day, time(hour, minute)), zone)
    else:
        start_instant = decode_instant(start, zone)
        if start_instant is None:
            errors.append("Start date & time is required")
        if end:
            end_instant = decode_instant(end, zone)
            if end_instant is None:
                errors.append("End date & time is not valid")

    if start_instant is not None and end_instant is not None:
        message = validate_event_times(start_instant, end_instant, is_all_day, zone)
        if message:
            errors.append(message)

    if errors:
        raise ValueError("\n".join(errors))

    rule = _coerce_rule(recurrence)
    rule_string = rule.to_string()
    return EventRecord(
        id=None,
        title=title.strip(),
        start_instant=start_instant,
        end_instant=end_instant,
        is_all_day=bool(is_all_day),
        recurrence_rule=rule_string,
        exceptions=sorted(_normalize_exceptions(exceptions)),
        is_active=is_active,
        pattern=extract_event_pattern(start_instant, rule_string, zone),
    )


def _normalize_exceptions(values) -> set[str]:
    out = set()
    for value in values or ():
        day = value if isinstance(value, date) else parse_date_string(str(value))
        if day is not None:
            out.add(encode(day))
    return out


def add_exception(event: EventRecord, day) -> EventRecord:
    """
    Return a copy of ``event`` with ``day`` skipped.

    Raises:
        ValueError: if the event does not repeat or the date is not YYYY-MM-DD
    """
    if not from_rule(event.get("recurrence_rule")).is_active:
        raise ValueError("Event is not recurring")
    parsed = day if isinstance(day, date) else parse_date_string(str(day or ""))
    if parsed is None:
        raise ValueError("Date is required (YYYY-MM-DD)")

    exceptions = list(event.get("exceptions") or [])
    date_str = encode(parsed)
    if date_str not in exceptions:
        exceptions.append(date_str)
    return {**event, "exceptions": exceptions}
