"""
Wire formats for dates entered through forms and read back from storage.

Date-only fields use ``YYYY-MM-DD``; date-time fields use the
``datetime-local`` shape ``YYYY-MM-DDTHH:mm``. Both are civil values in the
company timezone. Anything carrying its own offset (ISO strings with ``Z`` or
``+hh:mm``, aware datetimes, epoch milliseconds) is an instant and is first
rendered in the company timezone before its date is taken.

Nothing in this module raises on malformed input: unparseable values decode
to ``None`` and encode to ``""``.
"""

import re
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from dateutil.parser import isoparse

from core.timezone import (
    UTC,
    civil_datetime_to_instant,
    civil_midnight_to_instant,
    instant_to_civil_date,
    instant_to_civil_datetime,
    to_instant,
)

DATE_FORMAT = "%Y-%m-%d"
DATETIME_LOCAL_FORMAT = "%Y-%m-%dT%H:%M"

DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
DATETIME_LOCAL_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2})$")
EMBEDDED_DATE_RE = re.compile(r"(\d{4}-\d{2}-\d{2})")
# Full calendar date (extended or basic form) at the start of an ISO string
ISO_FULL_DATE_RE = re.compile(r"^\d{4}(?:-\d{2}-\d{2}|\d{4})(?:$|[T ])")
TIME_RE = re.compile(r"^(\d{2}):(\d{2})")


# =============================================================================
# PARSING HELPERS
# =============================================================================


def parse_date_string(value: str) -> date | None:
    """Parse an exact ``YYYY-MM-DD`` string (no zone math)."""
    match = DATE_RE.match(value.strip())
    if not match:
        return None
    try:
        return date(*(int(part) for part in match.groups()))
    except ValueError:
        return None


def parse_datetime_local(value: str) -> datetime | None:
    """Parse an exact ``YYYY-MM-DDTHH:mm`` string into a naive datetime."""
    match = DATETIME_LOCAL_RE.match(value.strip())
    if not match:
        return None
    try:
        return datetime(*(int(part) for part in match.groups()))
    except ValueError:
        return None


def _parse_iso(value: str) -> datetime | None:
    # Reduced-precision forms ("2024", "2024-05", "2024-W10") name no single day
    if not ISO_FULL_DATE_RE.match(value):
        return None
    try:
        return isoparse(value)
    except (ValueError, OverflowError):
        return None


def _extract_embedded_date(value: str) -> date | None:
    match = EMBEDDED_DATE_RE.search(value)
    if not match:
        return None
    return parse_date_string(match.group(1))


def instant_from_epoch_ms(ms: int) -> datetime:
    return datetime.fromtimestamp(ms / 1000, tz=UTC)


def instant_to_epoch_ms(instant: datetime) -> int:
    return int(to_instant(instant).timestamp() * 1000)


# =============================================================================
# DECODE
# =============================================================================


def decode(value, zone: ZoneInfo | str) -> date | None:
    """
    Decode any date-like value into a civil date in ``zone``.

    Accepts ``YYYY-MM-DD`` strings (taken as-is), ``datetime-local``
    strings (date part taken as-is), ISO strings with an offset, aware or
    naive-UTC datetimes, plain dates and epoch milliseconds. An instant is
    never truncated to its UTC calendar date.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return instant_to_civil_date(value, zone)
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float)):
        try:
            return instant_to_civil_date(instant_from_epoch_ms(value), zone)
        except (OverflowError, OSError, ValueError):
            return None
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    if DATE_RE.match(text):
        return parse_date_string(text)

    parsed = _parse_iso(text)
    if parsed is None:
        return _extract_embedded_date(text)
    if parsed.tzinfo is None:
        # Wall-clock value without an offset is already company-local
        return parsed.date()
    return instant_to_civil_date(parsed, zone)


def decode_datetime(value, zone: ZoneInfo | str) -> datetime | None:
    """
    Decode a date-time value into a civil datetime (to the minute) in ``zone``.

    Date-only input decodes to midnight.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return instant_to_civil_datetime(value, zone)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, (int, float)):
        try:
            return instant_to_civil_datetime(instant_from_epoch_ms(value), zone)
        except (OverflowError, OSError, ValueError):
            return None
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    local = parse_datetime_local(text)
    if local is not None:
        return local
    day = parse_date_string(text)
    if day is not None:
        return datetime(day.year, day.month, day.day)

    parsed = _parse_iso(text)
    if parsed is None:
        day = _extract_embedded_date(text)
        return datetime(day.year, day.month, day.day) if day else None
    if parsed.tzinfo is None:
        return parsed.replace(second=0, microsecond=0)
    return instant_to_civil_datetime(parsed, zone)


def decode_instant(value, zone: ZoneInfo | str) -> datetime | None:
    """
    Decode form or storage input into a UTC instant.

    Values with an explicit offset keep it; civil values (``datetime-local``,
    date-only, offset-less ISO) are read as wall-clock time in ``zone``.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return to_instant(value)
    if isinstance(value, (int, float)):
        try:
            return instant_from_epoch_ms(value)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        parsed = _parse_iso(value.strip()) if value.strip() else None
        if parsed is not None and parsed.tzinfo is not None:
            return to_instant(parsed)

    local = decode_datetime(value, zone)
    if local is None:
        return None
    return civil_datetime_to_instant(local, zone)


def decode_as_company_midnight(value, zone: ZoneInfo | str) -> datetime | None:
    """Decode any date-like value and return 00:00 of that day in ``zone``."""
    day = decode(value, zone)
    if day is None:
        return None
    return civil_midnight_to_instant(day, zone)


# =============================================================================
# ENCODE
# =============================================================================


def encode(value: date | None) -> str:
    """Serialize a civil date as ``YYYY-MM-DD``."""
    if value is None:
        return ""
    return value.strftime(DATE_FORMAT)


def encode_datetime(value: datetime | None) -> str:
    """Serialize a civil datetime as ``YYYY-MM-DDTHH:mm``."""
    if value is None:
        return ""
    return value.strftime(DATETIME_LOCAL_FORMAT)


def format_date_string(instant: datetime, zone: ZoneInfo | str) -> str:
    """``YYYY-MM-DD`` of ``instant`` in ``zone``."""
    return encode(instant_to_civil_date(instant, zone))


def format_datetime_local(instant: datetime, zone: ZoneInfo | str) -> str:
    """``YYYY-MM-DDTHH:mm`` of ``instant`` in ``zone`` for a datetime-local input."""
    return encode_datetime(instant_to_civil_datetime(instant, zone))


# =============================================================================
# FORM EDIT HELPERS
# =============================================================================


def extract_time(value: str | None) -> str:
    """Return the ``HH:mm`` part of a datetime-local string, or ``""``."""
    if not value or "T" not in value:
        return ""
    match = TIME_RE.match(value.split("T", 1)[1])
    return f"{match.group(1)}:{match.group(2)}" if match else ""


def combine_date_and_time(date_str: str | None, time_str: str | None) -> str:
    if not date_str or not time_str:
        return ""
    combined = f"{date_str.strip()}T{time_str.strip()}"
    return combined if parse_datetime_local(combined) else ""


def replace_date_part(original: str | None, new_date) -> str:
    """
    Change the date of a form value while keeping any time of day.

    ``replace_date_part("2024-01-05T18:30", "2024-01-09")`` gives
    ``"2024-01-09T18:30"``; a date-only original stays date-only.
    """
    day = parse_date_string(new_date) if isinstance(new_date, str) else new_date
    if not isinstance(day, date):
        return ""
    time_part = extract_time(original)
    if time_part:
        return f"{encode(day)}T{time_part}"
    return encode(day)


def add_hours_local(value: str | None, hours: int, zone: ZoneInfo | str) -> str:
    """
    Add elapsed hours to a datetime-local value read in ``zone``.

    Works on instants so a DST change inside the interval is respected.
    """
    start = decode_instant(value, zone) if value else None
    if start is None:
        return ""
    return format_datetime_local(start + timedelta(hours=hours), zone)
