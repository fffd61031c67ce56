"""
Company timezone date math.

Converts between civil dates/times read in a named IANA zone and absolute
UTC instants. Nothing here consults the host process's local timezone, so
results are identical on a UTC production server and a developer laptop.

Civil values are plain ``date`` objects and naive ``datetime`` objects.
Instants are timezone-aware ``datetime`` objects in UTC; a naive
``datetime`` passed where an instant is expected is read as UTC.
"""

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

UTC = timezone.utc

WEEKDAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


class TimezoneConfigError(ValueError):
    """Raised when a timezone identifier cannot be resolved to a zone."""


# =============================================================================
# ZONES AND INSTANTS
# =============================================================================


def load_zone(name: str) -> ZoneInfo:
    """
    Load an IANA zone by identifier.

    Raises:
        TimezoneConfigError: if the identifier is empty or unknown
    """
    if not isinstance(name, str) or not name.strip():
        raise TimezoneConfigError(f"Invalid timezone identifier: {name!r}")
    try:
        return ZoneInfo(name.strip())
    except (ZoneInfoNotFoundError, ValueError, OSError) as e:
        raise TimezoneConfigError(f"Unknown timezone identifier: {name!r}") from e


def as_zone(zone: ZoneInfo | str) -> ZoneInfo:
    """Accept either a loaded zone or its identifier."""
    if isinstance(zone, ZoneInfo):
        return zone
    return load_zone(zone)


def to_instant(value: datetime) -> datetime:
    """Normalize a datetime to an aware UTC instant (naive values are UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


# =============================================================================
# CIVIL -> INSTANT
# =============================================================================


def candidate_offsets(day: date, zone: ZoneInfo | str) -> list[timedelta]:
    """
    UTC offsets the zone can have around ``day``, most positive first.

    Samples noon UTC on the surrounding days plus mid-winter and mid-summer
    of the same year. For a zone with daylight saving this yields exactly
    two values (e.g. -6h and -7h for America/Denver).
    """
    zone = as_zone(zone)
    samples = []
    for delta in (-1, 0, 1):
        try:
            samples.append(day + timedelta(days=delta))
        except OverflowError:
            continue
    samples.extend([date(day.year, 1, 1), date(day.year, 7, 1)])

    offsets = set()
    for sample in samples:
        noon = datetime(sample.year, sample.month, sample.day, 12, tzinfo=UTC)
        offsets.add(noon.astimezone(zone).utcoffset())
    return sorted(offsets, reverse=True)


def is_daylight_saving_active(day: date, zone: ZoneInfo | str) -> bool:
    """Whether daylight saving is in effect at noon UTC on ``day``."""
    zone = as_zone(zone)
    noon = datetime(day.year, day.month, day.day, 12, tzinfo=UTC).astimezone(zone)
    return bool(noon.dst())


def _reads_as(candidate: datetime, target: datetime, zone: ZoneInfo) -> bool:
    return candidate.astimezone(zone).replace(tzinfo=None) == target


def civil_datetime_to_instant(value: datetime, zone: ZoneInfo | str) -> datetime:
    """
    Return the UTC instant whose wall-clock reading in ``zone`` is ``value``.

    Each candidate offset is applied and the result is converted back to
    civil time; the first candidate that reads back exactly is returned.
    When none does (the wall-clock time falls in a spring-forward gap),
    ``is_daylight_saving_active`` picks the offset to try first, then the
    other offset is used.
    """
    zone = as_zone(zone)
    target = value.replace(second=0, microsecond=0, tzinfo=None)
    wall = target.replace(tzinfo=UTC)

    offsets = candidate_offsets(target.date(), zone)
    for offset in offsets:
        candidate = wall - offset
        if _reads_as(candidate, target, zone):
            return candidate

    # Daylight offset is the larger of the two
    preferred = offsets[0] if is_daylight_saving_active(target.date(), zone) else offsets[-1]
    fallback = wall - preferred
    if _reads_as(fallback, target, zone):
        return fallback

    others = [offset for offset in offsets if offset != preferred]
    if not others:
        return fallback
    return wall - others[0]


def civil_midnight_to_instant(day: date, zone: ZoneInfo | str) -> datetime:
    """UTC instant of 00:00 on ``day`` in ``zone``."""
    midnight = datetime.combine(date(day.year, day.month, day.day), time())
    return civil_datetime_to_instant(midnight, zone)


# =============================================================================
# INSTANT -> CIVIL
# =============================================================================


def instant_to_civil_date(instant: datetime, zone: ZoneInfo | str) -> date:
    """Calendar date of ``instant`` as seen in ``zone``."""
    return to_instant(instant).astimezone(as_zone(zone)).date()


def instant_to_civil_datetime(instant: datetime, zone: ZoneInfo | str) -> datetime:
    """Wall-clock reading (to the minute) of ``instant`` in ``zone``."""
    local = to_instant(instant).astimezone(as_zone(zone))
    return local.replace(tzinfo=None, second=0, microsecond=0)


# =============================================================================
# "NOW" IN THE COMPANY ZONE
# =============================================================================


def company_now(zone: ZoneInfo | str, now: datetime | None = None) -> datetime:
    """Current moment as an aware datetime in ``zone``."""
    instant = to_instant(now) if now is not None else datetime.now(UTC)
    return instant.astimezone(as_zone(zone))


def company_today(zone: ZoneInfo | str, now: datetime | None = None) -> date:
    """Today's date in ``zone``, whatever the host timezone is."""
    return company_now(zone, now).date()


def company_tomorrow(zone: ZoneInfo | str, now: datetime | None = None) -> date:
    return company_today(zone, now) + timedelta(days=1)


def company_weekday(zone: ZoneInfo | str, now: datetime | None = None) -> str:
    """Today's weekday name in ``zone`` (e.g. 'Monday')."""
    return WEEKDAY_NAMES[company_today(zone, now).weekday()]


def same_company_day(first: datetime, second: datetime, zone: ZoneInfo | str) -> bool:
    """True if both instants fall on the same calendar day in ``zone``."""
    zone = as_zone(zone)
    return instant_to_civil_date(first, zone) == instant_to_civil_date(second, zone)
