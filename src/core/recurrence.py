"""
Recurrence rules for repeating events.

Two patterns are modeled: weekly on a set of weekdays and monthly on a day of
the month. They are stored as a compact RRULE-style string::

    FREQ=WEEKLY;BYDAY=MO,FR
    FREQ=MONTHLY;BYMONTHDAY=15
    FREQ=WEEKLY;BYDAY=TU;UNTIL=20261231T235959Z

The empty string means "does not repeat". Invalid selections (weekly with no
days, monthly with no day) encode to the empty string instead of raising so a
half-filled form never stores a broken rule.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

UNTIL_SUFFIX = "T235959Z"


class Weekday(Enum):
    """Weekday keyed by its two-letter RRULE code."""

    MO = "Monday"
    TU = "Tuesday"
    WE = "Wednesday"
    TH = "Thursday"
    FR = "Friday"
    SA = "Saturday"
    SU = "Sunday"

    @property
    def code(self) -> str:
        return self.name

    @property
    def index(self) -> int:
        """Python weekday number (Monday == 0)."""
        return list(Weekday).index(self)

    @classmethod
    def for_date(cls, day: date) -> "Weekday":
        return list(cls)[day.weekday()]

    @classmethod
    def lookup(cls, value) -> "Weekday | None":
        """Resolve a code ('MO'), full name ('Monday') or abbreviation ('mon', 'Thurs')."""
        if isinstance(value, Weekday):
            return value
        if not isinstance(value, str):
            return None
        text = value.strip()
        if len(text) == 2:
            return cls.__members__.get(text.upper())
        lowered = text.lower()
        for day in cls:
            name = day.value.lower()
            if lowered == name or (len(lowered) >= 3 and name.startswith(lowered)):
                return day
        return None


class RecurrenceKind(Enum):
    NONE = "none"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @classmethod
    def coerce(cls, value) -> "RecurrenceKind":
        if isinstance(value, RecurrenceKind):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                return cls.NONE
        return cls.NONE


def _coerce_day_of_month(value) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        day = int(value)
    except (TypeError, ValueError):
        return None
    return day if 1 <= day <= 31 else None


def _coerce_until(value) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            return None
    return None


def _parse_until(value: str | None) -> date | None:
    """Accept ``20261231`` and ``20261231T235959Z``."""
    if not value:
        return None
    digits = value.strip().split("T", 1)[0]
    if len(digits) != 8 or not digits.isdigit():
        return None
    try:
        return date(int(digits[:4]), int(digits[4:6]), int(digits[6:8]))
    except ValueError:
        return None


def _split_rule(rule: str) -> dict[str, str]:
    text = rule.strip()
    if text.upper().startswith("RRULE:"):
        text = text[len("RRULE:"):]
    parts: dict[str, str] = {}
    for chunk in text.split(";"):
        if "=" not in chunk:
            continue
        key, value = chunk.split("=", 1)
        parts[key.strip().upper()] = value.strip()
    return parts


# =============================================================================
# RULE TYPE
# =============================================================================


@dataclass(frozen=True)
class RecurrenceRule:
    """Parsed recurrence: none, weekly on ``days`` or monthly on ``day_of_month``."""

    kind: RecurrenceKind = RecurrenceKind.NONE
    days: tuple[Weekday, ...] = field(default_factory=tuple)
    day_of_month: int | None = None
    until: date | None = None

    @classmethod
    def none(cls) -> "RecurrenceRule":
        return cls()

    @classmethod
    def weekly(cls, days, until: date | None = None) -> "RecurrenceRule":
        resolved = tuple(d for d in (Weekday.lookup(v) for v in days) if d is not None)
        return cls(RecurrenceKind.WEEKLY, resolved, None, until)

    @classmethod
    def monthly(cls, day_of_month: int | None, until: date | None = None) -> "RecurrenceRule":
        return cls(RecurrenceKind.MONTHLY, (), _coerce_day_of_month(day_of_month), until)

    @classmethod
    def parse(cls, rule: str | None) -> "RecurrenceRule":
        return from_rule(rule)

    @classmethod
    def from_selection(cls, selection: dict | None) -> "RecurrenceRule":
        """
        Build a rule from the event form's recurrence controls.

        ``selection`` looks like ``{"frequency": "weekly", "days": ["Monday"],
        "monthDay": 15, "until": "2026-12-31"}``.
        """
        if not selection:
            return cls.none()
        return from_rule(
            to_rule(
                selection.get("frequency"),
                selection.get("days") or (),
                selection.get("monthDay", selection.get("month_day")),
                selection.get("until"),
            )
        )

    @property
    def is_active(self) -> bool:
        """True when the rule actually produces a repeating pattern."""
        if self.kind is RecurrenceKind.WEEKLY:
            return bool(self.days)
        if self.kind is RecurrenceKind.MONTHLY:
            return self.day_of_month is not None
        return False

    @property
    def day_set(self) -> frozenset[Weekday]:
        return frozenset(self.days)

    def to_string(self) -> str:
        return to_rule(self.kind, self.days, self.day_of_month, self.until)

    def to_selection(self) -> dict:
        return {
            "frequency": self.kind.value,
            "days": [day.value for day in self.days],
            "monthDay": self.day_of_month,
            "until": self.until.isoformat() if self.until else None,
        }


# =============================================================================
# STRING CONVERSION
# =============================================================================


def to_rule(kind, days=(), day_of_month=None, until=None) -> str:
    """
    Encode a recurrence selection as a rule string.

    Day codes are written in the order given. Unknown day names are dropped;
    weekly with no usable days, monthly without a day in 1..31, and any other
    kind all encode to ``""``.
    """
    kind = RecurrenceKind.coerce(kind)

    if kind is RecurrenceKind.WEEKLY:
        codes = [d.code for d in (Weekday.lookup(v) for v in days or ()) if d is not None]
        if not codes:
            return ""
        rule = f"FREQ=WEEKLY;BYDAY={','.join(codes)}"
    elif kind is RecurrenceKind.MONTHLY:
        month_day = _coerce_day_of_month(day_of_month)
        if month_day is None:
            return ""
        rule = f"FREQ=MONTHLY;BYMONTHDAY={month_day}"
    else:
        return ""

    end = _coerce_until(until)
    if end is not None:
        # End of day so the last date is included
        rule += f";UNTIL={end.strftime('%Y%m%d')}{UNTIL_SUFFIX}"
    return rule


def from_rule(rule: str | None) -> RecurrenceRule:
    """
    Parse a rule string. Never raises.

    Missing or unknown ``FREQ`` gives the "none" rule. Unknown ``BYDAY``
    codes are skipped and duplicates are kept. A monthly rule without a valid
    ``BYMONTHDAY`` parses with ``day_of_month=None`` (monthly, unconfigured).
    """
    if not rule or not isinstance(rule, str):
        return RecurrenceRule.none()

    parts = _split_rule(rule)
    freq = parts.get("FREQ", "").upper()
    until = _parse_until(parts.get("UNTIL"))

    if freq == "WEEKLY":
        tokens = [t.strip().upper() for t in parts.get("BYDAY", "").split(",") if t.strip()]
        days = tuple(Weekday[t] for t in tokens if t in Weekday.__members__)
        return RecurrenceRule(RecurrenceKind.WEEKLY, days, None, until)

    if freq == "MONTHLY":
        return RecurrenceRule(
            RecurrenceKind.MONTHLY, (), _coerce_day_of_month(parts.get("BYMONTHDAY")), until
        )

    return RecurrenceRule.none()
