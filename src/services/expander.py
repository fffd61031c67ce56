"""
Recurrence expansion.

Turns a stored recurrence rule into the concrete calendar dates it produces
inside a viewing window. Everything works on civil dates, so no timezone is
involved here: callers convert instants to company-local dates first.
"""

from datetime import date, datetime, time

from dateutil.rrule import FR, MO, MONTHLY, SA, SU, TH, TU, WE, WEEKLY, rrule

from core.date_codec import parse_date_string
from core.recurrence import RecurrenceKind, RecurrenceRule, Weekday, from_rule

RRULE_WEEKDAYS = {
    Weekday.MO: MO,
    Weekday.TU: TU,
    Weekday.WE: WE,
    Weekday.TH: TH,
    Weekday.FR: FR,
    Weekday.SA: SA,
    Weekday.SU: SU,
}


def _as_civil_date(value) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return parse_date_string(value)
    return None


def parse_exceptions(values) -> set[date]:
    """Exception dates as a set; unparseable entries are ignored."""
    if not values:
        return set()
    if isinstance(values, (str, date)):
        values = [values]
    parsed = (_as_civil_date(v) for v in values)
    return {d for d in parsed if d is not None}


def expand_occurrences(
    rule: RecurrenceRule | str | None,
    template_start: date,
    window_start: date | None,
    window_end: date | None,
    exceptions=(),
) -> list[date]:
    """
    Dates produced by ``rule`` between ``window_start`` and ``window_end``.

    Both ends are inclusive and nothing before ``template_start`` (or after
    the rule's end date) is produced. The template start itself is always
    included when it is in range, whether or not the rule selects it. A
    rule that does not repeat, or that is only half configured, yields just
    the template start if it is in the window. An open or inverted window
    yields ``[]``.

    Returns:
        Sorted, de-duplicated dates minus any exception dates.
    """
    template_start = _as_civil_date(template_start)
    window_start = _as_civil_date(window_start)
    window_end = _as_civil_date(window_end)
    if template_start is None or window_start is None or window_end is None:
        return []
    if window_end < window_start:
        return []

    if not isinstance(rule, RecurrenceRule):
        rule = from_rule(rule)

    if not rule.is_active:
        dates = [template_start] if window_start <= template_start <= window_end else []
    else:
        first = max(template_start, window_start)
        last = min(window_end, rule.until) if rule.until else window_end
        if last < first:
            return []

        dtstart = datetime.combine(first, time())
        until = datetime.combine(last, time())
        if rule.kind is RecurrenceKind.WEEKLY:
            weekdays = [RRULE_WEEKDAYS[d] for d in sorted(rule.day_set, key=lambda d: d.index)]
            recurrence = rrule(WEEKLY, byweekday=weekdays, dtstart=dtstart, until=until)
        else:
            # Months without this day are skipped, never clamped to month-end
            recurrence = rrule(MONTHLY, bymonthday=rule.day_of_month, dtstart=dtstart, until=until)
        dates = [occurrence.date() for occurrence in recurrence]
        # The event's own start date always shows, even off the rule's days
        if first == template_start:
            dates.append(template_start)

    skipped = parse_exceptions(exceptions)
    return sorted({d for d in dates if d not in skipped})
