"""Pydantic request models for API endpoints."""

from pydantic import BaseModel, Field


class RecurrenceSelection(BaseModel):
    """Recurrence controls as sent by the event form."""

    frequency: str = "none"  # "none" | "weekly" | "monthly"
    days: list[str] = []
    monthDay: int | None = None
    until: str | None = None  # YYYY-MM-DD


class EventCreateRequest(BaseModel):
    """
    New event from the event form.

    ``start``/``end`` are ``YYYY-MM-DDTHH:mm`` (or ``YYYY-MM-DD`` for
    all-day events) read in the company timezone; ISO strings with an
    offset are also accepted. ``recurrence_rule`` may be sent instead of
    ``recurrence``.
    """

    title: str
    start: str
    end: str | None = None
    is_all_day: bool = False
    recurrence: RecurrenceSelection | None = None
    recurrence_rule: str | None = None
    exceptions: list[str] = Field(default_factory=list)
    is_active: bool = True


class ExceptionRequest(BaseModel):
    date: str  # YYYY-MM-DD


class TimezoneUpdateRequest(BaseModel):
    timezone: str
