"""Pydantic response models for API endpoints."""

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Health check response."""

    status: str  # "healthy" or "unhealthy"
    version: str
    database_available: bool
    timezone: str | None = None
    timestamp: str  # ISO 8601 UTC
    error: str | None = None


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str
    code: str
    details: list[str] = []


class TimezoneResponse(BaseModel):
    timezone: str


class RecurrenceResponse(BaseModel):
    frequency: str  # "none" | "weekly" | "monthly"
    days: list[str] = []
    monthDay: int | None = None
    until: str | None = None  # YYYY-MM-DD


class EventResponse(BaseModel):
    """Stored event with its start/end shown in the company timezone."""

    id: int
    title: str
    start_instant: str  # ISO 8601 UTC
    end_instant: str | None = None
    start_local: str  # YYYY-MM-DDTHH:mm or YYYY-MM-DD for all-day
    end_local: str | None = None
    is_all_day: bool
    recurrence_rule: str
    recurrence: RecurrenceResponse
    exceptions: list[str] = []
    is_active: bool


class OccurrenceResponse(BaseModel):
    event_id: int | None
    occurrence_date: str  # YYYY-MM-DD
    display_start: str  # YYYY-MM-DD (all-day) or YYYY-MM-DDTHH:mm
    display_end: str | None = None
    start_instant: str
    end_instant: str | None = None
    is_all_day: bool


class OccurrencesResponse(BaseModel):
    timezone: str
    start: str
    end: str
    occurrences: list[OccurrenceResponse]


class ErrorCodes:
    """Error code constants."""

    INVALID_REQUEST = "INVALID_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    NOT_FOUND = "NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"
