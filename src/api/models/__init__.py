"""API Pydantic models."""

from .requests import (
    EventCreateRequest,
    ExceptionRequest,
    RecurrenceSelection,
    TimezoneUpdateRequest,
)
from .responses import (
    ErrorCodes,
    ErrorResponse,
    EventResponse,
    HealthResponse,
    OccurrenceResponse,
    OccurrencesResponse,
    RecurrenceResponse,
    TimezoneResponse,
)

__all__ = [
    "EventCreateRequest",
    "ExceptionRequest",
    "RecurrenceSelection",
    "TimezoneUpdateRequest",
    "HealthResponse",
    "ErrorResponse",
    "ErrorCodes",
    "EventResponse",
    "OccurrenceResponse",
    "OccurrencesResponse",
    "RecurrenceResponse",
    "TimezoneResponse",
]
