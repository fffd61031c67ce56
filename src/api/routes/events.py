"""Event and occurrence endpoints."""

import sqlite3
import time
from datetime import date
from typing import Annotated
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from api.dependencies import get_company_zone, get_db, verify_api_key
from api.logging import RequestLog, log_request
from api.models.requests import EventCreateRequest, ExceptionRequest
from api.models.responses import (
    ErrorCodes,
    EventResponse,
    OccurrenceResponse,
    OccurrencesResponse,
    RecurrenceResponse,
)
from core.config import MAX_EXPANSION_DAYS
from core.database import fetch_event, fetch_events, insert_event, update_event_exceptions
from core.date_codec import encode, encode_datetime, format_date_string, format_datetime_local, parse_date_string
from core.recurrence import from_rule
from models.events import EventRecord, Occurrence
from services.events import add_exception, build_event_record
from services.occurrences import calendar_occurrences, event_occurrences

router = APIRouter(prefix="/v1")


def get_client_ip(request: Request) -> str:
    """Extract client IP from request, handling proxies."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def parse_window(start: str, end: str) -> tuple[date, date]:
    """Parse a YYYY-MM-DD query window."""
    start_day = parse_date_string(start)
    end_day = parse_date_string(end)
    if start_day is None or end_day is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "Invalid date range",
                "code": ErrorCodes.INVALID_REQUEST,
                "details": ["Expected format: YYYY-MM-DD"],
            },
        )
    if (end_day - start_day).days > MAX_EXPANSION_DAYS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "Date range too large",
                "code": ErrorCodes.INVALID_REQUEST,
                "details": [f"Maximum range is {MAX_EXPANSION_DAYS} days"],
            },
        )
    return start_day, end_day


def load_event(conn: sqlite3.Connection, event_id: int) -> EventRecord:
    event = fetch_event(conn, event_id)
    if event is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "error": "Event not found",
                "code": ErrorCodes.NOT_FOUND,
                "details": [f"Event id: {event_id}"],
            },
        )
    return event


def event_response(event: EventRecord, zone: ZoneInfo) -> EventResponse:
    if event["is_all_day"]:
        start_local = format_date_string(event["start_instant"], zone)
        end_local = format_date_string(event["end_instant"], zone) if event["end_instant"] else None
    else:
        start_local = format_datetime_local(event["start_instant"], zone)
        end_local = format_datetime_local(event["end_instant"], zone) if event["end_instant"] else None

    return EventResponse(
        id=event["id"],
        title=event["title"],
        start_instant=event["start_instant"].isoformat(),
        end_instant=event["end_instant"].isoformat() if event["end_instant"] else None,
        start_local=start_local,
        end_local=end_local,
        is_all_day=event["is_all_day"],
        recurrence_rule=event["recurrence_rule"],
        recurrence=RecurrenceResponse(**from_rule(event["recurrence_rule"]).to_selection()),
        exceptions=event["exceptions"],
        is_active=event["is_active"],
    )


def occurrence_response(occurrence: Occurrence) -> OccurrenceResponse:
    if occurrence.is_all_day:
        display_start = encode(occurrence.display_start)
        display_end = encode(occurrence.display_end)
    else:
        display_start = encode_datetime(occurrence.display_start)
        display_end = encode_datetime(occurrence.display_end) or None

    return OccurrenceResponse(
        event_id=occurrence.event_id,
        occurrence_date=encode(occurrence.occurrence_date),
        display_start=display_start,
        display_end=display_end,
        start_instant=occurrence.start_instant.isoformat(),
        end_instant=occurrence.end_instant.isoformat() if occurrence.end_instant else None,
        is_all_day=occurrence.is_all_day,
    )


def _record_http_error(request_log: RequestLog, e: HTTPException) -> None:
    request_log.status_code = e.status_code
    if isinstance(e.detail, dict):
        request_log.error_code = e.detail.get("code")
        request_log.error_message = e.detail.get("error")
        for detail in e.detail.get("details", []):
            request_log.details.append(("validation_error", detail))
    else:
        request_log.error_message = str(e.detail)


def _write_log(request_log: RequestLog, start_time: float) -> None:
    request_log.processing_time_ms = int((time.time() - start_time) * 1000)
    try:
        log_request(request_log)
    except Exception:
        # Don't fail the request if logging fails
        pass


@router.post("/events", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    request: Request,
    body: EventCreateRequest,
    conn: sqlite3.Connection = Depends(get_db),
    zone: ZoneInfo = Depends(get_company_zone),
    _api_key: str = Depends(verify_api_key),
):
    """
    Create an event from form input.

    Local date/time strings are converted to UTC instants in the company
    timezone; the recurrence selection is stored as its rule string.
    """
    start_time = time.time()
    request_log = RequestLog(
        endpoint="/v1/events",
        method="POST",
        client_ip=get_client_ip(request),
    )

    try:
        recurrence = body.recurrence.model_dump() if body.recurrence else body.recurrence_rule
        record = build_event_record(
            body.title,
            body.start,
            body.end,
            body.is_all_day,
            zone,
            recurrence=recurrence,
            exceptions=body.exceptions,
            is_active=body.is_active,
        )
        record["id"] = insert_event(conn, record)
        request_log.event_id = record["id"]
        request_log.status_code = 201
        return event_response(record, zone)

    except ValueError as e:
        details = [d.strip() for d in str(e).split("\n") if d.strip()]
        request_log.status_code = 422
        request_log.error_code = ErrorCodes.VALIDATION_ERROR
        request_log.error_message = str(e)
        for detail in details:
            request_log.details.append(("validation_error", detail))

        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={
                "error": "Event validation failed",
                "code": ErrorCodes.VALIDATION_ERROR,
                "details": details,
            },
        )

    finally:
        _write_log(request_log, start_time)


@router.get("/events/{event_id}", response_model=EventResponse)
async def get_event(
    event_id: int,
    conn: sqlite3.Connection = Depends(get_db),
    zone: ZoneInfo = Depends(get_company_zone),
):
    """Return one event with local start/end and parsed recurrence."""
    return event_response(load_event(conn, event_id), zone)


@router.post("/events/{event_id}/exception", response_model=EventResponse)
async def add_event_exception(
    request: Request,
    event_id: int,
    body: ExceptionRequest,
    conn: sqlite3.Connection = Depends(get_db),
    zone: ZoneInfo = Depends(get_company_zone),
    _api_key: str = Depends(verify_api_key),
):
    """Skip a single occurrence of a recurring event."""
    start_time = time.time()
    request_log = RequestLog(
        endpoint=f"/v1/events/{event_id}/exception",
        method="POST",
        client_ip=get_client_ip(request),
        event_id=event_id,
    )

    try:
        event = load_event(conn, event_id)
        try:
            updated = add_exception(event, body.date)
        except ValueError as e:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={
                    "error": str(e),
                    "code": ErrorCodes.INVALID_REQUEST,
                    "details": [],
                },
            )
        update_event_exceptions(conn, event_id, updated["exceptions"])
        request_log.status_code = 200
        return event_response(updated, zone)

    except HTTPException as e:
        _record_http_error(request_log, e)
        raise

    finally:
        _write_log(request_log, start_time)


@router.get("/events/{event_id}/occurrences", response_model=OccurrencesResponse)
async def get_event_occurrences(
    request: Request,
    event_id: int,
    start: Annotated[str, Query(description="First date (YYYY-MM-DD)")],
    end: Annotated[str, Query(description="Last date (YYYY-MM-DD), inclusive")],
    conn: sqlite3.Connection = Depends(get_db),
    zone: ZoneInfo = Depends(get_company_zone),
):
    """Occurrences of one event in a date window."""
    start_time = time.time()
    request_log = RequestLog(
        endpoint=f"/v1/events/{event_id}/occurrences",
        method="GET",
        client_ip=get_client_ip(request),
        event_id=event_id,
        window_start=start,
        window_end=end,
    )

    try:
        start_day, end_day = parse_window(start, end)
        event = load_event(conn, event_id)
        occurrences = event_occurrences(event, start_day, end_day, zone)

        request_log.status_code = 200
        request_log.occurrences_returned = len(occurrences)
        return OccurrencesResponse(
            timezone=zone.key,
            start=encode(start_day),
            end=encode(end_day),
            occurrences=[occurrence_response(o) for o in occurrences],
        )

    except HTTPException as e:
        _record_http_error(request_log, e)
        raise

    finally:
        _write_log(request_log, start_time)


@router.get("/calendar", response_model=OccurrencesResponse)
async def get_calendar(
    request: Request,
    start: Annotated[str, Query(description="First date (YYYY-MM-DD)")],
    end: Annotated[str, Query(description="Last date (YYYY-MM-DD), inclusive")],
    conn: sqlite3.Connection = Depends(get_db),
    zone: ZoneInfo = Depends(get_company_zone),
):
    """Occurrences of all active events in a date window."""
    start_time = time.time()
    request_log = RequestLog(
        endpoint="/v1/calendar",
        method="GET",
        client_ip=get_client_ip(request),
        window_start=start,
        window_end=end,
    )

    try:
        start_day, end_day = parse_window(start, end)
        occurrences = calendar_occurrences(fetch_events(conn), start_day, end_day, zone)

        request_log.status_code = 200
        request_log.occurrences_returned = len(occurrences)
        return OccurrencesResponse(
            timezone=zone.key,
            start=encode(start_day),
            end=encode(end_day),
            occurrences=[occurrence_response(o) for o in occurrences],
        )

    except HTTPException as e:
        _record_http_error(request_log, e)
        raise

    finally:
        _write_log(request_log, start_time)
