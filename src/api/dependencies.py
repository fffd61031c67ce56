"""FastAPI dependencies for authentication and shared resources."""

import secrets
import sqlite3
from typing import Iterator
from zoneinfo import ZoneInfo

from fastapi import Depends, Header, HTTPException, status

from api.models.responses import ErrorCodes
from core.config import CALENDAR_API_KEY
from core.database import get_connection
from core.timezone import TimezoneConfigError
from services.company_timezone import CompanyTimezoneResolver


async def verify_api_key(x_api_key: str = Header(..., alias="X-API-Key")) -> str:
    """
    Verify API key from X-API-Key header.

    Raises:
        HTTPException: 401 if key is missing or invalid
    """
    if not CALENDAR_API_KEY:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "API key not configured on server",
                "code": ErrorCodes.INTERNAL_ERROR,
                "details": [],
            },
        )

    # Use constant-time comparison to prevent timing attacks
    if not secrets.compare_digest(x_api_key, CALENDAR_API_KEY):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error": "Invalid or missing API key",
                "code": ErrorCodes.UNAUTHORIZED,
                "details": [],
            },
        )

    return x_api_key


def get_db() -> Iterator[sqlite3.Connection]:
    """One connection per request."""
    conn = get_connection()
    try:
        yield conn
    finally:
        conn.close()


def get_company_zone(conn: sqlite3.Connection = Depends(get_db)) -> ZoneInfo:
    """
    Company timezone for this request, resolved once.

    Raises:
        HTTPException: 500 if the configured timezone is invalid
    """
    try:
        return CompanyTimezoneResolver(conn).resolve()
    except TimezoneConfigError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "Server configuration error",
                "code": ErrorCodes.CONFIGURATION_ERROR,
                "details": [str(e)],
            },
        )
