"""Company timezone setting endpoints."""

import sqlite3
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, HTTPException, status

from api.dependencies import get_company_zone, get_db, verify_api_key
from api.models.requests import TimezoneUpdateRequest
from api.models.responses import ErrorCodes, TimezoneResponse
from core.config import TIMEZONE_SETTING_KEY
from core.database import set_setting
from core.timezone import TimezoneConfigError, load_zone

router = APIRouter(prefix="/v1/settings")


@router.get("/timezone", response_model=TimezoneResponse)
async def get_timezone(zone: ZoneInfo = Depends(get_company_zone)):
    """Timezone all civil dates are read in."""
    return TimezoneResponse(timezone=zone.key)


@router.put("/timezone", response_model=TimezoneResponse)
async def update_timezone(
    body: TimezoneUpdateRequest,
    conn: sqlite3.Connection = Depends(get_db),
    _api_key: str = Depends(verify_api_key),
):
    """
    Store a new company timezone.

    The identifier is validated before it is stored so reads never see an
    unusable zone.
    """
    try:
        zone = load_zone(body.timezone)
    except TimezoneConfigError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={
                "error": "Invalid timezone",
                "code": ErrorCodes.VALIDATION_ERROR,
                "details": [str(e)],
            },
        )

    set_setting(conn, TIMEZONE_SETTING_KEY, zone.key)
    return TimezoneResponse(timezone=zone.key)
