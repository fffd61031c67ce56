"""Health check endpoint."""

from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from api.models.responses import HealthResponse
from core import config
from core.database import get_connection
from core.timezone import TimezoneConfigError
from services.company_timezone import CompanyTimezoneResolver

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Health check endpoint for monitoring.

    Returns 200 if healthy, 503 if unhealthy.
    """
    database_available = config.DB_PATH.exists()
    timestamp = datetime.now(timezone.utc).isoformat()

    zone_name = None
    error = None
    if database_available:
        conn = get_connection()
        try:
            zone_name = CompanyTimezoneResolver(conn).name
        except TimezoneConfigError as e:
            error = str(e)
        finally:
            conn.close()
    else:
        error = "Database not found"

    if error is None:
        return HealthResponse(
            status="healthy",
            version=config.API_VERSION,
            database_available=True,
            timezone=zone_name,
            timestamp=timestamp,
        )
    else:
        return JSONResponse(
            status_code=503,
            content=HealthResponse(
                status="unhealthy",
                version=config.API_VERSION,
                database_available=database_available,
                timezone=zone_name,
                timestamp=timestamp,
                error=error,
            ).model_dump(),
        )
