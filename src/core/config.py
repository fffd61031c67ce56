"""
Configuration constants and environment setup.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# =============================================================================
# PATHS
# =============================================================================

PROJECT_ROOT = Path(__file__).parent.parent.parent
DB_PATH = Path(
    os.environ.get("CALENDAR_DB_PATH", str(PROJECT_ROOT / "data" / "db" / "calendar.db"))
)

# =============================================================================
# COMPANY TIMEZONE
# =============================================================================

# Every civil date/time in the system is read in this zone unless the stored
# "timezone" setting overrides it.
DEFAULT_COMPANY_TIMEZONE = os.environ.get("COMPANY_TIMEZONE", "America/Denver")
TIMEZONE_SETTING_KEY = "timezone"

# =============================================================================
# EVENT DEFAULTS
# =============================================================================

DEFAULT_TIMED_EVENT_HOURS = 3
ALL_DAY_END_TIME = "23:59"

# Longest occurrence window (in days) the API will expand in one request
MAX_EXPANSION_DAYS = int(os.environ.get("MAX_EXPANSION_DAYS", "731"))

# =============================================================================
# API CONFIGURATION
# =============================================================================

CALENDAR_API_KEY = os.environ.get("CALENDAR_API_KEY", "")
API_HOST = os.environ.get("API_HOST", "0.0.0.0")
API_PORT = int(os.environ.get("API_PORT", "8000"))
API_DEBUG = os.environ.get("API_DEBUG", "false").lower() == "true"
API_VERSION = "1.0.0"
