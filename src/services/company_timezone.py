"""
Company timezone resolution.

The zone comes from the stored "timezone" setting when present, otherwise
from configuration (``COMPANY_TIMEZONE`` or America/Denver). A resolver is
created per request or per script run so the same zone is used for the whole
operation.
"""

import sqlite3
from zoneinfo import ZoneInfo

from core.config import DEFAULT_COMPANY_TIMEZONE, TIMEZONE_SETTING_KEY
from core.database import get_setting
from core.timezone import load_zone


def read_timezone_setting(conn: sqlite3.Connection | None) -> str | None:
    """Stored timezone identifier, or None if unset or the store is unreadable."""
    if conn is None:
        return None
    try:
        value = get_setting(conn, TIMEZONE_SETTING_KEY)
    except sqlite3.Error:
        return None
    return value.strip() if value and value.strip() else None


class CompanyTimezoneResolver:
    """
    Lazily resolves the company zone once and caches it.

    Raises TimezoneConfigError from ``resolve()`` if the configured or stored
    identifier is not a valid IANA zone.
    """

    def __init__(self, conn: sqlite3.Connection | None = None, default: str = DEFAULT_COMPANY_TIMEZONE):
        self.conn = conn
        self.default = default
        self._zone: ZoneInfo | None = None

    @property
    def name(self) -> str:
        return self.resolve().key

    def resolve(self) -> ZoneInfo:
        if self._zone is None:
            self._zone = load_zone(read_timezone_setting(self.conn) or self.default)
        return self._zone


def get_company_timezone(conn: sqlite3.Connection | None = None) -> ZoneInfo:
    """One-shot resolution for scripts."""
    return CompanyTimezoneResolver(conn).resolve()


def validate_configured_timezone() -> ZoneInfo:
    """Check the configured default at startup; raises TimezoneConfigError."""
    return load_zone(DEFAULT_COMPANY_TIMEZONE)
