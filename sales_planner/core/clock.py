"""
Civil clock for the Sales Planner backend.

Every "today"-dependent calculation (remaining workdays, month-to-date windows,
pacing) is anchored to a single civil timezone rather than UTC or the host's
local time. The API layer reads the clock once per request and passes the
resulting value into the engine, so all components of one response agree on
the same instant.
"""

from datetime import date, datetime
from typing import Optional
from zoneinfo import ZoneInfo

from sales_planner.core.config import get_settings


def civil_now(tz_name: Optional[str] = None) -> datetime:
    """
    Return the current timezone-aware datetime in the configured civil zone.

    Args:
        tz_name: IANA timezone override (defaults to settings.timezone).

    Returns:
        Aware datetime in the civil zone.
    """
    if tz_name is None:
        tz_name = get_settings().timezone
    return datetime.now(ZoneInfo(tz_name))


def civil_today(tz_name: Optional[str] = None) -> date:
    """Return today's civil date."""
    return civil_now(tz_name).date()
