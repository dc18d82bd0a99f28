"""
Business clock.

Monthly figures start at midnight on the first day of the month in the
agency's timezone, not in UTC.
"""

from datetime import datetime, tzinfo
from functools import lru_cache
from zoneinfo import ZoneInfo

from travelcrm.config import settings


@lru_cache
def business_timezone() -> tzinfo:
    return ZoneInfo(settings.business_timezone)


def business_now() -> datetime:
    """Current time in the business timezone."""
    return datetime.now(business_timezone())
