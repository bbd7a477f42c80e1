import logging
import zoneinfo
from datetime import date, datetime

from duekeeper.config import settings

logger = logging.getLogger(__name__)


def get_today(tz_name: str | None = None) -> date:
    """Today's date in the configured timezone, else the device's local calendar.

    Only callers use this; the lifecycle engine always receives "today" explicitly.
    """
    name = tz_name or settings.timezone
    if name:
        try:
            return datetime.now(zoneinfo.ZoneInfo(name)).date()
        except (KeyError, ValueError, zoneinfo.ZoneInfoNotFoundError):
            logger.warning("Unknown timezone %r, falling back to local date", name)
    return date.today()
