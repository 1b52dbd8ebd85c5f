# ABOUTME: Local clock collaborator driven by a UTC offset in seconds.
# ABOUTME: Converts UTC epoch seconds into local clock fields; treats an unsynced clock as unavailable.

import logging
import time
from collections.abc import Callable
from datetime import datetime, timezone

from weatherclock.errors import ParseError
from weatherclock.models import ClockData

logger = logging.getLogger(__name__)

# Anything earlier means the system clock was never set.
MIN_VALID_EPOCH = 8 * 3600 * 2


def system_utc_now() -> int | None:
    """Current UTC epoch seconds, or None while the system clock is not set."""
    now = int(time.time())
    return now if now >= MIN_VALID_EPOCH else None


def local_datetime(epoch: int, utc_offset_seconds: int) -> datetime:
    """Wall-clock fields for `epoch` shifted by a fixed offset (tzinfo stays UTC).

    Raises ParseError when the shifted epoch is outside the platform's range.
    """
    try:
        return datetime.fromtimestamp(epoch + utc_offset_seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as e:
        raise ParseError(f"timestamp out of range: {epoch}") from e


def day_of_week(moment: datetime) -> int:
    """0=Sunday .. 6=Saturday."""
    return moment.isoweekday() % 7


class LocalClock:
    """Holds the location's UTC offset and reports local time from it."""

    def __init__(self, utc_offset_seconds: int = 0, utc_now: Callable[[], int | None] = system_utc_now):
        self.utc_offset_seconds = utc_offset_seconds
        self._utc_now = utc_now

    def set_utc_offset(self, offset_seconds: int) -> None:
        logger.info("Applying UTC offset %d seconds", offset_seconds)
        self.utc_offset_seconds = offset_seconds

    def clock_data(self) -> ClockData:
        utc_now = self._utc_now()
        if utc_now is None:
            logger.warning("Clock refresh failed: system time not valid yet")
            return ClockData(valid=False)
        local = local_datetime(utc_now, self.utc_offset_seconds)
        return ClockData(hour=local.hour, minute=local.minute, month=local.month, day=local.day, valid=True)
