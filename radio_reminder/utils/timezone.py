"""
Date and Time utilities

All timestamps in Radio Reminder are civil (wall-clock) times in one fixed
timezone and are handled as naive datetimes. This module is the single place
that talks to zoneinfo.
"""
from collections.abc import Callable
from datetime import datetime
from zoneinfo import ZoneInfo

Clock = Callable[[], datetime]


def now_in_timezone(tz_name: str) -> datetime:
    """
    Current civil time in the given timezone, without tzinfo

    Args:
        tz_name: IANA timezone name (e.g. 'Asia/Tokyo')

    Returns:
        Naive datetime holding the local wall-clock time
    """
    return datetime.now(ZoneInfo(tz_name)).replace(tzinfo=None)


def make_clock(tz_name: str) -> Clock:
    """Build a zero-argument clock returning civil time in tz_name."""
    ZoneInfo(tz_name)  # fail fast on unknown zones

    def _clock() -> datetime:
        return now_in_timezone(tz_name)

    return _clock
