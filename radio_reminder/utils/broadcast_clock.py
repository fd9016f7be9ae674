"""
Broadcast clock (29-hour convention)

Late-night radio grids write the early morning as a continuation of the
previous day: 25:00 on Tuesday is 01:00 on Wednesday. A broadcast day starts
at 05:00, so hours 24-29 belong to the previous nominal day and any wall-clock
time in [00:00, 05:00) is displayed as 24:00-28:59 of the day before.

Format strings use day.js style tokens (YYYY, M, DD, ddd, HH, mm, ...), the
notation the stored display formats are written in.
"""
from datetime import date, datetime, timedelta
import re

from radio_reminder.errors import ValidationError


BROADCAST_DAY_START_HOUR = 5
MIN_BROADCAST_HOUR = 5
MAX_BROADCAST_HOUR = 29
VALID_MINUTES = (0, 15, 30, 45)

WEEKDAY_NAMES_EN = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")
WEEKDAY_NAMES_JA = ("日", "月", "火", "水", "木", "金", "土")

_TOKEN_RE = re.compile(r"\[([^\]]*)\]|YYYY|YY|MM|M|DD|D|ddd|dd|d|HH|H|mm|m|ss|s")
_TIME_PORTION_RE = re.compile(r"HH?:mm")


def to_standard_hour(broadcast_hour: int) -> tuple[int, int]:
    """
    Convert a broadcast-clock hour to a wall-clock hour

    Args:
        broadcast_hour: Hour on the 29-hour clock (0-29)

    Returns:
        Tuple of (standard_hour, day_offset); day_offset is 1 for hours 24-29

    Raises:
        ValidationError: If the hour is outside 0-29
    """
    if isinstance(broadcast_hour, bool) or not isinstance(broadcast_hour, int):
        raise ValidationError(f"Broadcast hour must be an integer, got {broadcast_hour!r}")
    if not 0 <= broadcast_hour <= MAX_BROADCAST_HOUR:
        raise ValidationError(f"Broadcast hour must be within 0-{MAX_BROADCAST_HOUR}, got {broadcast_hour}")
    if broadcast_hour >= 24:
        return broadcast_hour - 24, 1
    return broadcast_hour, 0


def to_broadcast_hour(standard_hour: int) -> tuple[int, int]:
    """
    Convert a wall-clock hour to its broadcast-clock display hour

    Returns:
        Tuple of (broadcast_hour, day_offset); day_offset is -1 for 00-04,
        meaning the hour belongs to the previous nominal day
    """
    if not 0 <= standard_hour <= 23:
        raise ValidationError(f"Standard hour must be within 0-23, got {standard_hour}")
    if standard_hour < BROADCAST_DAY_START_HOUR:
        return standard_hour + 24, -1
    return standard_hour, 0


def nominal_broadcast_date(broadcast_at: datetime, broadcast_hour: int) -> date:
    """
    Calendar date a stored broadcast belongs to on the programme grid

    A task stored at Wednesday 01:00 for a 25:00 slot belongs to Tuesday.
    """
    _, day_offset = to_standard_hour(broadcast_hour)
    return broadcast_at.date() - timedelta(days=day_offset)


def _render_token(token: str, value: datetime, weekday_names: tuple[str, ...]) -> str:
    weekday = (value.weekday() + 1) % 7  # Sunday=0
    if token == "YYYY":
        return f"{value.year:04d}"
    if token == "YY":
        return f"{value.year % 100:02d}"
    if token == "MM":
        return f"{value.month:02d}"
    if token == "M":
        return str(value.month)
    if token == "DD":
        return f"{value.day:02d}"
    if token == "D":
        return str(value.day)
    if token == "ddd":
        return weekday_names[weekday]
    if token == "dd":
        return weekday_names[weekday][:2]
    if token == "d":
        return str(weekday)
    if token == "HH":
        return f"{value.hour:02d}"
    if token == "H":
        return str(value.hour)
    if token == "mm":
        return f"{value.minute:02d}"
    if token == "m":
        return str(value.minute)
    if token == "ss":
        return f"{value.second:02d}"
    if token == "s":
        return str(value.second)
    return token


def format_datetime(
    value: datetime,
    fmt: str,
    *,
    weekday_names: tuple[str, ...] = WEEKDAY_NAMES_EN,
) -> str:
    """
    Format a datetime with day.js style tokens

    Text inside square brackets is emitted literally.

    Example:
        format_datetime(datetime(2024, 12, 5, 18, 0), 'M/D(ddd) HH:mm')
        # => '12/5(Thu) 18:00'
    """
    def _sub(match: re.Match) -> str:
        if match.group(1) is not None:
            return match.group(1)
        return _render_token(match.group(0), value, weekday_names)

    return _TOKEN_RE.sub(_sub, fmt)


def format_broadcast_display(
    value: datetime,
    fmt: str,
    *,
    weekday_names: tuple[str, ...] = WEEKDAY_NAMES_EN,
) -> str:
    """
    Format a wall-clock timestamp in 29-hour display form

    Times from 00:00 to 04:59 are shown as 24:00-28:59 of the previous day.
    Only the trailing hour:minute portion of fmt is shifted; date tokens
    around it are rendered against the shifted date. A format without an
    hour:minute portion is rendered unshifted.

    Example:
        format_broadcast_display(datetime(2024, 12, 13, 3, 30), 'M/D HH:mm')
        # => '12/12 27:30'
    """
    matches = list(_TIME_PORTION_RE.finditer(fmt))
    if not matches or value.hour >= BROADCAST_DAY_START_HOUR:
        return format_datetime(value, fmt, weekday_names=weekday_names)

    time_match = matches[-1]
    shifted = value - timedelta(days=1)
    display_hour, _ = to_broadcast_hour(value.hour)

    head = format_datetime(shifted, fmt[:time_match.start()], weekday_names=weekday_names)
    tail = format_datetime(shifted, fmt[time_match.end():], weekday_names=weekday_names)
    return f"{head}{display_hour}:{value.minute:02d}{tail}"


def parse_broadcast_display(text: str) -> tuple[date, int, int]:
    """
    Parse 'YYYY-MM-DD HH:mm' written on the broadcast clock

    Returns:
        Tuple of (nominal_date, broadcast_hour, minute)

    Raises:
        ValidationError: If the text is malformed or the hour exceeds 29
    """
    match = re.fullmatch(r"\s*(\d{4})-(\d{1,2})-(\d{1,2})[ T](\d{1,2}):(\d{2})\s*", text or "")
    if not match:
        raise ValidationError(f"Invalid broadcast time: '{text}'")
    year, month, day, hour, minute = (int(part) for part in match.groups())
    try:
        nominal = date(year, month, day)
    except ValueError as exc:
        raise ValidationError(f"Invalid broadcast date: '{text}'") from exc
    if hour > MAX_BROADCAST_HOUR or minute > 59:
        raise ValidationError(f"Invalid broadcast time: '{text}'")
    return nominal, hour, minute


def broadcast_display_to_standard(text: str) -> datetime:
    """Inverse of format_broadcast_display for the 'YYYY-MM-DD HH:mm' shape."""
    nominal, hour, minute = parse_broadcast_display(text)
    standard_hour, day_offset = to_standard_hour(hour)
    return datetime.combine(nominal + timedelta(days=day_offset), datetime.min.time()).replace(
        hour=standard_hour, minute=minute
    )
