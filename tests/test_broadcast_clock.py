# tests/test_broadcast_clock.py

from __future__ import annotations

from datetime import date, datetime

import pytest

from radio_reminder.errors import ValidationError
from radio_reminder.utils.broadcast_clock import (
    WEEKDAY_NAMES_JA,
    broadcast_display_to_standard,
    format_broadcast_display,
    format_datetime,
    nominal_broadcast_date,
    parse_broadcast_display,
    to_broadcast_hour,
    to_standard_hour,
)


@pytest.mark.parametrize(
    ("hour", "expected"),
    [(5, (5, 0)), (18, (18, 0)), (23, (23, 0)), (24, (0, 1)), (25, (1, 1)), (29, (5, 1))],
)
def test_to_standard_hour(hour: int, expected: tuple[int, int]) -> None:
    assert to_standard_hour(hour) == expected


@pytest.mark.parametrize("hour", [-1, 30, 48])
def test_to_standard_hour_rejects_out_of_range(hour: int) -> None:
    with pytest.raises(ValidationError):
        to_standard_hour(hour)


def test_to_standard_hour_rejects_non_integers() -> None:
    with pytest.raises(ValidationError):
        to_standard_hour(1.5)  # type: ignore[arg-type]
    with pytest.raises(ValidationError):
        to_standard_hour(True)


def test_to_broadcast_hour_shifts_early_morning_only() -> None:
    assert to_broadcast_hour(0) == (24, -1)
    assert to_broadcast_hour(4) == (28, -1)
    assert to_broadcast_hour(5) == (5, 0)
    assert to_broadcast_hour(23) == (23, 0)


def test_nominal_broadcast_date_for_late_night_slot() -> None:
    # Tuesday 25:00 is stored as Wednesday 01:00
    assert nominal_broadcast_date(datetime(2024, 12, 4, 1, 0), 25) == date(2024, 12, 3)
    assert nominal_broadcast_date(datetime(2024, 12, 4, 18, 0), 18) == date(2024, 12, 4)


def test_format_datetime_tokens_and_literals() -> None:
    value = datetime(2024, 12, 5, 8, 7, 9)
    assert format_datetime(value, "M/D(ddd) HH:mm") == "12/5(Thu) 08:07"
    assert format_datetime(value, "YYYY-MM-DD H:m:ss") == "2024-12-05 8:7:09"
    assert format_datetime(value, "[Week day] d") == "Week day 4"


class TestFormatBroadcastDisplay:
    def test_midnight_is_24_of_previous_day(self) -> None:
        result = format_broadcast_display(datetime(2024, 12, 13, 0, 0), "M/D(ddd) HH:mm", weekday_names=WEEKDAY_NAMES_JA)
        assert result == "12/12(木) 24:00"

    def test_last_minute_before_day_start(self) -> None:
        result = format_broadcast_display(datetime(2024, 12, 13, 4, 59), "M/D(ddd) HH:mm", weekday_names=WEEKDAY_NAMES_JA)
        assert result == "12/12(木) 28:59"

    def test_five_oclock_is_not_shifted(self) -> None:
        result = format_broadcast_display(datetime(2024, 12, 13, 5, 0), "M/D(ddd) HH:mm", weekday_names=WEEKDAY_NAMES_JA)
        assert result == "12/13(金) 05:00"

    def test_format_without_time_portion_is_not_shifted(self) -> None:
        result = format_broadcast_display(datetime(2024, 12, 13, 1, 0), "M/D(ddd)", weekday_names=WEEKDAY_NAMES_JA)
        assert result == "12/13(金)"

    def test_full_year_format(self) -> None:
        result = format_broadcast_display(
            datetime(2024, 12, 13, 1, 0), "YYYY/M/D(ddd) HH:mm", weekday_names=WEEKDAY_NAMES_JA
        )
        assert result == "2024/12/12(木) 25:00"

    def test_short_format(self) -> None:
        assert format_broadcast_display(datetime(2024, 12, 13, 3, 30), "M/D HH:mm") == "12/12 27:30"

    def test_single_digit_hour_token(self) -> None:
        assert format_broadcast_display(datetime(2024, 12, 13, 2, 5), "M/D H:mm") == "12/12 26:05"

    def test_crosses_month_boundary(self) -> None:
        assert format_broadcast_display(datetime(2025, 1, 1, 1, 0), "YYYY/MM/DD HH:mm") == "2024/12/31 25:00"

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (datetime(2025, 1, 1, 2, 0), "2024/12/31(Tue) 26:00"),
            (datetime(2024, 3, 1, 1, 0), "2024/02/29(Thu) 25:00"),
        ],
    )
    def test_date_and_weekday_follow_the_shifted_day(self, value: datetime, expected: str) -> None:
        assert format_broadcast_display(value, "YYYY/MM/DD(ddd) HH:mm") == expected


@pytest.mark.parametrize("hour", [0, 1, 2, 3, 4])
def test_display_round_trip_for_early_morning(hour: int) -> None:
    value = datetime(2024, 12, 13, hour, 30)
    display = format_broadcast_display(value, "YYYY-MM-DD HH:mm")
    assert display == f"2024-12-12 {hour + 24}:30"
    assert broadcast_display_to_standard(display) == value


@pytest.mark.parametrize(
    ("value", "display"),
    [
        (datetime(2025, 1, 1, 2, 0), "2024-12-31 26:00"),
        (datetime(2024, 3, 1, 1, 0), "2024-02-29 25:00"),
        (datetime(2023, 3, 1, 4, 59), "2023-02-28 28:59"),
    ],
)
def test_display_round_trip_across_month_and_year_ends(value: datetime, display: str) -> None:
    assert format_broadcast_display(value, "YYYY-MM-DD HH:mm") == display
    assert broadcast_display_to_standard(display) == value


def test_parse_broadcast_display() -> None:
    assert parse_broadcast_display("2024-12-12 25:15") == (date(2024, 12, 12), 25, 15)


@pytest.mark.parametrize("text", ["2024-12-12 30:00", "2024-13-01 10:00", "12/12 25:00", ""])
def test_parse_broadcast_display_rejects_malformed(text: str) -> None:
    with pytest.raises(ValidationError):
        parse_broadcast_display(text)
