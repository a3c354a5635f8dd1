from datetime import date, datetime, time

import pytest

from healthlife.scheduling.errors import InvalidTimeFormat
from healthlife.scheduling.times import day_of_week, format_minutes, minutes_to_time, parse_minutes, to_minutes


@pytest.mark.parametrize(
    ('value', 'expected'),
    [
        ('00:00', 0),
        ('09:05', 545),
        ('9:30', 570),
        (' 17:00 ', 1020),
        ('23:59', 1439),
    ],
)
def test_parse_minutes_accepts_clock_times(value: str, expected: int) -> None:
    assert parse_minutes(value) == expected


@pytest.mark.parametrize('value', ['', '24:00', '12:7', '12:75', '1200', '12:00:00', None])
def test_parse_minutes_rejects_malformed_values(value) -> None:
    with pytest.raises(InvalidTimeFormat) as exception_info:
        parse_minutes(value, 'end_time')

    assert exception_info.value.field == 'end_time'
    assert exception_info.value.code == 'invalid_time_format'


def test_to_minutes_ignores_the_date_component() -> None:
    assert to_minutes(datetime(2024, 1, 1, 9, 0)) == to_minutes(datetime(2030, 6, 15, 9, 0)) == 540
    assert to_minutes(time(17, 0)) == 1020


@pytest.mark.parametrize(
    ('minutes', 'expected'),
    [
        (0, '12:00 AM'),
        (540, '9:00 AM'),
        (720, '12:00 PM'),
        (1020, '5:00 PM'),
        (1439, '11:59 PM'),
    ],
)
def test_format_minutes_uses_twelve_hour_clock(minutes: int, expected: str) -> None:
    assert format_minutes(minutes) == expected


def test_minutes_to_time_rejects_values_outside_a_day() -> None:
    assert minutes_to_time(615) == time(10, 15)
    with pytest.raises(ValueError):
        minutes_to_time(24 * 60)


def test_day_of_week_counts_from_sunday() -> None:
    assert day_of_week(date(2026, 1, 4)) == 0
    assert day_of_week(date(2026, 1, 5)) == 1
    assert day_of_week(date(2026, 1, 10)) == 6
