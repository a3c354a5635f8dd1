"""Time-of-day helpers.

All comparisons happen on integer minutes since midnight. A time-of-day is
never combined with "today" to get something comparable.
"""

import re
from datetime import date, datetime, time

from healthlife.scheduling.errors import InvalidTimeFormat

MINUTES_PER_DAY = 24 * 60

_CLOCK_PATTERN = re.compile(r'^(\d{1,2}):(\d{2})$')


def parse_minutes(value: str, field: str = 'start_time') -> int:
    """Parse an ``HH:MM`` string into minutes since midnight."""
    if not isinstance(value, str):
        raise InvalidTimeFormat(f'{field} must be a string in HH:MM format.', field=field)

    match = _CLOCK_PATTERN.match(value.strip())
    if not match:
        raise InvalidTimeFormat(f'{field} must be in HH:MM format.', field=field)

    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise InvalidTimeFormat(f'{field} is not a valid time of day.', field=field)

    return hours * 60 + minutes


def to_minutes(value: str | time | datetime, field: str = 'start_time') -> int:
    if isinstance(value, datetime):
        return value.hour * 60 + value.minute
    if isinstance(value, time):
        return value.hour * 60 + value.minute
    return parse_minutes(value, field)


def minutes_to_time(minutes: int) -> time:
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise ValueError(f'{minutes} is outside a single day.')
    return time(minutes // 60, minutes % 60)


def combine(day: date, minutes: int) -> datetime:
    return datetime.combine(day, minutes_to_time(minutes))


def format_minutes(minutes: int) -> str:
    """Render minutes since midnight as ``9:00 AM``."""
    hours, remainder = divmod(minutes, 60)
    suffix = 'AM' if hours < 12 else 'PM'
    display_hour = hours % 12 or 12
    return f'{display_hour}:{remainder:02d} {suffix}'


def day_of_week(day: date) -> int:
    """Sunday-first day of week: 0 is Sunday, 6 is Saturday."""
    return (day.weekday() + 1) % 7
