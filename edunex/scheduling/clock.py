"""Conversions between ``HH:MM`` clock labels, ``datetime.time`` and minutes since midnight."""
import re
from datetime import time

MINUTES_PER_DAY = 24 * 60

_CLOCK_PATTERN = re.compile(r'^([01]\d|2[0-3]):([0-5]\d)$')


def parse_clock(value: str) -> int:
    match = _CLOCK_PATTERN.match(value.strip())
    if not match:
        raise ValueError(f'Invalid time {value!r}; expected HH:MM in 24-hour format.')
    return int(match.group(1)) * 60 + int(match.group(2))


def format_clock(minutes: int) -> str:
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise ValueError(f'{minutes} minutes is outside a single day.')
    return f'{minutes // 60:02d}:{minutes % 60:02d}'


def time_to_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def minutes_to_time(minutes: int) -> time:
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise ValueError(f'{minutes} minutes is outside a single day.')
    return time(minutes // 60, minutes % 60)
