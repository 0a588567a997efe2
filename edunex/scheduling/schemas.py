"""Plain value types the scheduling functions operate on.

Route handlers build these from ORM rows with ``model_validate(..., from_attributes=True)``
so the scheduling code never touches the database.
"""
from datetime import time

from pydantic import BaseModel, field_validator, model_validator

from edunex.scheduling.clock import format_clock, parse_clock, time_to_minutes


class TimeRange(BaseModel):
    start_time: str
    end_time: str
    note: str = ''

    @field_validator('start_time', 'end_time')
    @classmethod
    def validate_clock(cls, value: str) -> str:
        return format_clock(parse_clock(value))

    @field_validator('note', mode='before')
    @classmethod
    def normalize_note(cls, value: str | None) -> str:
        return (value or '').strip()

    @model_validator(mode='after')
    def validate_order(self) -> 'TimeRange':
        if self.start_minutes >= self.end_minutes:
            raise ValueError('Invalid time range: start_time must be before end_time.')
        return self

    @property
    def start_minutes(self) -> int:
        return parse_clock(self.start_time)

    @property
    def end_minutes(self) -> int:
        return parse_clock(self.end_time)

    def covers(self, start_minutes: int, end_minutes: int) -> bool:
        return self.start_minutes <= start_minutes and end_minutes <= self.end_minutes


class AvailabilityDay(BaseModel):
    time_ranges: list[TimeRange] = []
    is_blocked: bool = False
    day_note: str | None = None

    class Config:
        from_attributes = True

    @field_validator('is_blocked', mode='before')
    @classmethod
    def normalize_blocked(cls, value: bool | None) -> bool:
        return bool(value)


class BookedInterval(BaseModel):
    """The scheduling-relevant part of a consultation session."""
    start_time: time
    duration_minutes: int
    status: str = 'booked'

    class Config:
        from_attributes = True

    @property
    def start_minutes(self) -> int:
        return time_to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return self.start_minutes + self.duration_minutes


class Slot(BaseModel):
    time_label: str
    range_note: str = ''
    max_duration_minutes: int

    @property
    def start_minutes(self) -> int:
        return parse_clock(self.time_label)
