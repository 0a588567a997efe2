from typing import Iterable

from edunex.scheduling.outcomes import InvalidDurationError
from edunex.scheduling.clock import format_clock
from edunex.scheduling.schemas import AvailabilityDay, BookedInterval, Slot

ALLOWED_DURATIONS_MINUTES = (15, 30)
SLOT_INCREMENT_MINUTES = 15
BOOKED_STATUS = 'booked'


def validate_duration(duration_minutes: int) -> int:
    if duration_minutes not in ALLOWED_DURATIONS_MINUTES:
        raise InvalidDurationError(
            f'duration_minutes must be one of {", ".join(str(d) for d in ALLOWED_DURATIONS_MINUTES)}.'
        )
    return duration_minutes


def intervals_overlap(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """Half-open overlap test for ``[start_a, end_a)`` and ``[start_b, end_b)``."""
    return start_a < end_b and start_b < end_a


def booked_intervals(sessions: Iterable[BookedInterval]) -> list[tuple[int, int]]:
    return [
        (session.start_minutes, session.end_minutes)
        for session in sessions
        if session.status == BOOKED_STATUS
    ]


def overlaps_booking(start: int, end: int, bookings: list[tuple[int, int]]) -> bool:
    return any(intervals_overlap(start, end, booked_start, booked_end) for booked_start, booked_end in bookings)


def resolve_slots(
    availability: AvailabilityDay | None,
    booked_sessions: Iterable[BookedInterval],
    requested_duration_minutes: int,
    *,
    after_minutes: int | None = None,
) -> list[Slot]:
    """Bookable start times for one instructor-day at the requested duration.

    Candidates step through every declared range at a fixed stride, keep the first
    occurrence of each start time, drop anything overlapping a booked session and
    are then thinned so the returned slots never overlap each other.

    ``after_minutes`` hides candidates starting at or before that minute of the day.
    """
    duration = validate_duration(requested_duration_minutes)

    if availability is None or availability.is_blocked:
        return []

    candidates: dict[int, Slot] = {}
    for time_range in availability.time_ranges:
        range_end = time_range.end_minutes
        candidate = time_range.start_minutes
        while candidate + duration <= range_end:
            if candidate not in candidates and (after_minutes is None or candidate > after_minutes):
                candidates[candidate] = Slot(
                    time_label=format_clock(candidate),
                    range_note=time_range.note,
                    max_duration_minutes=range_end - candidate,
                )
            candidate += SLOT_INCREMENT_MINUTES

    bookings = booked_intervals(booked_sessions)
    free_starts = sorted(
        start for start in candidates
        if not overlaps_booking(start, start + duration, bookings)
    )

    slots: list[Slot] = []
    last_kept: int | None = None
    for start in free_starts:
        if last_kept is not None and start - last_kept < duration:
            continue
        slots.append(candidates[start])
        last_kept = start

    return slots
