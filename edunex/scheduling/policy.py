"""Booking and cancellation rules for consultation sessions."""
from datetime import date, datetime, timedelta
from typing import Iterable

from edunex.core import config
from edunex.scheduling.clock import minutes_to_time, parse_clock
from edunex.scheduling.outcomes import BookingDecision, InvalidDurationError, RejectionReason
from edunex.scheduling.schemas import AvailabilityDay, BookedInterval
from edunex.scheduling.slots import BOOKED_STATUS, booked_intervals, overlaps_booking, validate_duration


def validate_booking(
    slot_date: date,
    start_time: str,
    duration_minutes: int,
    availability: AvailabilityDay | None,
    existing_sessions: Iterable[BookedInterval],
    *,
    now: datetime,
    window_days: int = config.BOOKING_WINDOW_DAYS,
) -> BookingDecision:
    """Check a booking request against the instructor's day.

    Checks run in a fixed order and the first failure wins: duration, availability
    coverage, conflicts with booked sessions, then the booking window.
    """
    try:
        duration = validate_duration(duration_minutes)
    except InvalidDurationError as exc:
        return BookingDecision.reject(RejectionReason.INVALID_DURATION, str(exc))

    try:
        start = parse_clock(start_time)
    except ValueError as exc:
        return BookingDecision.reject(RejectionReason.OUTSIDE_AVAILABILITY, str(exc))
    end = start + duration

    if availability is None or availability.is_blocked:
        return BookingDecision.reject(
            RejectionReason.OUTSIDE_AVAILABILITY,
            'Instructor is not available on this date.',
        )

    if not any(time_range.covers(start, end) for time_range in availability.time_ranges):
        return BookingDecision.reject(
            RejectionReason.OUTSIDE_AVAILABILITY,
            "Selected time does not fit within the instructor's availability.",
        )

    if overlaps_booking(start, end, booked_intervals(existing_sessions)):
        return BookingDecision.reject(
            RejectionReason.SLOT_CONFLICT,
            'This time slot has already been booked.',
        )

    today = now.date()
    if slot_date < today or slot_date > today + timedelta(days=window_days):
        return BookingDecision.reject(
            RejectionReason.DATE_OUT_OF_WINDOW,
            f'You can only book consultations up to {window_days} days in advance.',
        )

    if datetime.combine(slot_date, minutes_to_time(start)) <= now:
        return BookingDecision.reject(
            RejectionReason.DATE_OUT_OF_WINDOW,
            'Start time must be in the future.',
        )

    return BookingDecision.accept()


def can_cancel(session, now: datetime, notice_hours: int = config.CANCELLATION_NOTICE_HOURS) -> bool:
    if session.status != BOOKED_STATUS:
        return False
    starts_at = datetime.combine(session.date, session.start_time)
    return starts_at - now >= timedelta(hours=notice_hours)


def check_cancellation(session, requester_id: int, now: datetime) -> BookingDecision:
    if session is None:
        return BookingDecision.reject(RejectionReason.NOT_FOUND, 'Session not found.')

    if session.student_id != requester_id:
        return BookingDecision.reject(
            RejectionReason.FORBIDDEN,
            'You can only cancel your own sessions.',
        )

    if not can_cancel(session, now):
        if session.status != BOOKED_STATUS:
            message = 'This session cannot be cancelled.'
        else:
            message = (
                f'You can only cancel a session at least '
                f'{config.CANCELLATION_NOTICE_HOURS} hours in advance.'
            )
        return BookingDecision.reject(RejectionReason.FORBIDDEN, message)

    return BookingDecision.accept()
