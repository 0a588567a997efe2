from dataclasses import dataclass
from enum import Enum


class RejectionReason(str, Enum):
    INVALID_DURATION = 'invalid_duration'
    OUTSIDE_AVAILABILITY = 'outside_availability'
    SLOT_CONFLICT = 'slot_conflict'
    DATE_OUT_OF_WINDOW = 'date_out_of_window'
    FORBIDDEN = 'forbidden'
    NOT_FOUND = 'not_found'


@dataclass(frozen=True)
class BookingDecision:
    """Result of a booking or cancellation check. ``reason`` is set only when rejected."""
    reason: RejectionReason | None = None
    message: str = ''

    @property
    def ok(self) -> bool:
        return self.reason is None

    @classmethod
    def accept(cls) -> 'BookingDecision':
        return cls()

    @classmethod
    def reject(cls, reason: RejectionReason, message: str) -> 'BookingDecision':
        return cls(reason=reason, message=message)


class InvalidDurationError(ValueError):
    reason = RejectionReason.INVALID_DURATION
