import logging
from datetime import date, datetime, timedelta

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from edunex.auth.dependencies import require_role
from edunex.core import config
from edunex.database import ensure_availability_schema, ensure_session_schema, get_db
from edunex.models.availability import Availability
from edunex.models.consultation_session import BOOKED_STATUS, CANCELLED_STATUS, ConsultationSession
from edunex.models.course import Course
from edunex.models.user import INSTRUCTOR_ROLE, STUDENT_ROLE, User
from edunex.scheduling.clock import format_clock, minutes_to_time, parse_clock, time_to_minutes
from edunex.scheduling.outcomes import BookingDecision, InvalidDurationError, RejectionReason
from edunex.scheduling.policy import check_cancellation, validate_booking
from edunex.scheduling.schemas import AvailabilityDay, BookedInterval, Slot, TimeRange
from edunex.scheduling.slots import resolve_slots

router = APIRouter(tags=['consultations'])

logger = logging.getLogger(__name__)

BLOCKED_DAY_NOTE = 'Instructor is not available'
REJECTION_STATUS_CODES = {
    RejectionReason.INVALID_DURATION: status.HTTP_400_BAD_REQUEST,
    RejectionReason.OUTSIDE_AVAILABILITY: status.HTTP_400_BAD_REQUEST,
    RejectionReason.DATE_OUT_OF_WINDOW: status.HTTP_400_BAD_REQUEST,
    RejectionReason.SLOT_CONFLICT: status.HTTP_409_CONFLICT,
    RejectionReason.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    RejectionReason.NOT_FOUND: status.HTTP_404_NOT_FOUND,
}


class UpsertAvailabilityRequest(BaseModel):
    date: date
    time_ranges: list[TimeRange] = []
    day_note: str | None = None
    is_blocked: bool = False

    @field_validator('day_note')
    @classmethod
    def validate_day_note(cls, value: str | None) -> str:
        return (value or '').strip()


class AvailabilityResponse(BaseModel):
    id: int
    instructor_id: int
    date: date
    time_ranges: list[TimeRange]
    day_note: str | None = None
    is_blocked: bool

    class Config:
        from_attributes = True


class AvailableSlotsResponse(BaseModel):
    course_id: int
    instructor_id: int
    date: date
    day_note: str | None = None
    is_blocked: bool
    slots: list[Slot]


class CreateSessionRequest(BaseModel):
    course_id: int
    date: date
    start_time: str
    duration_minutes: int
    student_note: str | None = None

    @field_validator('start_time')
    @classmethod
    def validate_start_time(cls, value: str) -> str:
        return format_clock(parse_clock(value))

    @field_validator('student_note')
    @classmethod
    def validate_student_note(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip()
        if not normalized:
            return None

        if len(normalized) > config.MAX_STUDENT_NOTE_LENGTH:
            raise ValueError(f'Notes must be {config.MAX_STUDENT_NOTE_LENGTH} characters or fewer.')

        return normalized


class SessionResponse(BaseModel):
    id: int
    instructor_id: int
    student_id: int
    course_id: int
    date: date
    start_time: str
    end_time: str
    duration_minutes: int
    status: str
    student_note: str | None = None
    instructor_name: str | None = None
    instructor_email: str | None = None
    course_title: str | None = None


def current_time() -> datetime:
    return datetime.now()


def ensure_database_ready() -> None:
    try:
        ensure_availability_schema()
        ensure_session_schema()
    except SQLAlchemyError as exc:
        logger.exception('Consultation schema check failed.')
        raise database_unavailable() from exc


def database_unavailable() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail='Database unavailable. Verify DATABASE_URL and database credentials.',
    )


def raise_rejection(decision: BookingDecision) -> None:
    raise HTTPException(status_code=REJECTION_STATUS_CODES[decision.reason], detail=decision.message)


def serialize_session(session: ConsultationSession) -> SessionResponse:
    return SessionResponse(
        id=session.id,
        instructor_id=session.instructor_id,
        student_id=session.student_id,
        course_id=session.course_id,
        date=session.date,
        start_time=format_clock(time_to_minutes(session.start_time)),
        end_time=format_clock(time_to_minutes(session.end_time)),
        duration_minutes=session.duration_minutes,
        status=session.status,
        student_note=session.student_note or None,
        instructor_name=session.instructor.name if session.instructor else None,
        instructor_email=session.instructor.email if session.instructor else None,
        course_title=session.course.title if session.course else None,
    )


def get_course_for_student(db: Session, course_id: int, student: User) -> Course:
    course = db.query(Course).filter(Course.id == course_id).first()
    if course is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Course not found.',
        )

    if not course.is_enrolled(student.id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail='You must be enrolled in this course to book consultations.',
        )

    return course


def to_availability_day(availability: Availability | None) -> AvailabilityDay | None:
    if availability is None:
        return None
    return AvailabilityDay.model_validate(availability)


def get_booked_intervals(db: Session, instructor_id: int, slot_date: date) -> list[BookedInterval]:
    sessions = db.query(ConsultationSession).filter(
        ConsultationSession.instructor_id == instructor_id,
        ConsultationSession.date == slot_date,
        ConsultationSession.status == BOOKED_STATUS,
    ).all()
    return [BookedInterval.model_validate(session) for session in sessions]


@router.get('/availability/my', response_model=list[AvailabilityResponse])
def list_my_availability(
    date_from: date | None = Query(default=None, alias='from'),
    date_to: date | None = Query(default=None, alias='to'),
    current_user: User = Depends(require_role(INSTRUCTOR_ROLE)),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        query = db.query(Availability).filter(Availability.instructor_id == current_user.id)
        if date_from is not None:
            query = query.filter(Availability.date >= date_from)
        if date_to is not None:
            query = query.filter(Availability.date <= date_to)

        return query.order_by(Availability.date.asc()).all()
    except SQLAlchemyError as exc:
        logger.exception('Failed to list availability for instructor %s.', current_user.id)
        raise database_unavailable() from exc


@router.post('/availability', response_model=AvailabilityResponse)
def upsert_availability(
    data: UpsertAvailabilityRequest,
    current_user: User = Depends(require_role(INSTRUCTOR_ROLE)),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        availability = db.query(Availability).filter(
            Availability.instructor_id == current_user.id,
            Availability.date == data.date,
        ).first()

        if availability is None:
            availability = Availability(instructor_id=current_user.id, date=data.date)
            db.add(availability)

        availability.time_ranges = [time_range.model_dump() for time_range in data.time_ranges]
        availability.day_note = data.day_note
        availability.is_blocked = data.is_blocked

        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            logger.info('Concurrent availability save for instructor %s on %s.', current_user.id, data.date)
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail='Availability for this date was saved by another request. Please retry.',
            ) from exc
        db.refresh(availability)

        logger.info(
            'Instructor %s saved availability for %s (%d ranges, blocked=%s).',
            current_user.id,
            data.date,
            len(data.time_ranges),
            data.is_blocked,
        )
        return availability
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Failed to save availability for instructor %s.', current_user.id)
        raise database_unavailable() from exc


@router.delete('/availability/{availability_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_availability(
    availability_id: int,
    current_user: User = Depends(require_role(INSTRUCTOR_ROLE)),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        availability = db.query(Availability).filter(
            Availability.id == availability_id,
            Availability.instructor_id == current_user.id,
        ).first()

        if availability is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail='Availability not found.',
            )

        db.delete(availability)
        db.commit()
        logger.info('Instructor %s deleted availability %s.', current_user.id, availability_id)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Failed to delete availability %s.', availability_id)
        raise database_unavailable() from exc


@router.get('/available-slots', response_model=AvailableSlotsResponse)
def get_available_slots(
    course_id: int = Query(...),
    slot_date: date = Query(..., alias='date'),
    duration_minutes: int = Query(default=30),
    current_user: User = Depends(require_role(STUDENT_ROLE)),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        course = get_course_for_student(db, course_id, current_user)
        availability = to_availability_day(
            db.query(Availability).filter(
                Availability.instructor_id == course.instructor_id,
                Availability.date == slot_date,
            ).first()
        )
        booked = get_booked_intervals(db, course.instructor_id, slot_date)

        now = current_time()
        after_minutes = None
        if slot_date == now.date():
            after_minutes = time_to_minutes(now.time())

        try:
            slots = resolve_slots(availability, booked, duration_minutes, after_minutes=after_minutes)
        except InvalidDurationError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

        if slot_date < now.date() or slot_date > now.date() + timedelta(days=config.BOOKING_WINDOW_DAYS):
            slots = []

        day_note = None
        is_blocked = False
        if availability is not None:
            is_blocked = availability.is_blocked
            day_note = (availability.day_note or BLOCKED_DAY_NOTE) if is_blocked else availability.day_note

        return AvailableSlotsResponse(
            course_id=course.id,
            instructor_id=course.instructor_id,
            date=slot_date,
            day_note=day_note,
            is_blocked=is_blocked,
            slots=slots,
        )
    except SQLAlchemyError as exc:
        logger.exception('Failed to resolve slots for course %s on %s.', course_id, slot_date)
        raise database_unavailable() from exc


@router.post('/sessions', response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
def book_session(
    data: CreateSessionRequest,
    current_user: User = Depends(require_role(STUDENT_ROLE)),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        course = get_course_for_student(db, data.course_id, current_user)

        # Serializes concurrent bookings for the same instructor-day where the backend supports row locks.
        availability_row = db.query(Availability).filter(
            Availability.instructor_id == course.instructor_id,
            Availability.date == data.date,
        ).with_for_update().first()

        decision = validate_booking(
            data.date,
            data.start_time,
            data.duration_minutes,
            to_availability_day(availability_row),
            get_booked_intervals(db, course.instructor_id, data.date),
            now=current_time(),
        )
        if not decision.ok:
            logger.info(
                'Rejected booking by student %s for %s %s: %s.',
                current_user.id,
                data.date,
                data.start_time,
                decision.reason.value,
            )
            db.rollback()
            raise_rejection(decision)

        start_minutes = parse_clock(data.start_time)
        session = ConsultationSession(
            instructor_id=course.instructor_id,
            student_id=current_user.id,
            course_id=course.id,
            date=data.date,
            start_time=minutes_to_time(start_minutes),
            end_time=minutes_to_time(start_minutes + data.duration_minutes),
            duration_minutes=data.duration_minutes,
            status=BOOKED_STATUS,
            student_note=data.student_note or '',
        )
        db.add(session)

        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            logger.info('Concurrent booking won the slot %s %s.', data.date, data.start_time)
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail='This time slot has already been booked.',
            ) from exc

        db.refresh(session)
        logger.info(
            'Student %s booked session %s with instructor %s on %s at %s.',
            current_user.id,
            session.id,
            session.instructor_id,
            data.date,
            data.start_time,
        )
        return serialize_session(session)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Failed to book session for student %s.', current_user.id)
        raise database_unavailable() from exc


@router.get('/sessions/my', response_model=list[SessionResponse])
def list_my_sessions(
    current_user: User = Depends(require_role(STUDENT_ROLE)),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        now = current_time()
        sessions = db.query(ConsultationSession).filter(
            ConsultationSession.student_id == current_user.id,
            ConsultationSession.date >= now.date(),
            ConsultationSession.status.in_([BOOKED_STATUS, CANCELLED_STATUS]),
        ).order_by(ConsultationSession.date.asc(), ConsultationSession.start_time.asc()).all()

        return [serialize_session(session) for session in sessions if session.starts_at >= now]
    except SQLAlchemyError as exc:
        logger.exception('Failed to list sessions for student %s.', current_user.id)
        raise database_unavailable() from exc


@router.delete('/sessions/{session_id}', response_model=SessionResponse)
def cancel_session(
    session_id: int,
    current_user: User = Depends(require_role(STUDENT_ROLE)),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        session = db.query(ConsultationSession).filter(ConsultationSession.id == session_id).first()

        decision = check_cancellation(session, current_user.id, current_time())
        if not decision.ok:
            logger.info(
                'Rejected cancellation of session %s by student %s: %s.',
                session_id,
                current_user.id,
                decision.reason.value,
            )
            raise_rejection(decision)

        session.status = CANCELLED_STATUS
        db.commit()
        db.refresh(session)

        logger.info('Student %s cancelled session %s.', current_user.id, session_id)
        return serialize_session(session)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Failed to cancel session %s.', session_id)
        raise database_unavailable() from exc


@router.get('/sessions/today', response_model=list[SessionResponse])
def list_today_sessions(
    current_user: User = Depends(require_role(INSTRUCTOR_ROLE)),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        sessions = db.query(ConsultationSession).filter(
            ConsultationSession.instructor_id == current_user.id,
            ConsultationSession.date == current_time().date(),
            ConsultationSession.status == BOOKED_STATUS,
        ).order_by(ConsultationSession.start_time.asc()).all()

        return [serialize_session(session) for session in sessions]
    except SQLAlchemyError as exc:
        logger.exception('Failed to list today\'s sessions for instructor %s.', current_user.id)
        raise database_unavailable() from exc
