"""Instructor availability model definitions."""

from sqlalchemy import JSON, Boolean, Column, Date, DateTime, ForeignKey, Integer, String, UniqueConstraint, func
from edunex.database import Base


class Availability(Base):
    """One instructor's bookable time ranges for a single calendar day.

    ``time_ranges`` holds a list of ``{"start_time": "HH:MM", "end_time": "HH:MM", "note": str}``
    objects in the order the instructor entered them. Ranges are neither sorted nor merged.
    """
    __tablename__ = "instructor_availability"
    __table_args__ = (
        UniqueConstraint("instructor_id", "date", name="uq_instructor_availability_day"),
    )

    id = Column(Integer, primary_key=True)
    instructor_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    time_ranges = Column(JSON, nullable=False, default=list)
    day_note = Column(String, default="")
    is_blocked = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
