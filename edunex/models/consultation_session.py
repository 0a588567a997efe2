"""Consultation session model definitions."""

from datetime import datetime

from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, Integer, String, Time, func, text
from sqlalchemy.orm import relationship
from edunex.database import Base

BOOKED_STATUS = "booked"
CANCELLED_STATUS = "cancelled"


class ConsultationSession(Base):
    """A consultation booked by a student with a course instructor."""
    __tablename__ = "consultation_sessions"
    __table_args__ = (
        Index(
            "uq_consultation_sessions_booked_start",
            "instructor_id",
            "date",
            "start_time",
            unique=True,
            sqlite_where=text("status = 'booked'"),
            postgresql_where=text("status = 'booked'"),
        ),
        Index("idx_consultation_sessions_student_date", "student_id", "date"),
    )

    id = Column(Integer, primary_key=True)
    instructor_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False)
    date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    status = Column(String, nullable=False, default=BOOKED_STATUS)  # booked/completed/cancelled
    student_note = Column(String, default="")
    instructor_note = Column(String, default="")
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    instructor = relationship("User", foreign_keys=[instructor_id])
    course = relationship("Course")

    @property
    def starts_at(self) -> datetime:
        return datetime.combine(self.date, self.start_time)
