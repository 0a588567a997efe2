"""Course model definitions."""

from sqlalchemy import Column, ForeignKey, Integer, String, Table
from sqlalchemy.orm import relationship
from edunex.database import Base


course_enrollments = Table(
    "course_enrollments",
    Base.metadata,
    Column("course_id", Integer, ForeignKey("courses.id", ondelete="CASCADE"), primary_key=True),
    Column("student_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class Course(Base):
    """A course taught by one instructor; only enrolled students may book consultations."""
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True)
    title = Column(String, nullable=False)
    instructor_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    instructor = relationship("User", foreign_keys=[instructor_id])
    students = relationship("User", secondary=course_enrollments)

    def is_enrolled(self, student_id: int) -> bool:
        return any(student.id == student_id for student in self.students)
