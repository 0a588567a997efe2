"""User model definitions."""

from sqlalchemy import Column, Integer, String
from edunex.database import Base

STUDENT_ROLE = "student"
INSTRUCTOR_ROLE = "instructor"


class User(Base):
    """Represents an application user."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String)
    role = Column(String, nullable=False, default=STUDENT_ROLE)  # student/instructor/admin
