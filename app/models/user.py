from sqlalchemy import Column, String, Boolean
from sqlalchemy.orm import relationship
from .base import BaseModel


class User(BaseModel):
    """
    A student, instructor or administrator.

    Credentials and roles live in the identity service; this table only keeps
    what the academic records reference.
    """
    __tablename__ = "users"

    email = Column(String(255), unique=True, nullable=False, index=True)
    full_name = Column(String(150), nullable=False)
    academic_id = Column(String(50), unique=True, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    enrollments = relationship("Enrollment", back_populates="student")
    quiz_attempts = relationship("QuizAttempt", back_populates="student")
    taught_offerings = relationship("CourseOffering", back_populates="instructor")
