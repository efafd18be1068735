from sqlalchemy import Column, String, Integer, Boolean, ForeignKey, DateTime
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import BaseModel


class CourseOffering(BaseModel):
    """One section of a course in a semester; quizzes and enrollments hang off it."""
    __tablename__ = "course_offerings"

    code = Column(String(50), unique=True, nullable=False, index=True)
    course_name = Column(String(200), nullable=False)
    section = Column(String(20), default="1", nullable=False)
    semester_name = Column(String(100), nullable=False)
    is_current_semester = Column(Boolean, default=False, nullable=False)
    max_students = Column(Integer, default=50, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    instructor_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)

    # Relationships
    instructor = relationship("User", back_populates="taught_offerings")
    enrollments = relationship("Enrollment", back_populates="offering")
    quizzes = relationship("Quiz", back_populates="offering")
