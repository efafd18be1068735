from sqlalchemy import Column, ForeignKey, DateTime, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import BaseModel


class Enrollment(BaseModel):
    """A student's membership in an offering. Active while dropped_at is NULL."""
    __tablename__ = "enrollments"
    __table_args__ = (
        UniqueConstraint("student_id", "offering_id", name="uq_enrollment_student_offering"),
    )

    student_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    offering_id = Column(UUID(as_uuid=True), ForeignKey("course_offerings.id", ondelete="RESTRICT"), nullable=False, index=True)

    enrolled_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    dropped_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    student = relationship("User", back_populates="enrollments")
    offering = relationship("CourseOffering", back_populates="enrollments")
