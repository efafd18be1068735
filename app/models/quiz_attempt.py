from sqlalchemy import Column, Float, ForeignKey, DateTime, Enum, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
import enum
from .base import BaseModel


class AttemptStatus(str, enum.Enum):
    IN_PROGRESS = "IN_PROGRESS"
    SUBMITTED = "SUBMITTED"
    GRADED = "GRADED"


TERMINAL_ATTEMPT_STATUSES = frozenset({AttemptStatus.SUBMITTED, AttemptStatus.GRADED})


class QuizAttempt(BaseModel):
    __tablename__ = "quiz_attempts"
    __table_args__ = (
        # One attempt per student per quiz
        UniqueConstraint("quiz_id", "student_id", name="uq_quiz_attempt_quiz_student"),
    )

    quiz_id = Column(UUID(as_uuid=True), ForeignKey("quizzes.id", ondelete="RESTRICT"), nullable=False, index=True)
    student_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)

    status = Column(
        Enum(AttemptStatus, name="attempt_status", values_callable=lambda x: [e.value for e in x]),
        default=AttemptStatus.IN_PROGRESS,
        nullable=False,
        index=True
    )

    # Results (nullable because filled on submission)
    score = Column(Float, nullable=True)
    percentage = Column(Float, nullable=True)

    # Timing
    started_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    submitted_at = Column(DateTime(timezone=True), nullable=True)
    graded_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    quiz = relationship("Quiz", back_populates="attempts")
    student = relationship("User", back_populates="quiz_attempts")
    answers = relationship("QuizAnswer", back_populates="attempt", cascade="all, delete-orphan")
