from sqlalchemy import Column, String, Integer, Float, Boolean, ForeignKey, Text, DateTime, Enum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
import enum
from .base import BaseModel


class QuizStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    CLOSED = "CLOSED"


class Quiz(BaseModel):
    __tablename__ = "quizzes"

    offering_id = Column(UUID(as_uuid=True), ForeignKey("course_offerings.id", ondelete="RESTRICT"), nullable=False, index=True)
    creator_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)

    # Quiz info
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(
        Enum(
            QuizStatus,
            name="quiz_status",
            values_callable=lambda x: [e.value for e in x]
        ),
        default=QuizStatus.DRAFT,
        nullable=False,
        index=True
    )

    # Settings
    duration_minutes = Column(Integer, default=30, nullable=False)
    passing_score = Column(Float, default=60.0, nullable=False)  # percentage, 60 = 60%
    shuffle_questions = Column(Boolean, default=False, nullable=False)
    shuffle_options = Column(Boolean, default=False, nullable=False)
    show_results = Column(Boolean, default=True, nullable=False)
    allow_review = Column(Boolean, default=True, nullable=False)

    # Availability window (NULL = open-ended)
    start_time = Column(DateTime(timezone=True), nullable=True)
    end_time = Column(DateTime(timezone=True), nullable=True)

    # Derived: always the sum of question points
    total_points = Column(Float, default=0, nullable=False)

    deleted_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    offering = relationship("CourseOffering", back_populates="quizzes")
    questions = relationship("QuizQuestion", back_populates="quiz", cascade="all, delete-orphan", order_by="QuizQuestion.display_order")
    attempts = relationship("QuizAttempt", back_populates="quiz")
