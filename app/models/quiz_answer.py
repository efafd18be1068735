from sqlalchemy import Column, Float, Boolean, ForeignKey, DateTime, Text, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import BaseModel


class QuizAnswer(BaseModel):
    __tablename__ = "quiz_answers"
    __table_args__ = (
        # Upsert target: one answer per question per attempt
        UniqueConstraint("attempt_id", "question_id", name="uq_quiz_answer_attempt_question"),
    )

    attempt_id = Column(UUID(as_uuid=True), ForeignKey("quiz_attempts.id", ondelete="CASCADE"), nullable=False, index=True)
    question_id = Column(UUID(as_uuid=True), ForeignKey("quiz_questions.id", ondelete="RESTRICT"), nullable=False, index=True)

    # Answer
    selected_option_id = Column(UUID(as_uuid=True), ForeignKey("question_options.id", ondelete="SET NULL"), nullable=True)
    text_answer = Column(Text, nullable=True)

    # Grading (NULL until graded; stays NULL for short answers)
    is_correct = Column(Boolean, nullable=True)
    points_earned = Column(Float, default=0, nullable=False)

    answered_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    attempt = relationship("QuizAttempt", back_populates="answers")
