from sqlalchemy import Column, Integer, Float, Boolean, ForeignKey, Text, Enum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
import enum
from .base import BaseModel


class QuestionType(str, enum.Enum):
    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    TRUE_FALSE = "TRUE_FALSE"
    SHORT_ANSWER = "SHORT_ANSWER"


# Auto-gradable by matching the selected option
OBJECTIVE_TYPES = frozenset({QuestionType.MULTIPLE_CHOICE, QuestionType.TRUE_FALSE})


class QuestionDifficulty(str, enum.Enum):
    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"


class QuizQuestion(BaseModel):
    __tablename__ = "quiz_questions"

    quiz_id = Column(UUID(as_uuid=True), ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True)

    # Question content
    question_type = Column(
        Enum(QuestionType, name="question_type", values_callable=lambda x: [e.value for e in x]),
        nullable=False
    )
    difficulty = Column(
        Enum(QuestionDifficulty, name="question_difficulty", values_callable=lambda x: [e.value for e in x]),
        default=QuestionDifficulty.MEDIUM,
        nullable=False
    )
    question_text = Column(Text, nullable=False)
    explanation = Column(Text, nullable=True)  # shown after submission when review is allowed

    # Metadata
    points = Column(Float, default=1, nullable=False)
    display_order = Column(Integer, default=0, nullable=False)
    is_ai_generated = Column(Boolean, default=False, nullable=False)

    # Relationships
    quiz = relationship("Quiz", back_populates="questions")
    options = relationship("QuestionOption", back_populates="question", cascade="all, delete-orphan", order_by="QuestionOption.display_order")
