from sqlalchemy import Column, String, Integer, Boolean, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import BaseModel


class QuestionOption(BaseModel):
    __tablename__ = "question_options"

    question_id = Column(UUID(as_uuid=True), ForeignKey("quiz_questions.id", ondelete="CASCADE"), nullable=False, index=True)

    option_text = Column(String(1000), nullable=False)
    is_correct = Column(Boolean, default=False, nullable=False)  # never sent to students mid-attempt
    display_order = Column(Integer, default=0, nullable=False)

    # Relationships
    question = relationship("QuizQuestion", back_populates="options")
