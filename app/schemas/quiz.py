"""
Quiz Schemas

Pydantic models for quiz authoring requests and responses.
Student-side attempt models live in `app.schemas.attempt`.
"""

from datetime import datetime
from typing import Optional, List
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from app.core.config import settings
from app.models.quiz import QuizStatus
from app.models.quiz_question import QuestionType, QuestionDifficulty


# ============================================================
# Request Schemas
# ============================================================

class OptionInput(BaseModel):
    """One answer option as written by the instructor."""
    id: Optional[UUID] = None
    option_text: str = Field(..., min_length=1, max_length=1000)
    is_correct: bool = False
    display_order: int = Field(default=0, ge=0)


class QuestionInput(BaseModel):
    """A question with its options. Type-specific rules are checked by the service."""
    id: Optional[UUID] = None
    question_type: QuestionType
    difficulty: QuestionDifficulty = QuestionDifficulty.MEDIUM
    question_text: str = Field(..., min_length=3)
    explanation: Optional[str] = None
    points: float = Field(default=1, gt=0, description="Points awarded for a correct answer")
    options: List[OptionInput] = Field(default_factory=list)

    @field_validator("question_text")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 3:
            raise ValueError("Question text must be at least 3 characters")
        return v


class QuizCreateRequest(BaseModel):
    title: str = Field(..., min_length=3, max_length=200)
    description: Optional[str] = None
    offering_id: UUID
    duration_minutes: int = Field(
        default_factory=lambda: settings.QUIZ_DEFAULT_DURATION_MINUTES,
        ge=1,
        le=600,
    )
    passing_score: float = Field(
        default_factory=lambda: settings.QUIZ_DEFAULT_PASSING_SCORE,
        ge=0,
        le=100,
    )


class QuizUpdateRequest(BaseModel):
    """
    Quiz settings. On a DRAFT quiz every field applies; once published only
    the availability window (start_time / end_time) may change.
    """
    title: str = Field(..., min_length=3, max_length=200)
    description: Optional[str] = None
    duration_minutes: int = Field(..., ge=1, le=600)
    passing_score: float = Field(..., ge=0, le=100)
    shuffle_questions: Optional[bool] = None
    shuffle_options: Optional[bool] = None
    show_results: Optional[bool] = None
    allow_review: Optional[bool] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    @model_validator(mode="after")
    def check_window(self):
        if self.start_time and self.end_time and self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class ReorderQuestionsRequest(BaseModel):
    question_ids: List[UUID] = Field(..., min_length=1)


class BulkSaveQuestionsRequest(BaseModel):
    questions: List[QuestionInput]


class GeneratedOption(BaseModel):
    option_text: str
    is_correct: bool = False


class GeneratedQuestion(BaseModel):
    """The question shape produced by the external AI generator."""
    question_type: QuestionType
    question_text: str = Field(..., min_length=5)
    difficulty: QuestionDifficulty = QuestionDifficulty.MEDIUM
    points: float = Field(default=1, ge=1, le=10)
    explanation: str = ""
    options: List[GeneratedOption] = Field(default_factory=list)


class ImportGeneratedQuestionsRequest(BaseModel):
    questions: List[GeneratedQuestion] = Field(..., min_length=1)

    @field_validator("questions")
    @classmethod
    def limit_count(cls, v: List[GeneratedQuestion]) -> List[GeneratedQuestion]:
        if len(v) > settings.AI_MAX_GENERATED_QUESTIONS:
            raise ValueError(
                f"At most {settings.AI_MAX_GENERATED_QUESTIONS} generated questions can be imported at once"
            )
        return v


# ============================================================
# Response Schemas
# ============================================================

class OptionDetailResponse(BaseModel):
    """Authoring view of an option, including the answer key."""
    id: UUID
    option_text: str
    is_correct: bool
    display_order: int

    class Config:
        from_attributes = True


class QuestionDetailResponse(BaseModel):
    id: UUID
    question_type: QuestionType
    difficulty: QuestionDifficulty
    question_text: str
    explanation: Optional[str] = None
    points: float
    display_order: int
    is_ai_generated: bool
    options: List[OptionDetailResponse]

    class Config:
        from_attributes = True


class QuizResponse(BaseModel):
    """Quiz metadata response."""
    id: UUID
    offering_id: UUID
    creator_id: UUID
    title: str
    description: Optional[str] = None
    status: QuizStatus
    duration_minutes: int
    total_points: float
    passing_score: float
    shuffle_questions: bool
    shuffle_options: bool
    show_results: bool
    allow_review: bool
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    question_count: int = 0
    attempt_count: int = 0
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class QuizDetailResponse(QuizResponse):
    """Quiz with questions and answer keys (authoring side)."""
    questions: List[QuestionDetailResponse]


class QuizListResponse(BaseModel):
    quizzes: List[QuizResponse]
    total: int


class QuizStatsResponse(BaseModel):
    total: int
    draft: int
    published: int
    closed: int


class OfferingOption(BaseModel):
    """An offering a quiz can be created for."""
    id: UUID
    code: str
    course_name: str
    semester_name: str

    class Config:
        from_attributes = True
