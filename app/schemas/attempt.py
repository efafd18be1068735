"""
Attempt Schemas

Student-side models: starting an attempt, the sanitized taking view,
autosave, submission and the graded result view.

The taking-view option model has no `is_correct` field at all, so the answer
key cannot leak through serialization.
"""

from datetime import datetime
from typing import Optional, List
from uuid import UUID

from pydantic import BaseModel, Field

from app.models.quiz import QuizStatus
from app.models.quiz_attempt import AttemptStatus
from app.models.quiz_question import QuestionType


# ============================================================
# Request Schemas
# ============================================================

class SaveAnswerRequest(BaseModel):
    """Autosave of a single answer. Re-saving replaces the previous value."""
    question_id: UUID
    selected_option_id: Optional[UUID] = None
    text_answer: Optional[str] = Field(default=None, max_length=10000)


class AnswerSubmission(BaseModel):
    question_id: UUID
    selected_option_id: Optional[UUID] = None
    text_answer: Optional[str] = Field(default=None, max_length=10000)


class SubmitQuizRequest(BaseModel):
    """Final batch of answers sent together with the submit."""
    answers: List[AnswerSubmission] = Field(default_factory=list)


# ============================================================
# Taking View
# ============================================================

class TakingOption(BaseModel):
    id: UUID
    option_text: str
    display_order: int


class SavedAnswer(BaseModel):
    selected_option_id: Optional[UUID] = None
    text_answer: Optional[str] = None


class TakingQuestion(BaseModel):
    id: UUID
    question_type: QuestionType
    question_text: str
    points: float
    display_order: int
    options: List[TakingOption]
    saved_answer: Optional[SavedAnswer] = None


class AttemptInfo(BaseModel):
    id: UUID
    started_at: datetime
    deadline: datetime


class QuizTakingView(BaseModel):
    """Everything the student sees while taking a quiz."""
    id: UUID
    title: str
    description: Optional[str] = None
    duration_minutes: int
    total_points: float
    remaining_seconds: int
    attempt: AttemptInfo
    questions: List[TakingQuestion]


# ============================================================
# Result View
# ============================================================

class ResultOption(BaseModel):
    id: UUID
    option_text: str
    is_correct: bool


class ResultQuestion(BaseModel):
    id: UUID
    question_type: QuestionType
    question_text: str
    points: float
    display_order: int
    explanation: Optional[str] = None
    options: List[ResultOption]
    selected_option_id: Optional[UUID] = None
    text_answer: Optional[str] = None
    is_correct: Optional[bool] = None
    points_earned: float = 0
    correct_option_id: Optional[UUID] = None


class ResultAttemptInfo(BaseModel):
    id: UUID
    status: AttemptStatus
    score: Optional[float] = None
    percentage: Optional[float] = None
    passed: bool
    started_at: datetime
    submitted_at: Optional[datetime] = None


class QuizResultView(BaseModel):
    id: UUID
    title: str
    total_points: float
    passing_score: float
    allow_review: bool
    attempt: ResultAttemptInfo
    questions: List[ResultQuestion]


# ============================================================
# Small Responses
# ============================================================

class StartAttemptResponse(BaseModel):
    attempt_id: UUID


class SubmitQuizResponse(BaseModel):
    score: float
    percentage: float


class RemainingTimeResponse(BaseModel):
    remaining_seconds: int
    is_expired: bool


class StudentAttemptSummary(BaseModel):
    id: UUID
    status: AttemptStatus
    started_at: datetime
    submitted_at: Optional[datetime] = None
    score: Optional[float] = None
    percentage: Optional[float] = None

    class Config:
        from_attributes = True


class StudentQuizItem(BaseModel):
    """A published quiz in one of the student's offerings."""
    id: UUID
    title: str
    description: Optional[str] = None
    status: QuizStatus
    duration_minutes: int
    total_points: float
    question_count: int
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    offering_id: UUID
    offering_code: str
    course_name: str
    attempt: Optional[StudentAttemptSummary] = None
