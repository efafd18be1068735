"""
Report Schemas

Data contracts for transcripts, gradebooks and offering statistics.
"""

from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel


# ============================================================
# Transcript
# ============================================================

class TranscriptQuiz(BaseModel):
    id: UUID
    title: str
    score: Optional[float] = None
    max_score: float
    percentage: Optional[float] = None
    status: str  # NOT_ATTEMPTED or an attempt status


class TranscriptOffering(BaseModel):
    id: UUID
    code: str
    course_name: str
    quizzes: List[TranscriptQuiz]
    total_score: float
    max_score: float
    percentage: float


class TranscriptSemester(BaseModel):
    name: str
    is_current: bool
    offerings: List[TranscriptOffering]


# ============================================================
# Gradebook
# ============================================================

class GradebookQuiz(BaseModel):
    id: UUID
    title: str
    max_score: float


class GradebookStudent(BaseModel):
    id: UUID
    name: str
    academic_id: Optional[str] = None
    quiz_scores: Dict[str, Optional[float]]  # quiz id -> score, None when not attempted
    total_score: float
    max_possible: float
    percentage: float


class GradebookResponse(BaseModel):
    offering_id: UUID
    quizzes: List[GradebookQuiz]
    students: List[GradebookStudent]


# ============================================================
# Statistics
# ============================================================

class DistributionBucket(BaseModel):
    label: str
    min_percentage: float
    count: int
    percentage: float


class OfferingStatsResponse(BaseModel):
    student_count: int
    quiz_count: int
    attempt_count: int
    avg_percentage: float
    min_percentage: float
    max_percentage: float
    distribution: List[DistributionBucket]
