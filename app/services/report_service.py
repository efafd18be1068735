"""
Report Service

Read-only aggregates over quiz attempts:
- Student transcript, grouped by semester
- Instructor gradebook (student x quiz matrix)
- Offering statistics and grade distribution
"""

import logging
from typing import Dict, List, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, UnauthorizedError
from app.core.permissions import CurrentUser
from app.models.quiz_attempt import TERMINAL_ATTEMPT_STATUSES, AttemptStatus
from app.repositories.enrollment_repo import EnrollmentRepository, OfferingRepository
from app.repositories.quiz_repo import QuizRepository, QuizAttemptRepository
from app.schemas.report import (
    DistributionBucket,
    GradebookQuiz,
    GradebookResponse,
    GradebookStudent,
    OfferingStatsResponse,
    TranscriptOffering,
    TranscriptQuiz,
    TranscriptSemester,
)
from app.services.grading import compute_percentage

logger = logging.getLogger(__name__)

# (label, lower bound in percent), highest first
GRADE_BUCKETS: Tuple[Tuple[str, float], ...] = (
    ("Excellent (90-100)", 90),
    ("Very good (80-89)", 80),
    ("Good (70-79)", 70),
    ("Pass (60-69)", 60),
    ("Fail (0-59)", 0),
)


class ReportService:
    """Service for transcripts, gradebooks and statistics."""

    def __init__(
        self,
        db: AsyncSession,
        quiz_repo=None,
        attempt_repo=None,
        offering_repo=None,
        enrollment_repo=None,
    ):
        self.db = db
        self.quiz_repo = quiz_repo or QuizRepository(db)
        self.attempt_repo = attempt_repo or QuizAttemptRepository(db)
        self.offering_repo = offering_repo or OfferingRepository(db)
        self.enrollment_repo = enrollment_repo or EnrollmentRepository(db)

    async def _get_offering_for(self, offering_id: UUID, user: CurrentUser):
        """The offering, if `user` teaches it or holds a system role."""
        offering = await self.offering_repo.get_active(offering_id)
        if not offering:
            raise NotFoundError("Course offering not found")
        if offering.instructor_id != user.id and not user.is_system_role:
            raise UnauthorizedError("You do not have access to this offering")
        return offering

    # ============================================================
    # TRANSCRIPT
    # ============================================================

    async def get_student_transcript(self, student_id: UUID) -> List[TranscriptSemester]:
        """Published quiz results per enrolled offering, current semester first."""
        offerings = await self.enrollment_repo.offerings_for_student(student_id)
        if not offerings:
            return []

        quizzes = await self.quiz_repo.list_published_for_offerings([o.id for o in offerings])
        attempts = await self.attempt_repo.list_by_student(student_id, [q.id for q in quizzes])
        attempts_by_quiz = {str(a.quiz_id): a for a in attempts}

        quizzes_by_offering: Dict[str, list] = {}
        for quiz in quizzes:
            quizzes_by_offering.setdefault(str(quiz.offering_id), []).append(quiz)

        semesters: Dict[str, TranscriptSemester] = {}
        for offering in offerings:
            rows = []
            for quiz in quizzes_by_offering.get(str(offering.id), []):
                attempt = attempts_by_quiz.get(str(quiz.id))
                rows.append(
                    TranscriptQuiz(
                        id=quiz.id,
                        title=quiz.title,
                        score=attempt.score if attempt else None,
                        max_score=quiz.total_points,
                        percentage=attempt.percentage if attempt else None,
                        status=AttemptStatus(attempt.status).value if attempt else "NOT_ATTEMPTED",
                    )
                )

            total_score = sum(r.score or 0 for r in rows)
            max_score = sum(r.max_score for r in rows)

            semester = semesters.setdefault(
                offering.semester_name,
                TranscriptSemester(
                    name=offering.semester_name,
                    is_current=offering.is_current_semester,
                    offerings=[],
                ),
            )
            semester.offerings.append(
                TranscriptOffering(
                    id=offering.id,
                    code=offering.code,
                    course_name=offering.course_name,
                    quizzes=rows,
                    total_score=total_score,
                    max_score=max_score,
                    percentage=compute_percentage(total_score, max_score),
                )
            )

        # Stable sort keeps the repository's ordering inside each group
        return sorted(semesters.values(), key=lambda s: not s.is_current)

    # ============================================================
    # GRADEBOOK
    # ============================================================

    async def get_offering_gradebook(self, offering_id: UUID, user: CurrentUser) -> GradebookResponse:
        offering = await self._get_offering_for(offering_id, user)

        quizzes = await self.quiz_repo.list_for_offering(offering.id)
        attempts = await self.attempt_repo.list_for_quizzes([q.id for q in quizzes])
        scores = {(str(a.student_id), str(a.quiz_id)): a.score for a in attempts}
        max_possible = sum(q.total_points for q in quizzes)

        students = []
        for student_id, name, academic_id in await self.enrollment_repo.students_in_offering(offering.id):
            quiz_scores = {
                str(q.id): scores.get((str(student_id), str(q.id)))
                for q in quizzes
            }
            total = sum(s or 0 for s in quiz_scores.values())
            students.append(
                GradebookStudent(
                    id=student_id,
                    name=name,
                    academic_id=academic_id,
                    quiz_scores=quiz_scores,
                    total_score=total,
                    max_possible=max_possible,
                    percentage=compute_percentage(total, max_possible),
                )
            )

        students.sort(key=lambda s: s.name.lower())
        return GradebookResponse(
            offering_id=offering.id,
            quizzes=[GradebookQuiz(id=q.id, title=q.title, max_score=q.total_points) for q in quizzes],
            students=students,
        )

    # ============================================================
    # STATISTICS
    # ============================================================

    async def get_offering_stats(self, offering_id: UUID, user: CurrentUser) -> OfferingStatsResponse:
        offering = await self._get_offering_for(offering_id, user)

        student_ids = await self.enrollment_repo.active_student_ids(offering.id)
        quizzes = await self.quiz_repo.list_for_offering(offering.id, include_drafts=True)
        attempts = await self.attempt_repo.list_for_quizzes([q.id for q in quizzes])

        percentages = [
            a.percentage
            for a in attempts
            if AttemptStatus(a.status) in TERMINAL_ATTEMPT_STATUSES and a.percentage is not None
        ]

        counts = {label: 0 for label, _ in GRADE_BUCKETS}
        for value in percentages:
            for label, lower in GRADE_BUCKETS:
                if value >= lower:
                    counts[label] += 1
                    break

        total = len(percentages)
        return OfferingStatsResponse(
            student_count=len(student_ids),
            quiz_count=len(quizzes),
            attempt_count=total,
            avg_percentage=sum(percentages) / total if total else 0,
            min_percentage=min(percentages) if total else 0,
            max_percentage=max(percentages) if total else 0,
            distribution=[
                DistributionBucket(
                    label=label,
                    min_percentage=lower,
                    count=counts[label],
                    percentage=counts[label] / total * 100 if total else 0,
                )
                for label, lower in GRADE_BUCKETS
            ],
        )
