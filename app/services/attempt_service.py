"""
Attempt Service

The quiz attempt lifecycle for students:

    start_attempt -> get_attempt_view / save_answer (autosave)
                  -> submit_quiz, or force_submit once the time limit is spent
                  -> get_quiz_result

Expiry is checked lazily on every read or write that touches an in-progress
attempt; there is no scheduler. Each public method commits at most once and
leaves rollback to the caller when it raises (see `app.api.actions.run_action`).
"""

import logging
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    AlreadyCompletedError,
    AttemptExpiredError,
    NotEligibleError,
    NotFoundError,
    QuizValidationError,
    UnauthorizedError,
)
from app.models.quiz import QuizStatus
from app.models.quiz_attempt import AttemptStatus, TERMINAL_ATTEMPT_STATUSES
from app.repositories.enrollment_repo import EnrollmentRepository
from app.repositories.quiz_repo import (
    QuizRepository,
    QuizAttemptRepository,
    QuizAnswerRepository,
)
from app.schemas.attempt import (
    AnswerSubmission,
    QuizResultView,
    QuizTakingView,
    RemainingTimeResponse,
    StartAttemptResponse,
    StudentAttemptSummary,
    StudentQuizItem,
    SubmitQuizResponse,
)
from app.services.grading import compute_percentage, score_attempt
from app.services.quiz_view_builder import build_result_view, build_taking_view
from app.utils.timing import is_time_expired, remaining_seconds, utc_now

logger = logging.getLogger(__name__)


class AttemptService:
    """
    Student-side quiz operations.

    Repositories default to ones bound to `db`; tests pass in-memory fakes.
    """

    def __init__(
        self,
        db: AsyncSession,
        quiz_repo=None,
        attempt_repo=None,
        answer_repo=None,
        enrollment_repo=None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.quiz_repo = quiz_repo or QuizRepository(db)
        self.attempt_repo = attempt_repo or QuizAttemptRepository(db)
        self.answer_repo = answer_repo or QuizAnswerRepository(db)
        self.enrollment_repo = enrollment_repo or EnrollmentRepository(db)
        self.clock = clock

    # ============================================================
    # HELPERS
    # ============================================================

    async def _get_owned_attempt(self, attempt_id: UUID, student_id: UUID):
        attempt = await self.attempt_repo.get_by_id(attempt_id)
        if not attempt:
            raise NotFoundError("Attempt not found")
        if attempt.student_id != student_id:
            raise UnauthorizedError("This attempt belongs to another student")
        return attempt

    @staticmethod
    def _ensure_in_progress(attempt) -> None:
        if AttemptStatus(attempt.status) != AttemptStatus.IN_PROGRESS:
            raise AlreadyCompletedError()

    async def _get_quiz(self, quiz_id: UUID):
        quiz = await self.quiz_repo.get_with_questions(quiz_id)
        if not quiz:
            raise NotFoundError("Quiz not found")
        return quiz

    @staticmethod
    def _check_window(quiz, now: datetime) -> None:
        if quiz.start_time and now < quiz.start_time:
            raise NotEligibleError("Quiz has not started yet")
        if quiz.end_time and now > quiz.end_time:
            raise NotEligibleError("Quiz has ended")

    @staticmethod
    def _check_option(question, selected_option_id: Optional[UUID]) -> None:
        if selected_option_id is None:
            return
        if not any(str(o.id) == str(selected_option_id) for o in question.options):
            raise QuizValidationError("Selected option does not belong to this question")

    async def _finalize(self, quiz, attempt, now: datetime) -> Optional[Tuple[float, float]]:
        """
        Claim IN_PROGRESS -> SUBMITTED, then grade every stored answer.

        Returns (score, percentage), or None when another request already
        submitted the attempt. Does not commit.
        """
        claimed = await self.attempt_repo.claim_submission(attempt.id, now)
        if not claimed:
            return None

        answers = await self.answer_repo.get_by_attempt(attempt.id)
        score, graded = score_attempt(quiz.questions, answers)
        for answer, result in graded:
            await self.answer_repo.apply_grade(answer.id, result.is_correct, result.points_earned)

        percentage = compute_percentage(score, quiz.total_points)
        await self.attempt_repo.record_score(attempt.id, score, percentage)
        return score, percentage

    async def _expire(self, quiz, attempt, now: datetime) -> None:
        """Force-submit an attempt found past its deadline, commit, and report it."""
        result = await self._finalize(quiz, attempt, now)
        await self.db.commit()
        if result is not None:
            score, percentage = result
            logger.info(f"Attempt {attempt.id} force-submitted after deadline (score={score}, percentage={percentage:.1f})")
        raise AttemptExpiredError()

    # ============================================================
    # START
    # ============================================================

    async def start_attempt(self, quiz_id: UUID, student_id: UUID) -> StartAttemptResponse:
        """
        Start, or resume, the student's single attempt at a quiz.

        Raises:
            NotFoundError: quiz missing or deleted
            NotEligibleError: not published, not enrolled, outside the window
            AlreadyCompletedError: the student already submitted
        """
        now = self.clock()

        quiz = await self.quiz_repo.get_active(quiz_id)
        if not quiz:
            raise NotFoundError("Quiz not found")
        if QuizStatus(quiz.status) != QuizStatus.PUBLISHED:
            raise NotEligibleError("Quiz is not available")
        if not await self.enrollment_repo.is_enrolled(student_id, quiz.offering_id):
            raise NotEligibleError("You are not enrolled in this course")

        existing = await self.attempt_repo.get_by_quiz_and_student(quiz_id, student_id)
        if existing:
            if AttemptStatus(existing.status) in TERMINAL_ATTEMPT_STATUSES:
                raise AlreadyCompletedError("You have already completed this quiz")
            return StartAttemptResponse(attempt_id=existing.id)

        self._check_window(quiz, now)

        try:
            attempt = await self.attempt_repo.create(
                quiz_id=quiz_id,
                student_id=student_id,
                status=AttemptStatus.IN_PROGRESS,
                started_at=now,
            )
            await self.db.commit()
        except IntegrityError:
            # Lost the race on (quiz_id, student_id): hand back the winner's attempt
            await self.db.rollback()
            existing = await self.attempt_repo.get_by_quiz_and_student(quiz_id, student_id)
            if existing is None:
                raise
            if AttemptStatus(existing.status) in TERMINAL_ATTEMPT_STATUSES:
                raise AlreadyCompletedError("You have already completed this quiz")
            return StartAttemptResponse(attempt_id=existing.id)

        logger.info(f"Attempt {attempt.id} started: quiz={quiz_id} student={student_id}")
        return StartAttemptResponse(attempt_id=attempt.id)

    # ============================================================
    # TAKING
    # ============================================================

    async def get_attempt_view(self, attempt_id: UUID, student_id: UUID) -> QuizTakingView:
        """The sanitized quiz for an in-progress attempt, with saved answers."""
        attempt = await self._get_owned_attempt(attempt_id, student_id)
        self._ensure_in_progress(attempt)
        quiz = await self._get_quiz(attempt.quiz_id)

        now = self.clock()
        if is_time_expired(attempt.started_at, quiz.duration_minutes, now):
            await self._expire(quiz, attempt, now)

        answers = await self.answer_repo.get_by_attempt(attempt.id)
        return build_taking_view(quiz, attempt, answers, now)

    async def save_answer(
        self,
        attempt_id: UUID,
        student_id: UUID,
        question_id: UUID,
        selected_option_id: Optional[UUID] = None,
        text_answer: Optional[str] = None,
    ) -> None:
        """Autosave one answer. Nothing is graded here."""
        attempt = await self._get_owned_attempt(attempt_id, student_id)
        self._ensure_in_progress(attempt)
        quiz = await self._get_quiz(attempt.quiz_id)

        now = self.clock()
        if is_time_expired(attempt.started_at, quiz.duration_minutes, now):
            await self._expire(quiz, attempt, now)

        question = next((q for q in quiz.questions if str(q.id) == str(question_id)), None)
        if question is None:
            raise NotFoundError("Question not found in this quiz")
        self._check_option(question, selected_option_id)

        await self.answer_repo.upsert_answer(
            attempt_id=attempt.id,
            question_id=question.id,
            selected_option_id=selected_option_id,
            text_answer=text_answer,
            answered_at=now,
        )
        await self.db.commit()

    # ============================================================
    # SUBMISSION
    # ============================================================

    async def submit_quiz(
        self,
        attempt_id: UUID,
        student_id: UUID,
        answers: Iterable[AnswerSubmission] = (),
    ) -> SubmitQuizResponse:
        """
        Persist the final batch of answers, grade everything stored, and close
        the attempt.

        A submit that arrives after the deadline discards the batch and
        force-submits what was already saved.
        """
        attempt = await self._get_owned_attempt(attempt_id, student_id)
        self._ensure_in_progress(attempt)
        quiz = await self._get_quiz(attempt.quiz_id)

        now = self.clock()
        if is_time_expired(attempt.started_at, quiz.duration_minutes, now):
            await self._expire(quiz, attempt, now)

        questions = {str(q.id): q for q in quiz.questions}
        for submission in answers:
            question = questions.get(str(submission.question_id))
            if question is None:
                logger.debug(f"Attempt {attempt.id}: skipping unknown question {submission.question_id}")
                continue
            self._check_option(question, submission.selected_option_id)
            await self.answer_repo.upsert_answer(
                attempt_id=attempt.id,
                question_id=question.id,
                selected_option_id=submission.selected_option_id,
                text_answer=submission.text_answer,
                answered_at=now,
            )

        result = await self._finalize(quiz, attempt, now)
        if result is None:
            raise AlreadyCompletedError()

        await self.db.commit()
        score, percentage = result
        logger.info(f"Attempt {attempt.id} submitted (score={score}, percentage={percentage:.1f})")
        return SubmitQuizResponse(score=score, percentage=percentage)

    async def force_submit(self, attempt_id: UUID) -> None:
        """
        Grade and close an attempt using only its stored answers.

        Silently does nothing unless the attempt is still in progress.
        """
        attempt = await self.attempt_repo.get_by_id(attempt_id)
        if not attempt or AttemptStatus(attempt.status) != AttemptStatus.IN_PROGRESS:
            return

        quiz = await self.quiz_repo.get_with_questions(attempt.quiz_id)
        if not quiz:
            return

        result = await self._finalize(quiz, attempt, self.clock())
        if result is None:
            return
        await self.db.commit()
        score, percentage = result
        logger.info(f"Attempt {attempt.id} force-submitted (score={score}, percentage={percentage:.1f})")

    # ============================================================
    # READS
    # ============================================================

    async def get_remaining_time(self, attempt_id: UUID, student_id: UUID) -> RemainingTimeResponse:
        attempt = await self._get_owned_attempt(attempt_id, student_id)
        quiz = await self.quiz_repo.get_active(attempt.quiz_id)
        if not quiz:
            raise NotFoundError("Quiz not found")

        remaining = remaining_seconds(attempt.started_at, quiz.duration_minutes, self.clock())
        return RemainingTimeResponse(remaining_seconds=remaining, is_expired=remaining <= 0)

    async def get_quiz_result(self, attempt_id: UUID, student_id: UUID) -> QuizResultView:
        attempt = await self._get_owned_attempt(attempt_id, student_id)
        quiz = await self._get_quiz(attempt.quiz_id)
        answers = await self.answer_repo.get_by_attempt(attempt.id)
        return build_result_view(quiz, attempt, answers)

    async def list_student_quizzes(self, student_id: UUID) -> List[StudentQuizItem]:
        """Published quizzes in the student's active enrollments, newest first."""
        offering_ids = await self.enrollment_repo.offering_ids_for_student(student_id)
        if not offering_ids:
            return []

        quizzes = await self.quiz_repo.list_published_for_offerings(offering_ids)
        attempts = await self.attempt_repo.list_by_student(student_id, [q.id for q in quizzes])
        attempts_by_quiz = {str(a.quiz_id): a for a in attempts}

        items = []
        for quiz in quizzes:
            attempt = attempts_by_quiz.get(str(quiz.id))
            items.append(
                StudentQuizItem(
                    id=quiz.id,
                    title=quiz.title,
                    description=quiz.description,
                    status=quiz.status,
                    duration_minutes=quiz.duration_minutes,
                    total_points=quiz.total_points,
                    question_count=len(quiz.questions),
                    start_time=quiz.start_time,
                    end_time=quiz.end_time,
                    offering_id=quiz.offering_id,
                    offering_code=quiz.offering.code,
                    course_name=quiz.offering.course_name,
                    attempt=StudentAttemptSummary.model_validate(attempt) if attempt else None,
                )
            )
        return items
