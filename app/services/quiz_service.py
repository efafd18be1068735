"""
Quiz Service

Business logic for quiz authoring:
- Quiz CRUD, lifecycle (DRAFT -> PUBLISHED -> CLOSED -> reopen) and duplication
- Question editing while the quiz is a draft
- Importing questions produced by the AI generator

Every method that changes questions recomputes `Quiz.total_points` from the
questions it leaves behind.
"""

import logging
import uuid
from typing import Callable, List, Optional, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    InvalidStateError,
    NotFoundError,
    QuizValidationError,
)
from app.core.permissions import CurrentUser
from app.models.question_option import QuestionOption
from app.models.quiz import Quiz, QuizStatus
from app.models.quiz_question import QuizQuestion, QuestionType
from app.repositories.enrollment_repo import EnrollmentRepository, OfferingRepository
from app.repositories.quiz_repo import QuizRepository, QuizAttemptRepository
from app.schemas.quiz import (
    GeneratedQuestion,
    ImportGeneratedQuestionsRequest,
    OfferingOption,
    OptionInput,
    QuestionDetailResponse,
    QuestionInput,
    QuizCreateRequest,
    QuizDetailResponse,
    QuizListResponse,
    QuizResponse,
    QuizStatsResponse,
    QuizUpdateRequest,
)
from app.services.notification_service import dispatch_notification
from app.utils.timing import utc_now

logger = logging.getLogger(__name__)


# ============================================================
# QUESTION RULES
# ============================================================

def validate_question(data: QuestionInput) -> None:
    """
    Enforce the per-type option rules.

    Raises:
        QuizValidationError: with a message naming the broken rule
    """
    correct = sum(1 for o in data.options if o.is_correct)

    if data.question_type == QuestionType.MULTIPLE_CHOICE:
        if len(data.options) < 2:
            raise QuizValidationError("Multiple choice questions need at least 2 options")
        if correct < 1:
            raise QuizValidationError("Multiple choice questions need at least one correct option")

    elif data.question_type == QuestionType.TRUE_FALSE:
        if len(data.options) != 2:
            raise QuizValidationError("True/false questions need exactly 2 options")
        if correct != 1:
            raise QuizValidationError("True/false questions need exactly one correct option")

    elif data.options:
        raise QuizValidationError("Short answer questions cannot have options")


def normalize_generated_question(generated: GeneratedQuestion) -> QuestionInput:
    """
    Coerce a generator-produced question into a valid one.

    Short answers lose their options; a true/false question without a proper
    pair gets the canonical True/False pair; a multiple choice question without
    exactly one correct option gets its first option marked correct.
    """
    options = [OptionInput(option_text=o.option_text, is_correct=o.is_correct) for o in generated.options]

    if generated.question_type == QuestionType.SHORT_ANSWER:
        options = []

    elif generated.question_type == QuestionType.TRUE_FALSE:
        correct = [o for o in options if o.is_correct]
        if len(options) != 2 or len(correct) != 1:
            is_true = any(o.is_correct and "true" in o.option_text.lower() for o in options)
            options = [
                OptionInput(option_text="True", is_correct=is_true),
                OptionInput(option_text="False", is_correct=not is_true),
            ]

    elif sum(1 for o in options if o.is_correct) != 1 and options:
        options = [
            OptionInput(option_text=o.option_text, is_correct=(i == 0))
            for i, o in enumerate(options)
        ]

    return QuestionInput(
        question_type=generated.question_type,
        difficulty=generated.difficulty,
        question_text=generated.question_text,
        explanation=generated.explanation or None,
        points=generated.points,
        options=options,
    )


def _build_options(options: Sequence[OptionInput]) -> List[QuestionOption]:
    return [
        QuestionOption(
            id=uuid.uuid4(),
            option_text=o.option_text,
            is_correct=o.is_correct,
            display_order=index,
        )
        for index, o in enumerate(options)
    ]


def _apply_question(question: QuizQuestion, data: QuestionInput) -> None:
    question.question_type = data.question_type
    question.difficulty = data.difficulty
    question.question_text = data.question_text
    question.explanation = data.explanation
    question.points = data.points
    question.options = _build_options(data.options)


class QuizService:
    """Service for quiz authoring and lifecycle."""

    def __init__(
        self,
        db: AsyncSession,
        quiz_repo=None,
        attempt_repo=None,
        offering_repo=None,
        enrollment_repo=None,
        notifier: Callable = dispatch_notification,
    ):
        self.db = db
        self.quiz_repo = quiz_repo or QuizRepository(db)
        self.attempt_repo = attempt_repo or QuizAttemptRepository(db)
        self.offering_repo = offering_repo or OfferingRepository(db)
        self.enrollment_repo = enrollment_repo or EnrollmentRepository(db)
        self.notifier = notifier

    # ============================================================
    # HELPERS
    # ============================================================

    async def _get_quiz(self, quiz_id: UUID) -> Quiz:
        quiz = await self.quiz_repo.get_with_questions(quiz_id)
        if not quiz:
            raise NotFoundError("Quiz not found")
        return quiz

    async def _get_draft(self, quiz_id: UUID) -> Quiz:
        quiz = await self._get_quiz(quiz_id)
        if QuizStatus(quiz.status) != QuizStatus.DRAFT:
            raise InvalidStateError("Questions of a published or closed quiz cannot be changed")
        return quiz

    @staticmethod
    def _recalculate_total_points(quiz: Quiz) -> float:
        quiz.total_points = float(sum(q.points for q in quiz.questions))
        return quiz.total_points

    @staticmethod
    def _renumber(quiz: Quiz) -> None:
        for index, question in enumerate(sorted(quiz.questions, key=lambda q: q.display_order)):
            question.display_order = index

    def _new_question(self, quiz: Quiz, data: QuestionInput, display_order: int, ai_generated: bool = False) -> QuizQuestion:
        question = QuizQuestion(
            id=uuid.uuid4(),
            quiz_id=quiz.id,
            display_order=display_order,
            is_ai_generated=ai_generated,
        )
        _apply_question(question, data)
        quiz.questions.append(question)
        return question

    async def _save_questions(self, quiz: Quiz) -> None:
        self._recalculate_total_points(quiz)
        await self.db.flush()
        await self.db.commit()

    def _build_quiz_response(self, quiz: Quiz, attempt_count: int = 0) -> QuizResponse:
        return QuizResponse(
            id=quiz.id,
            offering_id=quiz.offering_id,
            creator_id=quiz.creator_id,
            title=quiz.title,
            description=quiz.description,
            status=quiz.status,
            duration_minutes=quiz.duration_minutes,
            total_points=quiz.total_points,
            passing_score=quiz.passing_score,
            shuffle_questions=quiz.shuffle_questions,
            shuffle_options=quiz.shuffle_options,
            show_results=quiz.show_results,
            allow_review=quiz.allow_review,
            start_time=quiz.start_time,
            end_time=quiz.end_time,
            question_count=len(quiz.questions),
            attempt_count=attempt_count,
            created_at=quiz.created_at,
            updated_at=quiz.updated_at,
        )

    def _build_quiz_detail_response(self, quiz: Quiz, attempt_count: int = 0) -> QuizDetailResponse:
        base = self._build_quiz_response(quiz, attempt_count)
        questions = sorted(quiz.questions, key=lambda q: q.display_order)
        return QuizDetailResponse(
            **base.model_dump(),
            questions=[QuestionDetailResponse.model_validate(q) for q in questions],
        )

    # ============================================================
    # CREATE / UPDATE / DELETE
    # ============================================================

    async def create_quiz(self, request: QuizCreateRequest, user: CurrentUser) -> Quiz:
        offering = await self.offering_repo.get_active(request.offering_id)
        if not offering:
            raise NotFoundError("Course offering not found")

        quiz = await self.quiz_repo.create(
            offering_id=offering.id,
            creator_id=user.id,
            title=request.title,
            description=request.description,
            duration_minutes=request.duration_minutes,
            passing_score=request.passing_score,
            status=QuizStatus.DRAFT,
            total_points=0,
        )
        await self.db.commit()

        logger.info(f"Quiz {quiz.id} created for offering {offering.id} by {user.id}")
        return quiz

    async def update_quiz(self, quiz_id: UUID, request: QuizUpdateRequest) -> None:
        """
        Update quiz settings.

        Drafts accept every field; published and closed quizzes only take the
        availability window.
        """
        quiz = await self.quiz_repo.get_active(quiz_id)
        if not quiz:
            raise NotFoundError("Quiz not found")

        if request.start_time and request.end_time and request.end_time <= request.start_time:
            raise QuizValidationError("End time must be after start time")

        if QuizStatus(quiz.status) == QuizStatus.DRAFT:
            quiz.title = request.title
            quiz.description = request.description
            quiz.duration_minutes = request.duration_minutes
            quiz.passing_score = request.passing_score
            for flag in ("shuffle_questions", "shuffle_options", "show_results", "allow_review"):
                value = getattr(request, flag)
                if value is not None:
                    setattr(quiz, flag, value)

        quiz.start_time = request.start_time
        quiz.end_time = request.end_time

        await self.db.flush()
        await self.db.commit()

    async def delete_quiz(self, quiz_id: UUID) -> None:
        """Soft delete. Quizzes that students have attempted are kept."""
        quiz = await self.quiz_repo.get_active(quiz_id)
        if not quiz:
            raise NotFoundError("Quiz not found")

        if await self.attempt_repo.count_by_quiz(quiz.id) > 0:
            raise InvalidStateError("Cannot delete a quiz that students have attempted")

        quiz.deleted_at = utc_now()
        await self.db.flush()
        await self.db.commit()
        logger.info(f"Quiz {quiz_id} deleted")

    # ============================================================
    # LIFECYCLE
    # ============================================================

    async def publish_quiz(self, quiz_id: UUID) -> None:
        """DRAFT -> PUBLISHED, then tell every enrolled student."""
        quiz = await self._get_quiz(quiz_id)
        if QuizStatus(quiz.status) != QuizStatus.DRAFT:
            raise InvalidStateError("Only draft quizzes can be published")
        if not quiz.questions:
            raise QuizValidationError("Add at least one question before publishing")

        quiz.status = QuizStatus.PUBLISHED
        self._recalculate_total_points(quiz)
        await self.db.flush()
        await self.db.commit()
        logger.info(f"Quiz {quiz_id} published")

        student_ids = await self.enrollment_repo.active_student_ids(quiz.offering_id)
        await self.notifier(
            student_ids,
            title=f"New quiz: {quiz.title}",
            body=f"A new quiz is available. Duration: {quiz.duration_minutes} minutes.",
            link=f"/quizzes/{quiz.id}/take",
        )

    async def close_quiz(self, quiz_id: UUID) -> None:
        quiz = await self.quiz_repo.get_active(quiz_id)
        if not quiz:
            raise NotFoundError("Quiz not found")
        if QuizStatus(quiz.status) != QuizStatus.PUBLISHED:
            raise InvalidStateError("Only published quizzes can be closed")

        quiz.status = QuizStatus.CLOSED
        await self.db.flush()
        await self.db.commit()
        logger.info(f"Quiz {quiz_id} closed")

    async def reopen_quiz(self, quiz_id: UUID) -> None:
        quiz = await self.quiz_repo.get_active(quiz_id)
        if not quiz:
            raise NotFoundError("Quiz not found")
        if QuizStatus(quiz.status) != QuizStatus.CLOSED:
            raise InvalidStateError("Only closed quizzes can be reopened")

        quiz.status = QuizStatus.PUBLISHED
        await self.db.flush()
        await self.db.commit()
        logger.info(f"Quiz {quiz_id} reopened")

    async def duplicate_quiz(self, quiz_id: UUID, user: CurrentUser) -> Quiz:
        """Deep copy as a new draft owned by `user`. The availability window is not copied."""
        original = await self._get_quiz(quiz_id)

        questions = [
            QuizQuestion(
                id=uuid.uuid4(),
                question_type=question.question_type,
                difficulty=question.difficulty,
                question_text=question.question_text,
                explanation=question.explanation,
                points=question.points,
                display_order=question.display_order,
                is_ai_generated=False,
                options=[
                    QuestionOption(
                        id=uuid.uuid4(),
                        option_text=o.option_text,
                        is_correct=o.is_correct,
                        display_order=o.display_order,
                    )
                    for o in sorted(question.options, key=lambda o: o.display_order)
                ],
            )
            for question in sorted(original.questions, key=lambda q: q.display_order)
        ]

        copy = await self.quiz_repo.create(
            offering_id=original.offering_id,
            creator_id=user.id,
            title=f"{original.title} (copy)",
            description=original.description,
            status=QuizStatus.DRAFT,
            duration_minutes=original.duration_minutes,
            passing_score=original.passing_score,
            shuffle_questions=original.shuffle_questions,
            shuffle_options=original.shuffle_options,
            show_results=original.show_results,
            allow_review=original.allow_review,
            total_points=float(sum(q.points for q in questions)),
            questions=questions,
        )

        await self._save_questions(copy)
        logger.info(f"Quiz {quiz_id} duplicated as {copy.id}")
        return copy

    # ============================================================
    # READ OPERATIONS
    # ============================================================

    async def get_quiz(self, quiz_id: UUID) -> QuizDetailResponse:
        quiz = await self._get_quiz(quiz_id)
        attempt_count = await self.attempt_repo.count_by_quiz(quiz.id)
        return self._build_quiz_detail_response(quiz, attempt_count)

    async def list_quizzes(
        self,
        offering_id: Optional[UUID] = None,
        status: Optional[QuizStatus] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> QuizListResponse:
        offering_ids = [offering_id] if offering_id else None
        quizzes = await self.quiz_repo.list_quizzes(offering_ids, status, skip, limit)
        total = await self.quiz_repo.count_quizzes(offering_ids, status)
        attempt_counts = await self.attempt_repo.count_by_quizzes([q.id for q in quizzes])

        return QuizListResponse(
            quizzes=[self._build_quiz_response(q, attempt_counts.get(q.id, 0)) for q in quizzes],
            total=total,
        )

    async def get_quiz_stats(self, offering_id: Optional[UUID] = None) -> QuizStatsResponse:
        counts = await self.quiz_repo.count_by_status([offering_id] if offering_id else None)
        return QuizStatsResponse(
            total=sum(counts.values()),
            draft=counts.get(QuizStatus.DRAFT, 0),
            published=counts.get(QuizStatus.PUBLISHED, 0),
            closed=counts.get(QuizStatus.CLOSED, 0),
        )

    async def list_offerings_for_quiz(self) -> List[OfferingOption]:
        offerings = await self.offering_repo.list_open()
        return [OfferingOption.model_validate(o) for o in offerings]

    # ============================================================
    # QUESTIONS
    # ============================================================

    async def add_question(self, quiz_id: UUID, data: QuestionInput) -> QuizQuestion:
        """Append a question at the end of the quiz."""
        validate_question(data)
        quiz = await self._get_draft(quiz_id)

        next_order = max((q.display_order for q in quiz.questions), default=-1) + 1
        question = self._new_question(quiz, data, next_order)
        await self._save_questions(quiz)
        return question

    async def update_question(self, quiz_id: UUID, question_id: UUID, data: QuestionInput) -> QuizQuestion:
        """Replace a question's content; its options are replaced wholesale."""
        validate_question(data)
        quiz = await self._get_draft(quiz_id)

        question = next((q for q in quiz.questions if q.id == question_id), None)
        if question is None:
            raise NotFoundError("Question not found")

        _apply_question(question, data)
        await self._save_questions(quiz)
        return question

    async def delete_question(self, quiz_id: UUID, question_id: UUID) -> None:
        quiz = await self._get_draft(quiz_id)

        question = next((q for q in quiz.questions if q.id == question_id), None)
        if question is None:
            raise NotFoundError("Question not found")

        quiz.questions.remove(question)
        self._renumber(quiz)
        await self._save_questions(quiz)

    async def reorder_questions(self, quiz_id: UUID, question_ids: Sequence[UUID]) -> None:
        """`question_ids` must list every question of the quiz exactly once."""
        quiz = await self._get_draft(quiz_id)

        by_id = {q.id: q for q in quiz.questions}
        if len(question_ids) != len(by_id) or set(question_ids) != set(by_id):
            raise QuizValidationError("Question ids must match the quiz's questions exactly")

        for index, question_id in enumerate(question_ids):
            by_id[question_id].display_order = index

        await self.db.flush()
        await self.db.commit()

    async def save_all_questions(self, quiz_id: UUID, questions: Sequence[QuestionInput]) -> None:
        """
        Replace the quiz's question list in one go.

        Entries whose id matches an existing question update it; entries
        without a known id are created; existing questions not listed are
        deleted. Order follows the input list.
        """
        for index, data in enumerate(questions):
            try:
                validate_question(data)
            except QuizValidationError as e:
                raise QuizValidationError(f"Question {index + 1}: {e.message}")

        listed_ids = [data.id for data in questions if data.id is not None]
        if len(listed_ids) != len(set(listed_ids)):
            raise QuizValidationError("Each question may appear only once")

        quiz = await self._get_draft(quiz_id)
        existing = {q.id: q for q in quiz.questions}
        keep_ids = {data.id for data in questions if data.id in existing}

        for question_id, question in existing.items():
            if question_id not in keep_ids:
                quiz.questions.remove(question)

        for index, data in enumerate(questions):
            if data.id in keep_ids:
                question = existing[data.id]
                _apply_question(question, data)
                question.display_order = index
            else:
                self._new_question(quiz, data, index)

        await self._save_questions(quiz)

    async def import_generated_questions(self, quiz_id: UUID, request: ImportGeneratedQuestionsRequest) -> int:
        """Normalize, validate and append AI-generated questions. Returns how many were added."""
        normalized = [normalize_generated_question(g) for g in request.questions]
        for index, data in enumerate(normalized):
            try:
                validate_question(data)
            except QuizValidationError as e:
                raise QuizValidationError(f"Generated question {index + 1}: {e.message}")

        quiz = await self._get_draft(quiz_id)
        next_order = max((q.display_order for q in quiz.questions), default=-1) + 1
        for offset, data in enumerate(normalized):
            self._new_question(quiz, data, next_order + offset, ai_generated=True)

        await self._save_questions(quiz)
        logger.info(f"Imported {len(normalized)} generated question(s) into quiz {quiz_id}")
        return len(normalized)
