"""
Quiz Repository

Data access layer for Quiz, QuizAttempt, and QuizAnswer models.
Questions and options are reached through `Quiz.questions`.
"""

from datetime import datetime
from typing import Dict, List, Optional, Sequence
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.orm import selectinload

from app.repositories.base import BaseRepository
from app.models.quiz import Quiz, QuizStatus
from app.models.quiz_question import QuizQuestion
from app.models.quiz_attempt import QuizAttempt, AttemptStatus
from app.models.quiz_answer import QuizAnswer


class QuizRepository(BaseRepository[Quiz]):
    """Repository for Quiz model. Soft-deleted quizzes are invisible to every lookup."""

    def __init__(self, db: AsyncSession):
        super().__init__(Quiz, db)

    async def get_active(self, quiz_id: UUID) -> Optional[Quiz]:
        stmt = (
            select(self.model)
            .where(self.model.id == quiz_id, self.model.deleted_at.is_(None))
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_with_questions(self, quiz_id: UUID) -> Optional[Quiz]:
        """Quiz with its offering, questions and options, ordered by display_order."""
        stmt = (
            select(self.model)
            .options(
                selectinload(self.model.offering),
                selectinload(self.model.questions).selectinload(QuizQuestion.options),
            )
            .where(self.model.id == quiz_id, self.model.deleted_at.is_(None))
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_quizzes(
        self,
        offering_ids: Optional[Sequence[UUID]] = None,
        status: Optional[QuizStatus] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> List[Quiz]:
        stmt = (
            select(self.model)
            .options(selectinload(self.model.questions))
            .where(self.model.deleted_at.is_(None))
        )
        if offering_ids is not None:
            stmt = stmt.where(self.model.offering_id.in_(offering_ids))
        if status is not None:
            stmt = stmt.where(self.model.status == status)

        stmt = stmt.order_by(self.model.created_at.desc()).offset(skip).limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def count_quizzes(
        self,
        offering_ids: Optional[Sequence[UUID]] = None,
        status: Optional[QuizStatus] = None,
    ) -> int:
        stmt = select(func.count(self.model.id)).where(self.model.deleted_at.is_(None))
        if offering_ids is not None:
            stmt = stmt.where(self.model.offering_id.in_(offering_ids))
        if status is not None:
            stmt = stmt.where(self.model.status == status)
        result = await self.db.execute(stmt)
        return result.scalar() or 0

    async def count_by_status(self, offering_ids: Optional[Sequence[UUID]] = None) -> Dict[QuizStatus, int]:
        stmt = (
            select(self.model.status, func.count(self.model.id))
            .where(self.model.deleted_at.is_(None))
            .group_by(self.model.status)
        )
        if offering_ids is not None:
            stmt = stmt.where(self.model.offering_id.in_(offering_ids))
        result = await self.db.execute(stmt)
        counts = {status: 0 for status in QuizStatus}
        for status, count in result.all():
            counts[QuizStatus(status)] = count
        return counts

    async def list_published_for_offerings(self, offering_ids: Sequence[UUID]) -> List[Quiz]:
        """Published quizzes of the given offerings, with offering and questions loaded."""
        if not offering_ids:
            return []
        stmt = (
            select(self.model)
            .options(selectinload(self.model.offering), selectinload(self.model.questions))
            .where(
                self.model.offering_id.in_(offering_ids),
                self.model.status == QuizStatus.PUBLISHED,
                self.model.deleted_at.is_(None),
            )
            .order_by(self.model.created_at.desc())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_for_offering(self, offering_id: UUID, include_drafts: bool = False) -> List[Quiz]:
        stmt = (
            select(self.model)
            .where(self.model.offering_id == offering_id, self.model.deleted_at.is_(None))
            .order_by(self.model.created_at)
        )
        if not include_drafts:
            stmt = stmt.where(self.model.status != QuizStatus.DRAFT)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())


class QuizAttemptRepository(BaseRepository[QuizAttempt]):
    """Repository for QuizAttempt model."""

    def __init__(self, db: AsyncSession):
        super().__init__(QuizAttempt, db)

    async def get_by_quiz_and_student(self, quiz_id: UUID, student_id: UUID) -> Optional[QuizAttempt]:
        stmt = (
            select(self.model)
            .where(self.model.quiz_id == quiz_id, self.model.student_id == student_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def claim_submission(self, attempt_id: UUID, submitted_at: datetime) -> bool:
        """
        Move IN_PROGRESS -> SUBMITTED.

        The status check happens inside the UPDATE, so of two concurrent
        submitters exactly one sees a row change. Returns False when the
        attempt was no longer in progress.
        """
        stmt = (
            update(self.model)
            .where(
                self.model.id == attempt_id,
                self.model.status == AttemptStatus.IN_PROGRESS,
            )
            .values(status=AttemptStatus.SUBMITTED, submitted_at=submitted_at)
        )
        result = await self.db.execute(stmt)
        return result.rowcount == 1

    async def record_score(self, attempt_id: UUID, score: float, percentage: float) -> None:
        await self.db.execute(
            update(self.model)
            .where(self.model.id == attempt_id)
            .values(score=score, percentage=percentage)
        )

    async def count_by_quiz(self, quiz_id: UUID) -> int:
        stmt = select(func.count(self.model.id)).where(self.model.quiz_id == quiz_id)
        result = await self.db.execute(stmt)
        return result.scalar() or 0

    async def count_by_quizzes(self, quiz_ids: Sequence[UUID]) -> Dict[UUID, int]:
        if not quiz_ids:
            return {}
        stmt = (
            select(self.model.quiz_id, func.count(self.model.id))
            .where(self.model.quiz_id.in_(quiz_ids))
            .group_by(self.model.quiz_id)
        )
        result = await self.db.execute(stmt)
        return {quiz_id: count for quiz_id, count in result.all()}

    async def list_by_student(self, student_id: UUID, quiz_ids: Optional[Sequence[UUID]] = None) -> List[QuizAttempt]:
        stmt = select(self.model).where(self.model.student_id == student_id)
        if quiz_ids is not None:
            if not quiz_ids:
                return []
            stmt = stmt.where(self.model.quiz_id.in_(quiz_ids))
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_for_quizzes(self, quiz_ids: Sequence[UUID]) -> List[QuizAttempt]:
        if not quiz_ids:
            return []
        stmt = select(self.model).where(self.model.quiz_id.in_(quiz_ids))
        result = await self.db.execute(stmt)
        return list(result.scalars().all())


class QuizAnswerRepository(BaseRepository[QuizAnswer]):
    """Repository for QuizAnswer model. At most one row per (attempt, question)."""

    def __init__(self, db: AsyncSession):
        super().__init__(QuizAnswer, db)

    async def upsert_answer(
        self,
        attempt_id: UUID,
        question_id: UUID,
        selected_option_id: Optional[UUID],
        text_answer: Optional[str],
        answered_at: datetime,
    ) -> None:
        """Insert the answer, or overwrite the existing one for the same question."""
        stmt = pg_insert(self.model).values(
            attempt_id=attempt_id,
            question_id=question_id,
            selected_option_id=selected_option_id,
            text_answer=text_answer,
            answered_at=answered_at,
            points_earned=0,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[self.model.attempt_id, self.model.question_id],
            set_={
                "selected_option_id": stmt.excluded.selected_option_id,
                "text_answer": stmt.excluded.text_answer,
                "answered_at": stmt.excluded.answered_at,
                "updated_at": func.now(),
            },
        )
        await self.db.execute(stmt)

    async def get_by_attempt(self, attempt_id: UUID) -> List[QuizAnswer]:
        stmt = (
            select(self.model)
            .where(self.model.attempt_id == attempt_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def apply_grade(self, answer_id: UUID, is_correct: Optional[bool], points_earned: float) -> None:
        await self.db.execute(
            update(self.model)
            .where(self.model.id == answer_id)
            .values(is_correct=is_correct, points_earned=points_earned)
        )
