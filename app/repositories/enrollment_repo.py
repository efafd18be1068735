"""
Enrollment Repository

Data access for course offerings and student enrollments.
An enrollment is active while `dropped_at` is NULL.
"""

from typing import List, Optional, Tuple
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, exists

from app.repositories.base import BaseRepository
from app.models.enrollment import Enrollment
from app.models.offering import CourseOffering
from app.models.user import User


class OfferingRepository(BaseRepository[CourseOffering]):
    """Repository for CourseOffering model."""

    def __init__(self, db: AsyncSession):
        super().__init__(CourseOffering, db)

    async def get_active(self, offering_id: UUID) -> Optional[CourseOffering]:
        stmt = (
            select(self.model)
            .where(self.model.id == offering_id, self.model.deleted_at.is_(None))
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_open(self) -> List[CourseOffering]:
        """Active, non-deleted offerings, newest first."""
        stmt = (
            select(self.model)
            .where(self.model.deleted_at.is_(None), self.model.is_active.is_(True))
            .order_by(self.model.created_at.desc())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())


class EnrollmentRepository(BaseRepository[Enrollment]):
    """Repository for Enrollment model."""

    def __init__(self, db: AsyncSession):
        super().__init__(Enrollment, db)

    async def is_enrolled(self, student_id: UUID, offering_id: UUID) -> bool:
        stmt = select(
            exists().where(
                Enrollment.student_id == student_id,
                Enrollment.offering_id == offering_id,
                Enrollment.dropped_at.is_(None),
            )
        )
        result = await self.db.execute(stmt)
        return bool(result.scalar())

    async def active_student_ids(self, offering_id: UUID) -> List[UUID]:
        stmt = (
            select(Enrollment.student_id)
            .where(Enrollment.offering_id == offering_id, Enrollment.dropped_at.is_(None))
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def offering_ids_for_student(self, student_id: UUID) -> List[UUID]:
        stmt = (
            select(Enrollment.offering_id)
            .join(CourseOffering, CourseOffering.id == Enrollment.offering_id)
            .where(
                Enrollment.student_id == student_id,
                Enrollment.dropped_at.is_(None),
                CourseOffering.deleted_at.is_(None),
            )
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def offerings_for_student(self, student_id: UUID) -> List[CourseOffering]:
        """Offerings the student is actively enrolled in, current semester first."""
        stmt = (
            select(CourseOffering)
            .join(Enrollment, Enrollment.offering_id == CourseOffering.id)
            .where(
                Enrollment.student_id == student_id,
                Enrollment.dropped_at.is_(None),
                CourseOffering.deleted_at.is_(None),
            )
            .order_by(CourseOffering.is_current_semester.desc(), CourseOffering.semester_name.desc(), CourseOffering.code)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def students_in_offering(self, offering_id: UUID) -> List[Tuple[UUID, str, Optional[str]]]:
        """(student_id, full_name, academic_id) for every active enrollment, by name."""
        stmt = (
            select(User.id, User.full_name, User.academic_id)
            .join(Enrollment, Enrollment.student_id == User.id)
            .where(Enrollment.offering_id == offering_id, Enrollment.dropped_at.is_(None))
            .order_by(User.full_name)
        )
        result = await self.db.execute(stmt)
        return [tuple(row) for row in result.all()]
