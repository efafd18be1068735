"""
Notification Repository

Data access layer for in-app notifications.
"""

from typing import List, Sequence
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, update

from app.repositories.base import BaseRepository
from app.models.notification import Notification
from app.utils.timing import utc_now


class NotificationRepository(BaseRepository[Notification]):
    """Repository for Notification model."""

    def __init__(self, db: AsyncSession):
        super().__init__(Notification, db)

    async def create_many(self, rows: Sequence[dict]) -> int:
        for row in rows:
            self.db.add(Notification(**row))
        await self.db.flush()
        return len(rows)

    async def list_for_user(self, user_id: UUID, skip: int = 0, limit: int = 50) -> List[Notification]:
        stmt = (
            select(self.model)
            .where(self.model.user_id == user_id)
            .order_by(self.model.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def unread_count(self, user_id: UUID) -> int:
        stmt = select(func.count(self.model.id)).where(
            self.model.user_id == user_id,
            self.model.is_read.is_(False),
        )
        result = await self.db.execute(stmt)
        return result.scalar() or 0

    async def mark_read(self, user_id: UUID, notification_id: UUID) -> bool:
        result = await self.db.execute(
            update(self.model)
            .where(self.model.id == notification_id, self.model.user_id == user_id)
            .values(is_read=True, read_at=utc_now())
        )
        return result.rowcount == 1

    async def mark_all_read(self, user_id: UUID) -> int:
        result = await self.db.execute(
            update(self.model)
            .where(self.model.user_id == user_id, self.model.is_read.is_(False))
            .values(is_read=True, read_at=utc_now())
        )
        return result.rowcount or 0
