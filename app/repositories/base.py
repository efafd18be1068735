"""
Base Repository

Shared lookups for the model repositories. Repositories only flush; the
owning service commits, so one service call is one transaction.
"""

from typing import Any, Generic, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.database import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    def __init__(self, model: Type[ModelType], db: AsyncSession):
        self.model = model
        self.db = db

    async def get_by_id(self, id: Any) -> Optional[ModelType]:
        result = await self.db.execute(select(self.model).where(self.model.id == id))
        return result.scalar_one_or_none()

    async def create(self, **kwargs) -> ModelType:
        """Add a row and flush so server defaults and the id are populated."""
        instance = self.model(**kwargs)
        self.db.add(instance)
        await self.db.flush()
        return instance
