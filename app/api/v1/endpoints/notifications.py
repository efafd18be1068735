"""
Notification Endpoints

Endpoints:
----------
- GET   /notifications                       - List user notifications
- GET   /notifications/unread-count          - Get unread count
- POST  /notifications/{notification_id}/read  - Mark one as read
- POST  /notifications/mark-all-read         - Mark all as read
"""

import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.database import get_db
from app.api.deps import get_current_user
from app.core.exceptions import NotFoundError
from app.core.permissions import CurrentUser
from app.repositories.notification_repo import NotificationRepository
from app.schemas.common import ActionResult

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["Notifications"])


class NotificationResponse(BaseModel):
    id: UUID
    title: str
    body: Optional[str] = None
    type: str
    link: Optional[str] = None
    is_read: bool
    data: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class UnreadCountResponse(BaseModel):
    unread_count: int


def get_notification_repo(db: AsyncSession = Depends(get_db)) -> NotificationRepository:
    return NotificationRepository(db)


@router.get(
    "",
    response_model=ActionResult[List[NotificationResponse]],
    summary="List notifications for the current user",
)
async def list_notifications(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    current_user: CurrentUser = Depends(get_current_user),
    repo: NotificationRepository = Depends(get_notification_repo),
):
    notifications = await repo.list_for_user(current_user.id, skip, limit)
    return ActionResult.ok([NotificationResponse.model_validate(n) for n in notifications])


@router.get(
    "/unread-count",
    response_model=ActionResult[UnreadCountResponse],
    summary="Get count of unread notifications",
)
async def unread_count(
    current_user: CurrentUser = Depends(get_current_user),
    repo: NotificationRepository = Depends(get_notification_repo),
):
    count = await repo.unread_count(current_user.id)
    return ActionResult.ok(UnreadCountResponse(unread_count=count))


@router.post(
    "/mark-all-read",
    response_model=ActionResult[int],
    summary="Mark all notifications as read",
)
async def mark_all_read(
    current_user: CurrentUser = Depends(get_current_user),
    repo: NotificationRepository = Depends(get_notification_repo),
):
    updated = await repo.mark_all_read(current_user.id)
    await repo.db.commit()
    return ActionResult.ok(updated)


@router.post(
    "/{notification_id}/read",
    response_model=ActionResult[None],
    summary="Mark a notification as read",
)
async def mark_read(
    notification_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    repo: NotificationRepository = Depends(get_notification_repo),
):
    if not await repo.mark_read(current_user.id, notification_id):
        raise NotFoundError("Notification not found")
    await repo.db.commit()
    return ActionResult.ok()
