"""
Notification Service

Fire-and-forget in-app notifications. The API process only enqueues an ARQ
job; the worker persists one notification row per recipient. A notification
that cannot be queued is logged and dropped, never raised to the caller.
"""

import json
import logging
from typing import Any, Dict, Optional, Sequence
from uuid import UUID

from app.core.config import settings
from app.db.redis import get_arq_pool
from app.repositories.notification_repo import NotificationRepository

logger = logging.getLogger(__name__)


async def dispatch_notification(
    user_ids: Sequence[UUID],
    title: str,
    body: str,
    link: Optional[str] = None,
    notification_type: str = "INFO",
    data: Optional[Dict[str, Any]] = None,
) -> bool:
    """
    Queue a notification for a set of users.

    Returns True when the job was queued.
    """
    if not settings.NOTIFICATIONS_ENABLED or not user_ids:
        return False

    try:
        pool = await get_arq_pool()
        await pool.enqueue_job(
            "send_notifications",
            user_ids=[str(u) for u in user_ids],
            title=title,
            body=body,
            link=link,
            notification_type=notification_type,
            data=data,
        )
        logger.info(f"Notification '{title}' queued for {len(user_ids)} user(s)")
        return True

    except Exception as e:
        logger.warning(f"Notification queue unavailable ({e}), dropping '{title}'")
        return False


async def save_notifications(
    db,
    user_ids: Sequence[UUID],
    title: str,
    body: str,
    link: Optional[str] = None,
    notification_type: str = "INFO",
    data: Optional[Dict[str, Any]] = None,
) -> int:
    """Persist one notification row per user and commit. Returns the row count."""
    repo = NotificationRepository(db)
    payload = json.dumps(data) if data else None
    rows = [
        {
            "user_id": user_id,
            "title": title,
            "body": body,
            "type": notification_type,
            "link": link,
            "data": payload,
        }
        for user_id in user_ids
    ]
    count = await repo.create_many(rows)
    await db.commit()
    return count
