"""
Notification Tasks

Background task that writes in-app notifications queued by the API.
"""

import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.db.database import AsyncSessionLocal
from app.services.notification_service import save_notifications

logger = logging.getLogger(__name__)


# ============================================================
# DATABASE SESSION HELPER
# ============================================================

async def get_worker_db_session() -> AsyncSession:
    """Create a database session for worker use."""
    return AsyncSessionLocal()


# ============================================================
# NOTIFICATION TASK
# ============================================================

async def send_notifications(
    ctx: Dict[str, Any],
    user_ids: List[str],
    title: str,
    body: str,
    link: Optional[str] = None,
    notification_type: str = "INFO",
    data: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Persist one notification per user.

    Args:
        ctx: ARQ context (job_id, redis, etc.)
        user_ids: Recipient user ids as strings

    Returns:
        Dict with the number of rows written
    """
    job_id = ctx.get("job_id", "unknown")

    recipients = []
    for raw in user_ids:
        try:
            recipients.append(UUID(raw))
        except ValueError:
            logger.warning(f"Skipping invalid user id {raw!r} (job: {job_id})")

    if not recipients:
        return {"success": True, "count": 0}

    session = await get_worker_db_session()
    try:
        count = await save_notifications(
            session,
            recipients,
            title=title,
            body=body,
            link=link,
            notification_type=notification_type,
            data=data,
        )
        logger.info(f"Saved {count} notification(s) '{title}' (job: {job_id})")
        return {"success": True, "count": count}

    except Exception:
        await session.rollback()
        logger.exception(f"Failed to save notifications (job: {job_id})")
        raise

    finally:
        await session.close()
