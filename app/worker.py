"""
ARQ Worker

Consumes the notification queue filled by the API:

    arq app.worker.WorkerSettings
"""

import logging
from typing import Any, Dict

from app.core.config import settings
from app.db.database import engine
from app.db.redis import get_arq_redis_settings
from app.tasks import send_notifications

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


async def startup(ctx: Dict[str, Any]) -> None:
    logger.info("Notification worker started")


async def shutdown(ctx: Dict[str, Any]) -> None:
    """Close pooled DB connections before the process exits."""
    await engine.dispose()
    logger.info("Notification worker stopped")


class WorkerSettings:
    """Discovered by the `arq` CLI; unknown attributes are ignored by arq."""

    functions = [send_notifications]
    redis_settings = get_arq_redis_settings()

    on_startup = startup
    on_shutdown = shutdown

    # A lost notification is harmless, so retries stay short
    job_timeout = 30
    max_tries = 3
    keep_result = 600

    max_jobs = 20
    poll_delay = 0.5
    health_check_interval = 30
