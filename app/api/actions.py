"""
Action Runner

Runs one service call and turns its outcome into the `ActionResult` envelope.
Known service errors become `{success: false, error, code}` with their HTTP
status; anything else is logged with its traceback and reported as a generic
failure so internals never reach the client.
"""

import logging
from typing import Any, Awaitable, Optional

from fastapi import Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import LMSServiceError
from app.schemas.common import ActionResult

logger = logging.getLogger(__name__)

GENERIC_ERROR = "An unexpected error occurred"


async def run_action(
    call: Awaitable[Any],
    response: Response,
    db: Optional[AsyncSession] = None,
    success_status: int = status.HTTP_200_OK,
) -> ActionResult:
    try:
        data = await call

    except LMSServiceError as e:
        if db is not None:
            await db.rollback()
        response.status_code = e.status_code
        return ActionResult.fail(e.message, e.code)

    except Exception:
        if db is not None:
            await db.rollback()
        logger.exception("Unhandled error while running action")
        response.status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        return ActionResult.fail(GENERIC_ERROR, "INTERNAL_ERROR")

    response.status_code = success_status
    return ActionResult.ok(data)
