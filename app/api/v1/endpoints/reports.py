"""
Report Endpoints

Endpoints:
----------
- GET   /reports/transcript                      - The caller's own transcript
- GET   /reports/offerings/{offering_id}/gradebook  - Student x quiz matrix (quiz.view)
- GET   /reports/offerings/{offering_id}/stats      - Score statistics      (quiz.view)
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.database import get_db
from app.api.actions import run_action
from app.api.deps import RequirePermission, get_current_user
from app.core.permissions import CurrentUser, QUIZ_VIEW
from app.schemas.common import ActionResult
from app.schemas.report import GradebookResponse, OfferingStatsResponse, TranscriptSemester
from app.services.report_service import ReportService

router = APIRouter(prefix="/reports", tags=["Reports"])


def get_report_service(db: AsyncSession = Depends(get_db)) -> ReportService:
    return ReportService(db)


@router.get(
    "/transcript",
    response_model=ActionResult[List[TranscriptSemester]],
    summary="Quiz grades of the current student, by semester",
)
async def get_student_transcript(
    response: Response,
    current_user: CurrentUser = Depends(get_current_user),
    service: ReportService = Depends(get_report_service),
):
    return await run_action(service.get_student_transcript(current_user.id), response, service.db)


@router.get(
    "/offerings/{offering_id}/gradebook",
    response_model=ActionResult[GradebookResponse],
    summary="Gradebook for an offering",
)
async def get_offering_gradebook(
    offering_id: UUID,
    response: Response,
    current_user: CurrentUser = Depends(RequirePermission(QUIZ_VIEW)),
    service: ReportService = Depends(get_report_service),
):
    return await run_action(service.get_offering_gradebook(offering_id, current_user), response, service.db)


@router.get(
    "/offerings/{offering_id}/stats",
    response_model=ActionResult[OfferingStatsResponse],
    summary="Score statistics for an offering",
)
async def get_offering_stats(
    offering_id: UUID,
    response: Response,
    current_user: CurrentUser = Depends(RequirePermission(QUIZ_VIEW)),
    service: ReportService = Depends(get_report_service),
):
    return await run_action(service.get_offering_stats(offering_id, current_user), response, service.db)
