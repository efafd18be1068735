"""
Attempt Endpoints

HTTP API for students taking quizzes. Every response is an `ActionResult`
envelope.

Endpoints:
----------
- GET    /student/quizzes                         - Quizzes available to the student
- POST   /quizzes/{quiz_id}/attempts              - Start (or resume) an attempt
- GET    /attempts/{attempt_id}                   - Quiz view for taking
- PUT    /attempts/{attempt_id}/answers           - Autosave one answer
- POST   /attempts/{attempt_id}/submit            - Submit the attempt
- GET    /attempts/{attempt_id}/remaining-time    - Seconds left
- GET    /attempts/{attempt_id}/result            - Graded result
"""

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.database import get_db
from app.api.actions import run_action
from app.api.deps import get_current_user
from app.core.permissions import CurrentUser
from app.schemas.attempt import (
    QuizResultView,
    QuizTakingView,
    RemainingTimeResponse,
    SaveAnswerRequest,
    StartAttemptResponse,
    StudentQuizItem,
    SubmitQuizRequest,
    SubmitQuizResponse,
)
from app.schemas.common import ActionResult
from app.services.attempt_service import AttemptService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Attempts"])


def get_attempt_service(db: AsyncSession = Depends(get_db)) -> AttemptService:
    return AttemptService(db)


# ============================================================
# STUDENT QUIZ LIST
# ============================================================

@router.get(
    "/student/quizzes",
    response_model=ActionResult[List[StudentQuizItem]],
    summary="List published quizzes in the student's courses",
)
async def list_student_quizzes(
    response: Response,
    current_user: CurrentUser = Depends(get_current_user),
    service: AttemptService = Depends(get_attempt_service),
):
    return await run_action(service.list_student_quizzes(current_user.id), response, service.db)


# ============================================================
# START ATTEMPT
# ============================================================

@router.post(
    "/quizzes/{quiz_id}/attempts",
    response_model=ActionResult[StartAttemptResponse],
    summary="Start or resume an attempt",
    description="""
    Creates the student's single attempt at a published quiz, or returns the
    in-progress one. Fails once the attempt has been submitted.
    """,
)
async def start_attempt(
    quiz_id: UUID,
    response: Response,
    current_user: CurrentUser = Depends(get_current_user),
    service: AttemptService = Depends(get_attempt_service),
):
    return await run_action(
        service.start_attempt(quiz_id, current_user.id),
        response,
        service.db,
        success_status=status.HTTP_201_CREATED,
    )


# ============================================================
# TAKING
# ============================================================

@router.get(
    "/attempts/{attempt_id}",
    response_model=ActionResult[QuizTakingView],
    summary="Get the quiz for taking",
    description="Questions without answer keys. Expired attempts are submitted automatically.",
)
async def get_attempt_view(
    attempt_id: UUID,
    response: Response,
    current_user: CurrentUser = Depends(get_current_user),
    service: AttemptService = Depends(get_attempt_service),
):
    return await run_action(service.get_attempt_view(attempt_id, current_user.id), response, service.db)


@router.put(
    "/attempts/{attempt_id}/answers",
    response_model=ActionResult[None],
    summary="Autosave an answer",
)
async def save_answer(
    attempt_id: UUID,
    request: SaveAnswerRequest,
    response: Response,
    current_user: CurrentUser = Depends(get_current_user),
    service: AttemptService = Depends(get_attempt_service),
):
    return await run_action(
        service.save_answer(
            attempt_id,
            current_user.id,
            question_id=request.question_id,
            selected_option_id=request.selected_option_id,
            text_answer=request.text_answer,
        ),
        response,
        service.db,
    )


# ============================================================
# SUBMIT
# ============================================================

@router.post(
    "/attempts/{attempt_id}/submit",
    response_model=ActionResult[SubmitQuizResponse],
    summary="Submit the attempt for grading",
)
async def submit_quiz(
    attempt_id: UUID,
    request: SubmitQuizRequest,
    response: Response,
    current_user: CurrentUser = Depends(get_current_user),
    service: AttemptService = Depends(get_attempt_service),
):
    return await run_action(
        service.submit_quiz(attempt_id, current_user.id, request.answers),
        response,
        service.db,
    )


# ============================================================
# READS
# ============================================================

@router.get(
    "/attempts/{attempt_id}/remaining-time",
    response_model=ActionResult[RemainingTimeResponse],
    summary="Seconds left on the attempt",
)
async def get_remaining_time(
    attempt_id: UUID,
    response: Response,
    current_user: CurrentUser = Depends(get_current_user),
    service: AttemptService = Depends(get_attempt_service),
):
    return await run_action(service.get_remaining_time(attempt_id, current_user.id), response, service.db)


@router.get(
    "/attempts/{attempt_id}/result",
    response_model=ActionResult[QuizResultView],
    summary="Graded result of a submitted attempt",
)
async def get_quiz_result(
    attempt_id: UUID,
    response: Response,
    current_user: CurrentUser = Depends(get_current_user),
    service: AttemptService = Depends(get_attempt_service),
):
    return await run_action(service.get_quiz_result(attempt_id, current_user.id), response, service.db)
