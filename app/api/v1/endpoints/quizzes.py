"""
Quiz Endpoints

HTTP API for quiz authoring. Each route is gated by a permission code carried
in the caller's access token; every response is an `ActionResult` envelope.

Endpoints:
----------
- GET    /quizzes                                  - List quizzes              (quiz.view)
- GET    /quizzes/stats                            - Counts by status          (quiz.view)
- GET    /quizzes/offerings                        - Offerings to create for   (quiz.create)
- POST   /quizzes                                  - Create a draft quiz       (quiz.create)
- GET    /quizzes/{quiz_id}                        - Quiz with answer keys     (quiz.view)
- PUT    /quizzes/{quiz_id}                        - Update settings           (quiz.edit)
- DELETE /quizzes/{quiz_id}                        - Soft delete               (quiz.delete)
- POST   /quizzes/{quiz_id}/publish                - DRAFT -> PUBLISHED        (quiz.manage)
- POST   /quizzes/{quiz_id}/close                  - PUBLISHED -> CLOSED       (quiz.manage)
- POST   /quizzes/{quiz_id}/reopen                 - CLOSED -> PUBLISHED       (quiz.manage)
- POST   /quizzes/{quiz_id}/duplicate              - Copy as a new draft       (quiz.create)
- POST   /quizzes/{quiz_id}/questions              - Add a question            (quiz.edit)
- PUT    /quizzes/{quiz_id}/questions              - Replace all questions     (quiz.edit)
- PUT    /quizzes/{quiz_id}/questions/order        - Reorder questions         (quiz.edit)
- PUT    /quizzes/{quiz_id}/questions/{question_id}  - Update a question       (quiz.edit)
- DELETE /quizzes/{quiz_id}/questions/{question_id}  - Delete a question       (quiz.edit)
- POST   /quizzes/{quiz_id}/questions/import       - Import generated questions (quiz.create)
"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.database import get_db
from app.api.actions import run_action
from app.api.deps import RequirePermission
from app.core.permissions import (
    CurrentUser,
    QUIZ_CREATE,
    QUIZ_DELETE,
    QUIZ_EDIT,
    QUIZ_MANAGE,
    QUIZ_VIEW,
)
from app.models.quiz import QuizStatus
from app.schemas.common import ActionResult, CreatedResponse
from app.schemas.quiz import (
    BulkSaveQuestionsRequest,
    ImportGeneratedQuestionsRequest,
    OfferingOption,
    QuestionInput,
    QuizCreateRequest,
    QuizDetailResponse,
    QuizListResponse,
    QuizStatsResponse,
    QuizUpdateRequest,
    ReorderQuestionsRequest,
)
from app.services.quiz_service import QuizService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/quizzes", tags=["Quizzes"])


def get_quiz_service(db: AsyncSession = Depends(get_db)) -> QuizService:
    return QuizService(db)


async def _created(call) -> CreatedResponse:
    entity = await call
    return CreatedResponse(id=entity.id)


async def _discard(call) -> None:
    await call


# ============================================================
# LIST / STATS
# ============================================================

@router.get(
    "",
    response_model=ActionResult[QuizListResponse],
    summary="List quizzes",
)
async def list_quizzes(
    response: Response,
    offering_id: Optional[UUID] = Query(None),
    quiz_status: Optional[QuizStatus] = Query(None, alias="status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    current_user: CurrentUser = Depends(RequirePermission(QUIZ_VIEW)),
    service: QuizService = Depends(get_quiz_service),
):
    return await run_action(
        service.list_quizzes(offering_id=offering_id, status=quiz_status, skip=skip, limit=limit),
        response,
        service.db,
    )


@router.get(
    "/stats",
    response_model=ActionResult[QuizStatsResponse],
    summary="Quiz counts by status",
)
async def get_quiz_stats(
    response: Response,
    offering_id: Optional[UUID] = Query(None),
    current_user: CurrentUser = Depends(RequirePermission(QUIZ_VIEW)),
    service: QuizService = Depends(get_quiz_service),
):
    return await run_action(service.get_quiz_stats(offering_id), response, service.db)


@router.get(
    "/offerings",
    response_model=ActionResult[List[OfferingOption]],
    summary="Offerings a quiz can be created for",
)
async def list_offerings_for_quiz(
    response: Response,
    current_user: CurrentUser = Depends(RequirePermission(QUIZ_CREATE)),
    service: QuizService = Depends(get_quiz_service),
):
    return await run_action(service.list_offerings_for_quiz(), response, service.db)


# ============================================================
# CREATE / READ / UPDATE / DELETE
# ============================================================

@router.post(
    "",
    response_model=ActionResult[CreatedResponse],
    summary="Create a draft quiz",
)
async def create_quiz(
    request: QuizCreateRequest,
    response: Response,
    current_user: CurrentUser = Depends(RequirePermission(QUIZ_CREATE)),
    service: QuizService = Depends(get_quiz_service),
):
    return await run_action(
        _created(service.create_quiz(request, current_user)),
        response,
        service.db,
        success_status=status.HTTP_201_CREATED,
    )


@router.get(
    "/{quiz_id}",
    response_model=ActionResult[QuizDetailResponse],
    summary="Get a quiz with its questions and answer keys",
)
async def get_quiz(
    quiz_id: UUID,
    response: Response,
    current_user: CurrentUser = Depends(RequirePermission(QUIZ_VIEW)),
    service: QuizService = Depends(get_quiz_service),
):
    return await run_action(service.get_quiz(quiz_id), response, service.db)


@router.put(
    "/{quiz_id}",
    response_model=ActionResult[None],
    summary="Update quiz settings",
    description="Published and closed quizzes only accept a new availability window.",
)
async def update_quiz(
    quiz_id: UUID,
    request: QuizUpdateRequest,
    response: Response,
    current_user: CurrentUser = Depends(RequirePermission(QUIZ_EDIT)),
    service: QuizService = Depends(get_quiz_service),
):
    return await run_action(service.update_quiz(quiz_id, request), response, service.db)


@router.delete(
    "/{quiz_id}",
    response_model=ActionResult[None],
    summary="Delete a quiz",
)
async def delete_quiz(
    quiz_id: UUID,
    response: Response,
    current_user: CurrentUser = Depends(RequirePermission(QUIZ_DELETE)),
    service: QuizService = Depends(get_quiz_service),
):
    return await run_action(service.delete_quiz(quiz_id), response, service.db)


# ============================================================
# LIFECYCLE
# ============================================================

@router.post(
    "/{quiz_id}/publish",
    response_model=ActionResult[None],
    summary="Publish a draft quiz",
)
async def publish_quiz(
    quiz_id: UUID,
    response: Response,
    current_user: CurrentUser = Depends(RequirePermission(QUIZ_MANAGE)),
    service: QuizService = Depends(get_quiz_service),
):
    return await run_action(service.publish_quiz(quiz_id), response, service.db)


@router.post(
    "/{quiz_id}/close",
    response_model=ActionResult[None],
    summary="Close a published quiz",
)
async def close_quiz(
    quiz_id: UUID,
    response: Response,
    current_user: CurrentUser = Depends(RequirePermission(QUIZ_MANAGE)),
    service: QuizService = Depends(get_quiz_service),
):
    return await run_action(service.close_quiz(quiz_id), response, service.db)


@router.post(
    "/{quiz_id}/reopen",
    response_model=ActionResult[None],
    summary="Reopen a closed quiz",
)
async def reopen_quiz(
    quiz_id: UUID,
    response: Response,
    current_user: CurrentUser = Depends(RequirePermission(QUIZ_MANAGE)),
    service: QuizService = Depends(get_quiz_service),
):
    return await run_action(service.reopen_quiz(quiz_id), response, service.db)


@router.post(
    "/{quiz_id}/duplicate",
    response_model=ActionResult[CreatedResponse],
    summary="Duplicate a quiz as a new draft",
)
async def duplicate_quiz(
    quiz_id: UUID,
    response: Response,
    current_user: CurrentUser = Depends(RequirePermission(QUIZ_CREATE)),
    service: QuizService = Depends(get_quiz_service),
):
    return await run_action(
        _created(service.duplicate_quiz(quiz_id, current_user)),
        response,
        service.db,
        success_status=status.HTTP_201_CREATED,
    )


# ============================================================
# QUESTIONS
# ============================================================

@router.post(
    "/{quiz_id}/questions",
    response_model=ActionResult[CreatedResponse],
    summary="Add a question",
)
async def add_question(
    quiz_id: UUID,
    request: QuestionInput,
    response: Response,
    current_user: CurrentUser = Depends(RequirePermission(QUIZ_EDIT)),
    service: QuizService = Depends(get_quiz_service),
):
    return await run_action(
        _created(service.add_question(quiz_id, request)),
        response,
        service.db,
        success_status=status.HTTP_201_CREATED,
    )


@router.put(
    "/{quiz_id}/questions",
    response_model=ActionResult[None],
    summary="Replace all questions",
)
async def save_all_questions(
    quiz_id: UUID,
    request: BulkSaveQuestionsRequest,
    response: Response,
    current_user: CurrentUser = Depends(RequirePermission(QUIZ_EDIT)),
    service: QuizService = Depends(get_quiz_service),
):
    return await run_action(service.save_all_questions(quiz_id, request.questions), response, service.db)


@router.put(
    "/{quiz_id}/questions/order",
    response_model=ActionResult[None],
    summary="Reorder questions",
)
async def reorder_questions(
    quiz_id: UUID,
    request: ReorderQuestionsRequest,
    response: Response,
    current_user: CurrentUser = Depends(RequirePermission(QUIZ_EDIT)),
    service: QuizService = Depends(get_quiz_service),
):
    return await run_action(service.reorder_questions(quiz_id, request.question_ids), response, service.db)


@router.post(
    "/{quiz_id}/questions/import",
    response_model=ActionResult[int],
    summary="Import AI-generated questions",
    description="Normalizes generator output and appends it to a draft quiz. Returns the number added.",
)
async def import_generated_questions(
    quiz_id: UUID,
    request: ImportGeneratedQuestionsRequest,
    response: Response,
    current_user: CurrentUser = Depends(RequirePermission(QUIZ_CREATE)),
    service: QuizService = Depends(get_quiz_service),
):
    return await run_action(service.import_generated_questions(quiz_id, request), response, service.db)


@router.put(
    "/{quiz_id}/questions/{question_id}",
    response_model=ActionResult[None],
    summary="Update a question",
)
async def update_question(
    quiz_id: UUID,
    question_id: UUID,
    request: QuestionInput,
    response: Response,
    current_user: CurrentUser = Depends(RequirePermission(QUIZ_EDIT)),
    service: QuizService = Depends(get_quiz_service),
):
    return await run_action(
        _discard(service.update_question(quiz_id, question_id, request)),
        response,
        service.db,
    )


@router.delete(
    "/{quiz_id}/questions/{question_id}",
    response_model=ActionResult[None],
    summary="Delete a question",
)
async def delete_question(
    quiz_id: UUID,
    question_id: UUID,
    response: Response,
    current_user: CurrentUser = Depends(RequirePermission(QUIZ_EDIT)),
    service: QuizService = Depends(get_quiz_service),
):
    return await run_action(service.delete_question(quiz_id, question_id), response, service.db)
