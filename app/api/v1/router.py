from fastapi import APIRouter
from app.api.v1.endpoints import attempts, quizzes, reports, notifications

# ============================================================
# Main API v1 Router
# ============================================================

api_router = APIRouter()

# Authoring routes at /quizzes
api_router.include_router(quizzes.router)

# Student routes: /student/quizzes, /quizzes/{id}/attempts, /attempts/...
api_router.include_router(
    attempts.router,
    prefix=""  # Routes define their own prefixes
)

api_router.include_router(reports.router)

api_router.include_router(notifications.router)
