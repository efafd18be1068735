from app.repositories.base import BaseRepository
from app.repositories.quiz_repo import (
    QuizRepository,
    QuizAttemptRepository,
    QuizAnswerRepository,
)
from app.repositories.enrollment_repo import EnrollmentRepository, OfferingRepository
from app.repositories.notification_repo import NotificationRepository

__all__ = [
    "BaseRepository",
    "QuizRepository",
    "QuizAttemptRepository",
    "QuizAnswerRepository",
    "EnrollmentRepository",
    "OfferingRepository",
    "NotificationRepository",
]
