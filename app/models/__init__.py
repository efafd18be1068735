from app.models.base import Base
from app.models.user import User
from app.models.offering import CourseOffering
from app.models.enrollment import Enrollment
from app.models.quiz import Quiz, QuizStatus
from app.models.quiz_question import QuizQuestion, QuestionType, QuestionDifficulty
from app.models.question_option import QuestionOption
from app.models.quiz_attempt import QuizAttempt, AttemptStatus
from app.models.quiz_answer import QuizAnswer
from app.models.notification import Notification

__all__ = [
    "Base",
    "User",
    "CourseOffering",
    "Enrollment",
    "Quiz",
    "QuizStatus",
    "QuizQuestion",
    "QuestionType",
    "QuestionDifficulty",
    "QuestionOption",
    "QuizAttempt",
    "AttemptStatus",
    "QuizAnswer",
    "Notification",
]
