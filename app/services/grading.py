"""
Grading Engine

Pure functions that score stored answers against the quiz's questions.
The same code path serves an explicit submit and a time-forced submit, so
both produce identical scores for identical answers.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

from app.models.quiz_question import OBJECTIVE_TYPES, QuestionType


@dataclass(frozen=True)
class GradeResult:
    is_correct: Optional[bool]   # None = needs a human (short answer)
    points_earned: float


def grade_answer(question: Any, selected_option_id: Any = None, text_answer: Optional[str] = None) -> GradeResult:
    """
    Grade one answer.

    Objective questions compare the selected option against the stored key;
    a missing or unknown option id counts as wrong. Short answers are left
    ungraded with zero points until someone grades them by hand.
    """
    question_type = QuestionType(question.question_type)

    if question_type in OBJECTIVE_TYPES:
        if selected_option_id is None:
            return GradeResult(is_correct=False, points_earned=0)

        selected = str(selected_option_id)
        option = next((o for o in question.options if str(o.id) == selected), None)
        is_correct = bool(option.is_correct) if option is not None else False
        return GradeResult(
            is_correct=is_correct,
            points_earned=question.points if is_correct else 0,
        )

    # SHORT_ANSWER
    return GradeResult(is_correct=None, points_earned=0)


def score_attempt(questions: Iterable[Any], answers: Iterable[Any]) -> Tuple[float, List[Tuple[Any, GradeResult]]]:
    """
    Grade every stored answer and sum the points.

    Answers whose question is not part of the quiz are skipped.

    Returns:
        (total score, [(answer, GradeResult), ...] for the graded answers)
    """
    questions_by_id: Dict[str, Any] = {str(q.id): q for q in questions}

    total = 0.0
    graded = []
    for answer in answers:
        question = questions_by_id.get(str(answer.question_id))
        if question is None:
            continue
        result = grade_answer(question, answer.selected_option_id, answer.text_answer)
        total += result.points_earned
        graded.append((answer, result))

    return total, graded


def compute_percentage(score: float, total_points: float) -> float:
    """score / total * 100, or 0 when the quiz is worth nothing."""
    if not total_points or total_points <= 0:
        return 0.0
    return score / total_points * 100


def is_passing(percentage: Optional[float], passing_score: float) -> bool:
    return percentage is not None and percentage >= passing_score
