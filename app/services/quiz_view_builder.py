"""
Quiz View Builder

Turns a quiz, an attempt and its stored answers into the two student-facing
payloads: the taking view (answer key stripped, optional shuffling) and the
graded result view (answer key revealed only when review is allowed).
"""

import random
from datetime import datetime
from typing import Any, Dict, Iterable, Optional

from app.core.exceptions import NotEligibleError
from app.models.quiz_attempt import TERMINAL_ATTEMPT_STATUSES, AttemptStatus
from app.schemas.attempt import (
    AttemptInfo,
    QuizResultView,
    QuizTakingView,
    ResultAttemptInfo,
    ResultOption,
    ResultQuestion,
    SavedAnswer,
    TakingOption,
    TakingQuestion,
)
from app.services.grading import is_passing
from app.utils.shuffle import shuffled
from app.utils.timing import deadline_for, remaining_seconds


def _answers_by_question(answers: Iterable[Any]) -> Dict[str, Any]:
    return {str(a.question_id): a for a in answers}


# ============================================================
# TAKING VIEW
# ============================================================

def build_taking_view(
    quiz: Any,
    attempt: Any,
    answers: Iterable[Any] = (),
    now: Optional[datetime] = None,
    rng: Optional[random.Random] = None,
) -> QuizTakingView:
    """
    Build the view a student answers from.

    Questions are shuffled when `quiz.shuffle_questions` is set, and each
    question's options when `quiz.shuffle_options` is set. A fresh order is
    drawn on every call. Previously saved answers are attached so the client
    can restore its state.
    """
    saved = _answers_by_question(answers)

    questions = sorted(quiz.questions, key=lambda q: q.display_order)
    if quiz.shuffle_questions:
        questions = shuffled(questions, rng)

    taking_questions = []
    for question in questions:
        options = sorted(question.options, key=lambda o: o.display_order)
        if quiz.shuffle_options:
            options = shuffled(options, rng)

        answer = saved.get(str(question.id))
        taking_questions.append(
            TakingQuestion(
                id=question.id,
                question_type=question.question_type,
                question_text=question.question_text,
                points=question.points,
                display_order=question.display_order,
                options=[
                    TakingOption(id=o.id, option_text=o.option_text, display_order=o.display_order)
                    for o in options
                ],
                saved_answer=SavedAnswer(
                    selected_option_id=answer.selected_option_id,
                    text_answer=answer.text_answer,
                ) if answer is not None else None,
            )
        )

    return QuizTakingView(
        id=quiz.id,
        title=quiz.title,
        description=quiz.description,
        duration_minutes=quiz.duration_minutes,
        total_points=quiz.total_points,
        remaining_seconds=remaining_seconds(attempt.started_at, quiz.duration_minutes, now),
        attempt=AttemptInfo(
            id=attempt.id,
            started_at=attempt.started_at,
            deadline=deadline_for(attempt.started_at, quiz.duration_minutes),
        ),
        questions=taking_questions,
    )


# ============================================================
# RESULT VIEW
# ============================================================

def build_result_view(quiz: Any, attempt: Any, answers: Iterable[Any] = ()) -> QuizResultView:
    """
    Build the graded result of a finished attempt.

    Raises:
        NotEligibleError: attempt still in progress, or results hidden
    """
    if AttemptStatus(attempt.status) not in TERMINAL_ATTEMPT_STATUSES:
        raise NotEligibleError("Quiz has not been submitted yet")
    if not quiz.show_results:
        raise NotEligibleError("Results are not available for this quiz")

    review = bool(quiz.allow_review)
    stored = _answers_by_question(answers)

    result_questions = []
    for question in sorted(quiz.questions, key=lambda q: q.display_order):
        options = sorted(question.options, key=lambda o: o.display_order)
        correct = next((o for o in options if o.is_correct), None)
        answer = stored.get(str(question.id))

        result_questions.append(
            ResultQuestion(
                id=question.id,
                question_type=question.question_type,
                question_text=question.question_text,
                points=question.points,
                display_order=question.display_order,
                explanation=question.explanation if review else None,
                options=[
                    ResultOption(
                        id=o.id,
                        option_text=o.option_text,
                        is_correct=bool(o.is_correct) if review else False,
                    )
                    for o in options
                ],
                selected_option_id=answer.selected_option_id if answer else None,
                text_answer=answer.text_answer if answer else None,
                is_correct=answer.is_correct if answer else None,
                points_earned=(answer.points_earned or 0) if answer else 0,
                correct_option_id=correct.id if (review and correct is not None) else None,
            )
        )

    return QuizResultView(
        id=quiz.id,
        title=quiz.title,
        total_points=quiz.total_points,
        passing_score=quiz.passing_score,
        allow_review=review,
        attempt=ResultAttemptInfo(
            id=attempt.id,
            status=attempt.status,
            score=attempt.score,
            percentage=attempt.percentage,
            passed=is_passing(attempt.percentage, quiz.passing_score),
            started_at=attempt.started_at,
            submitted_at=attempt.submitted_at,
        ),
        questions=result_questions,
    )
