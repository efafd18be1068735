import random
from datetime import timedelta
from types import SimpleNamespace
from uuid import uuid4

import pytest

from app.core.exceptions import NotEligibleError
from app.models.quiz_attempt import AttemptStatus
from app.models.quiz_question import QuestionType
from app.services.quiz_view_builder import build_result_view, build_taking_view
from tests.fakes import T0, make_attempt, make_question, make_quiz


def _quiz(**overrides):
    questions = [
        make_question(points=2, options=(("A", True), ("B", False), ("C", False), ("D", False)), display_order=i)
        for i in range(6)
    ]
    questions.append(make_question(question_type=QuestionType.SHORT_ANSWER, points=3, display_order=6))
    return make_quiz(questions, **overrides)


def _graded_answer(question, option_index, points_earned):
    option = question.options[option_index]
    return SimpleNamespace(
        id=uuid4(),
        question_id=question.id,
        selected_option_id=option.id,
        text_answer=None,
        is_correct=option.is_correct,
        points_earned=points_earned,
    )


@pytest.mark.parametrize("shuffle_questions", [False, True])
@pytest.mark.parametrize("shuffle_options", [False, True])
def test_taking_view_never_carries_the_answer_key(shuffle_questions, shuffle_options):
    quiz = _quiz(shuffle_questions=shuffle_questions, shuffle_options=shuffle_options)
    attempt = make_attempt(quiz, uuid4())

    view = build_taking_view(quiz, attempt, now=T0, rng=random.Random(3))
    payload = view.model_dump()

    for question in payload["questions"]:
        for option in question["options"]:
            assert "is_correct" not in option
    assert "is_correct" not in view.model_dump_json()
    assert "explanation" not in view.model_dump_json()


def test_taking_view_keeps_authored_order_without_shuffle():
    quiz = _quiz()
    attempt = make_attempt(quiz, uuid4())

    view = build_taking_view(quiz, attempt, now=T0)

    assert [q.id for q in view.questions] == [q.id for q in quiz.questions]
    assert [o.option_text for o in view.questions[0].options] == ["A", "B", "C", "D"]


def test_taking_view_shuffles_questions_and_options():
    quiz = _quiz(shuffle_questions=True, shuffle_options=True)
    attempt = make_attempt(quiz, uuid4())
    rng = random.Random(11)

    orders = set()
    option_orders = set()
    for _ in range(10):
        view = build_taking_view(quiz, attempt, now=T0, rng=rng)
        orders.add(tuple(q.id for q in view.questions))
        option_orders.add(tuple(o.option_text for o in view.questions[0].options))
        assert {q.id for q in view.questions} == {q.id for q in quiz.questions}

    assert len(orders) > 1
    assert len(option_orders) > 1


def test_taking_view_timing_and_saved_answers():
    quiz = _quiz(duration_minutes=20)
    attempt = make_attempt(quiz, uuid4())
    question = quiz.questions[1]
    saved = SimpleNamespace(question_id=question.id, selected_option_id=question.options[2].id, text_answer=None)

    view = build_taking_view(quiz, attempt, [saved], now=T0 + timedelta(minutes=5))

    assert view.remaining_seconds == 15 * 60
    assert view.attempt.deadline == T0 + timedelta(minutes=20)
    assert view.questions[1].saved_answer.selected_option_id == question.options[2].id
    assert view.questions[0].saved_answer is None


def test_result_view_reveals_key_when_review_allowed():
    quiz = _quiz()
    attempt = make_attempt(quiz, uuid4(), status=AttemptStatus.SUBMITTED, score=2, percentage=2 / 15 * 100)
    question = quiz.questions[0]

    view = build_result_view(quiz, attempt, [_graded_answer(question, 1, 0)])

    first = view.questions[0]
    assert first.correct_option_id == question.options[0].id
    assert first.explanation == "Because."
    assert [o.is_correct for o in first.options] == [True, False, False, False]
    assert first.selected_option_id == question.options[1].id
    assert first.is_correct is False
    assert view.attempt.passed is False


def test_result_view_masks_key_when_review_disallowed():
    quiz = _quiz(allow_review=False)
    attempt = make_attempt(quiz, uuid4(), status=AttemptStatus.SUBMITTED, score=2, percentage=100)
    question = quiz.questions[0]

    view = build_result_view(quiz, attempt, [_graded_answer(question, 0, 2)])

    for result_question in view.questions:
        assert all(o.is_correct is False for o in result_question.options)
        assert result_question.correct_option_id is None
        assert result_question.explanation is None
    # The student's own answer and its grade stay visible
    assert view.questions[0].selected_option_id == question.options[0].id
    assert view.questions[0].is_correct is True
    assert view.questions[0].points_earned == 2


def test_result_view_refused_when_results_hidden():
    quiz = _quiz(show_results=False)
    attempt = make_attempt(quiz, uuid4(), status=AttemptStatus.GRADED, score=0, percentage=0)

    with pytest.raises(NotEligibleError, match="not available"):
        build_result_view(quiz, attempt)


def test_result_view_requires_finished_attempt():
    quiz = _quiz()
    attempt = make_attempt(quiz, uuid4())

    with pytest.raises(NotEligibleError, match="not been submitted"):
        build_result_view(quiz, attempt)
