from datetime import timedelta
from uuid import uuid4

import pytest

from app.core.exceptions import InvalidStateError, NotFoundError, QuizValidationError
from app.core.permissions import CurrentUser
from app.models.quiz import QuizStatus
from app.models.quiz_question import QuestionType
from app.schemas.quiz import (
    GeneratedOption,
    GeneratedQuestion,
    ImportGeneratedQuestionsRequest,
    OptionInput,
    QuestionInput,
    QuizCreateRequest,
    QuizUpdateRequest,
)
from app.services.quiz_service import QuizService, normalize_generated_question, validate_question
from tests.fakes import (
    FakeAttemptRepository,
    FakeEnrollmentRepository,
    FakeOfferingRepository,
    FakeQuizRepository,
    FakeSession,
    T0,
    make_attempt,
    make_offering,
    make_question,
    make_quiz,
)


def _mcq(points=1.0, text="Which one is right?", correct=0, count=3):
    return QuestionInput(
        question_type=QuestionType.MULTIPLE_CHOICE,
        question_text=text,
        points=points,
        options=[OptionInput(option_text=f"Option {i}", is_correct=(i == correct)) for i in range(count)],
    )


class _Recorder:
    def __init__(self):
        self.calls = []

    async def __call__(self, user_ids, **kwargs):
        self.calls.append((list(user_ids), kwargs))
        return True


@pytest.fixture
def instructor():
    return CurrentUser(id=uuid4(), permissions=frozenset({"quiz.create", "quiz.edit"}))


@pytest.fixture
def setup():
    offering = make_offering()
    draft = make_quiz([], offering=offering, status=QuizStatus.DRAFT)
    db = FakeSession()
    quizzes = FakeQuizRepository(draft)
    attempts = FakeAttemptRepository()
    enrollments = FakeEnrollmentRepository()
    notifier = _Recorder()
    service = QuizService(
        db,
        quiz_repo=quizzes,
        attempt_repo=attempts,
        offering_repo=FakeOfferingRepository(offering),
        enrollment_repo=enrollments,
        notifier=notifier,
    )
    return dict(
        service=service,
        db=db,
        quiz=draft,
        offering=offering,
        quizzes=quizzes,
        attempts=attempts,
        enrollments=enrollments,
        notifier=notifier,
    )


def _total(quiz):
    return sum(q.points for q in quiz.questions)


# ============================================================
# Question rules
# ============================================================

@pytest.mark.parametrize(
    "question_type, options, message",
    [
        (QuestionType.MULTIPLE_CHOICE, [("A", True)], "at least 2 options"),
        (QuestionType.MULTIPLE_CHOICE, [("A", False), ("B", False)], "at least one correct"),
        (QuestionType.TRUE_FALSE, [("True", True), ("False", False), ("Maybe", False)], "exactly 2 options"),
        (QuestionType.TRUE_FALSE, [("True", True), ("False", True)], "exactly one correct"),
        (QuestionType.SHORT_ANSWER, [("A", True)], "cannot have options"),
    ],
)
def test_validate_question_rejects(question_type, options, message):
    data = QuestionInput(
        question_type=question_type,
        question_text="A question",
        options=[OptionInput(option_text=t, is_correct=c) for t, c in options],
    )

    with pytest.raises(QuizValidationError, match=message):
        validate_question(data)


def test_validate_question_accepts_multiple_correct_mcq():
    data = _mcq()
    data.options[1].is_correct = True

    validate_question(data)


def test_normalize_generated_true_false_without_pair():
    generated = GeneratedQuestion(
        question_type=QuestionType.TRUE_FALSE,
        question_text="The sky is blue.",
        options=[GeneratedOption(option_text="true", is_correct=True)],
    )

    data = normalize_generated_question(generated)

    assert [(o.option_text, o.is_correct) for o in data.options] == [("True", True), ("False", False)]
    validate_question(data)


def test_normalize_generated_mcq_marks_first_option_when_key_unclear():
    generated = GeneratedQuestion(
        question_type=QuestionType.MULTIPLE_CHOICE,
        question_text="Pick the prime number.",
        options=[GeneratedOption(option_text=t, is_correct=True) for t in ("2", "3", "4")],
    )

    data = normalize_generated_question(generated)

    assert [o.is_correct for o in data.options] == [True, False, False]


def test_normalize_generated_short_answer_drops_options():
    generated = GeneratedQuestion(
        question_type=QuestionType.SHORT_ANSWER,
        question_text="Explain recursion.",
        explanation="",
        options=[GeneratedOption(option_text="junk")],
    )

    data = normalize_generated_question(generated)

    assert data.options == []
    assert data.explanation is None


# ============================================================
# Questions and total points
# ============================================================

async def test_total_points_follow_every_question_change(setup):
    service, quiz = setup["service"], setup["quiz"]

    first = await service.add_question(quiz.id, _mcq(points=2))
    second = await service.add_question(quiz.id, _mcq(points=3))
    assert quiz.total_points == _total(quiz) == 5
    assert [first.display_order, second.display_order] == [0, 1]

    await service.update_question(quiz.id, first.id, _mcq(points=4))
    assert quiz.total_points == _total(quiz) == 7

    await service.delete_question(quiz.id, first.id)
    assert quiz.total_points == _total(quiz) == 3
    assert second.display_order == 0


async def test_update_question_replaces_options(setup):
    service, quiz = setup["service"], setup["quiz"]
    question = await service.add_question(quiz.id, _mcq(count=4))

    await service.update_question(quiz.id, question.id, _mcq(count=2, correct=1))

    assert [(o.display_order, o.is_correct) for o in question.options] == [(0, False), (1, True)]


async def test_invalid_question_is_not_added(setup):
    service, quiz = setup["service"], setup["quiz"]

    with pytest.raises(QuizValidationError):
        await service.add_question(quiz.id, _mcq(count=1))

    assert quiz.questions == []
    assert setup["db"].commits == 0


async def test_questions_of_published_quiz_are_frozen(setup):
    service = setup["service"]
    quiz = make_quiz([make_question()], status=QuizStatus.PUBLISHED)
    setup["quizzes"].add(quiz)

    with pytest.raises(InvalidStateError):
        await service.add_question(quiz.id, _mcq())
    with pytest.raises(InvalidStateError):
        await service.delete_question(quiz.id, quiz.questions[0].id)


async def test_unknown_question_is_not_found(setup):
    service, quiz = setup["service"], setup["quiz"]

    with pytest.raises(NotFoundError):
        await service.update_question(quiz.id, uuid4(), _mcq())
    with pytest.raises(NotFoundError):
        await service.delete_question(quiz.id, uuid4())


async def test_reorder_requires_exact_question_set(setup):
    service, quiz = setup["service"], setup["quiz"]
    questions = [await service.add_question(quiz.id, _mcq(text=f"Question {i}")) for i in range(3)]

    with pytest.raises(QuizValidationError):
        await service.reorder_questions(quiz.id, [questions[0].id, questions[1].id])
    with pytest.raises(QuizValidationError):
        await service.reorder_questions(quiz.id, [questions[0].id, questions[0].id, questions[1].id])

    await service.reorder_questions(quiz.id, [questions[2].id, questions[0].id, questions[1].id])
    assert [q.display_order for q in questions] == [1, 2, 0]


async def test_save_all_questions_updates_creates_and_deletes(setup):
    service, quiz = setup["service"], setup["quiz"]
    kept = await service.add_question(quiz.id, _mcq(points=1, text="Kept question"))
    dropped = await service.add_question(quiz.id, _mcq(points=1, text="Dropped question"))

    edited = _mcq(points=5, text="Kept and edited")
    edited.id = kept.id
    await service.save_all_questions(quiz.id, [_mcq(points=2, text="Brand new"), edited])

    assert dropped not in quiz.questions
    assert kept.question_text == "Kept and edited"
    assert kept.display_order == 1
    assert len(quiz.questions) == 2
    assert quiz.total_points == 7


async def test_save_all_questions_names_the_broken_entry(setup):
    service, quiz = setup["service"], setup["quiz"]

    with pytest.raises(QuizValidationError, match="Question 2"):
        await service.save_all_questions(quiz.id, [_mcq(), _mcq(count=1)])


async def test_save_all_questions_rejects_repeated_id(setup):
    service, quiz, db = setup["service"], setup["quiz"], setup["db"]
    kept = await service.add_question(quiz.id, _mcq(points=1, text="Kept question"))
    commits = db.commits

    first, second = _mcq(text="First copy"), _mcq(text="Second copy")
    first.id = second.id = kept.id
    with pytest.raises(QuizValidationError):
        await service.save_all_questions(quiz.id, [first, second, _mcq(text="Brand new")])

    assert [q.display_order for q in quiz.questions] == [0]
    assert kept.question_text == "Kept question"
    assert db.commits == commits


async def test_import_generated_questions(setup):
    service, quiz = setup["service"], setup["quiz"]
    await service.add_question(quiz.id, _mcq(points=1))
    request = ImportGeneratedQuestionsRequest(
        questions=[
            GeneratedQuestion(
                question_type=QuestionType.TRUE_FALSE,
                question_text="Water boils at 100C at sea level.",
                points=2,
                options=[GeneratedOption(option_text="True", is_correct=True), GeneratedOption(option_text="False")],
            ),
            GeneratedQuestion(question_type=QuestionType.SHORT_ANSWER, question_text="Define entropy.", points=3),
        ]
    )

    added = await service.import_generated_questions(quiz.id, request)

    assert added == 2
    assert quiz.total_points == 6
    imported = sorted(quiz.questions, key=lambda q: q.display_order)[1:]
    assert [q.display_order for q in imported] == [1, 2]
    assert all(q.is_ai_generated for q in imported)


# ============================================================
# Quiz CRUD and lifecycle
# ============================================================

async def test_create_quiz_starts_as_empty_draft(setup, instructor):
    service = setup["service"]
    request = QuizCreateRequest(title="Midterm review", offering_id=setup["offering"].id)

    quiz = await service.create_quiz(request, instructor)

    assert quiz.status == QuizStatus.DRAFT
    assert quiz.total_points == 0
    assert quiz.creator_id == instructor.id
    assert quiz.duration_minutes == 30

    with pytest.raises(NotFoundError):
        await service.create_quiz(QuizCreateRequest(title="Nowhere", offering_id=uuid4()), instructor)


async def test_update_published_quiz_only_moves_window(setup):
    service = setup["service"]
    quiz = make_quiz([make_question()], status=QuizStatus.PUBLISHED)
    setup["quizzes"].add(quiz)
    request = QuizUpdateRequest(
        title="Renamed",
        duration_minutes=90,
        passing_score=10,
        shuffle_questions=True,
        start_time=T0,
        end_time=T0 + timedelta(days=1),
    )

    await service.update_quiz(quiz.id, request)

    assert quiz.title == "Week 1 quiz"
    assert quiz.duration_minutes == 30
    assert quiz.shuffle_questions is False
    assert quiz.end_time == T0 + timedelta(days=1)


async def test_update_draft_applies_settings(setup):
    service, quiz = setup["service"], setup["quiz"]
    request = QuizUpdateRequest(title="Renamed", duration_minutes=45, passing_score=75, allow_review=False)

    await service.update_quiz(quiz.id, request)

    assert quiz.title == "Renamed"
    assert quiz.duration_minutes == 45
    assert quiz.passing_score == 75
    assert quiz.allow_review is False
    assert quiz.shuffle_options is False


async def test_publish_requires_questions(setup):
    service, quiz = setup["service"], setup["quiz"]

    with pytest.raises(QuizValidationError):
        await service.publish_quiz(quiz.id)
    assert quiz.status == QuizStatus.DRAFT


async def test_publish_notifies_enrolled_students(setup):
    service, quiz = setup["service"], setup["quiz"]
    student_id = uuid4()
    setup["enrollments"].enroll(student_id, setup["offering"])
    await service.add_question(quiz.id, _mcq(points=2))

    await service.publish_quiz(quiz.id)

    assert quiz.status == QuizStatus.PUBLISHED
    assert quiz.total_points == 2
    [(user_ids, kwargs)] = setup["notifier"].calls
    assert user_ids == [student_id]
    assert kwargs["link"] == f"/quizzes/{quiz.id}/take"

    with pytest.raises(InvalidStateError):
        await service.publish_quiz(quiz.id)


async def test_close_and_reopen(setup):
    service = setup["service"]
    quiz = make_quiz([make_question()], status=QuizStatus.PUBLISHED)
    setup["quizzes"].add(quiz)

    with pytest.raises(InvalidStateError):
        await service.reopen_quiz(quiz.id)

    await service.close_quiz(quiz.id)
    assert quiz.status == QuizStatus.CLOSED
    with pytest.raises(InvalidStateError):
        await service.close_quiz(quiz.id)

    await service.reopen_quiz(quiz.id)
    assert quiz.status == QuizStatus.PUBLISHED


async def test_delete_refused_once_attempted(setup):
    service = setup["service"]
    quiz = make_quiz([make_question()], status=QuizStatus.PUBLISHED)
    setup["quizzes"].add(quiz)
    setup["attempts"].add(make_attempt(quiz, uuid4()))

    with pytest.raises(InvalidStateError):
        await service.delete_quiz(quiz.id)
    assert quiz.deleted_at is None

    await service.delete_quiz(setup["quiz"].id)
    assert setup["quiz"].deleted_at is not None
    with pytest.raises(NotFoundError):
        await service.get_quiz(setup["quiz"].id)


async def test_duplicate_makes_independent_draft(setup, instructor):
    service = setup["service"]
    original = make_quiz(
        [make_question(points=2), make_question(points=3, display_order=1)],
        status=QuizStatus.CLOSED,
        start_time=T0,
        end_time=T0 + timedelta(days=1),
        shuffle_options=True,
    )
    setup["quizzes"].add(original)

    copy = await service.duplicate_quiz(original.id, instructor)

    assert copy.id != original.id
    assert copy.title == "Week 1 quiz (copy)"
    assert copy.status == QuizStatus.DRAFT
    assert copy.creator_id == instructor.id
    assert copy.start_time is None and copy.end_time is None
    assert copy.shuffle_options is True
    assert copy.total_points == 5
    assert {q.id for q in copy.questions}.isdisjoint({q.id for q in original.questions})
    assert [o.option_text for o in copy.questions[0].options] == ["A", "B"]
    assert [o.is_correct for o in copy.questions[0].options] == [True, False]


async def test_get_quiz_includes_answer_keys_and_attempt_count(setup):
    service = setup["service"]
    quiz = make_quiz([make_question(points=2)])
    setup["quizzes"].add(quiz)
    setup["attempts"].add(make_attempt(quiz, uuid4()))

    detail = await service.get_quiz(quiz.id)

    assert detail.attempt_count == 1
    assert detail.question_count == 1
    assert [o.is_correct for o in detail.questions[0].options] == [True, False]


async def test_list_offerings_for_quiz(setup):
    offerings = await setup["service"].list_offerings_for_quiz()

    assert [o.code for o in offerings] == [setup["offering"].code]
