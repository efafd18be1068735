from uuid import uuid4

import pytest

from app.core.exceptions import NotFoundError, UnauthorizedError
from app.core.permissions import CurrentUser
from app.models.quiz import QuizStatus
from app.models.quiz_attempt import AttemptStatus
from app.services.report_service import ReportService
from tests.fakes import (
    FakeAttemptRepository,
    FakeEnrollmentRepository,
    FakeOfferingRepository,
    FakeQuizRepository,
    FakeSession,
    make_attempt,
    make_offering,
    make_question,
    make_quiz,
)


@pytest.fixture
def school():
    current = make_offering(code="CS201-1", semester_name="Fall 2026", is_current_semester=True)
    past = make_offering(code="CS101-1", semester_name="Spring 2026", is_current_semester=False)

    quiz_a = make_quiz([make_question(points=10)], offering=current, title="Quiz A")
    quiz_b = make_quiz([make_question(points=10)], offering=current, title="Quiz B")
    draft = make_quiz([make_question(points=10)], offering=current, status=QuizStatus.DRAFT, title="Draft")
    old = make_quiz([make_question(points=5)], offering=past, title="Old quiz")

    alice, bob = uuid4(), uuid4()
    enrollments = FakeEnrollmentRepository()
    enrollments.enroll(bob, current, name="Bob", academic_id="S-2")
    enrollments.enroll(alice, current, name="alice", academic_id="S-1")
    enrollments.enroll(alice, past, name="alice", academic_id="S-1")

    attempts = FakeAttemptRepository(
        make_attempt(quiz_a, alice, status=AttemptStatus.SUBMITTED, score=9, percentage=90.0),
        make_attempt(quiz_b, alice, status=AttemptStatus.SUBMITTED, score=5, percentage=50.0),
        make_attempt(quiz_a, bob, status=AttemptStatus.GRADED, score=8.95, percentage=89.5),
        make_attempt(quiz_b, bob, status=AttemptStatus.IN_PROGRESS),
        make_attempt(old, alice, status=AttemptStatus.SUBMITTED, score=5, percentage=100.0),
    )

    service = ReportService(
        FakeSession(),
        quiz_repo=FakeQuizRepository(quiz_a, quiz_b, draft, old),
        attempt_repo=attempts,
        offering_repo=FakeOfferingRepository(current, past),
        enrollment_repo=enrollments,
    )
    instructor = CurrentUser(id=current.instructor_id, permissions=frozenset({"quiz.view"}))
    return dict(
        service=service,
        current=current,
        past=past,
        quizzes=(quiz_a, quiz_b, draft, old),
        alice=alice,
        bob=bob,
        instructor=instructor,
    )


async def test_transcript_groups_by_semester_current_first(school):
    transcript = await school["service"].get_student_transcript(school["alice"])

    assert [s.name for s in transcript] == ["Fall 2026", "Spring 2026"]
    assert transcript[0].is_current is True

    offering = transcript[0].offerings[0]
    assert offering.code == "CS201-1"
    assert {q.title for q in offering.quizzes} == {"Quiz A", "Quiz B"}
    assert offering.total_score == 14
    assert offering.max_score == 20
    assert offering.percentage == 70


async def test_transcript_marks_missing_attempts(school):
    transcript = await school["service"].get_student_transcript(school["bob"])

    [semester] = transcript
    rows = {q.title: q for q in semester.offerings[0].quizzes}
    assert rows["Quiz B"].status == "IN_PROGRESS"
    assert rows["Quiz A"].status == "GRADED"

    assert await school["service"].get_student_transcript(uuid4()) == []


async def test_gradebook_matrix(school):
    quiz_a, quiz_b, draft, _ = school["quizzes"]

    gradebook = await school["service"].get_offering_gradebook(school["current"].id, school["instructor"])

    assert {q.id for q in gradebook.quizzes} == {quiz_a.id, quiz_b.id}
    assert [s.name for s in gradebook.students] == ["alice", "Bob"]
    alice, bob = gradebook.students
    assert alice.quiz_scores == {str(quiz_a.id): 9, str(quiz_b.id): 5}
    assert alice.total_score == 14
    assert alice.max_possible == 20
    assert bob.quiz_scores[str(quiz_b.id)] is None
    assert bob.academic_id == "S-2"


async def test_gradebook_is_limited_to_the_offering_staff(school):
    stranger = CurrentUser(id=uuid4(), permissions=frozenset({"quiz.view"}))
    admin = CurrentUser(id=uuid4(), permissions=frozenset({"quiz.view"}), is_system_role=True)

    with pytest.raises(UnauthorizedError):
        await school["service"].get_offering_gradebook(school["current"].id, stranger)
    with pytest.raises(NotFoundError):
        await school["service"].get_offering_gradebook(uuid4(), admin)

    gradebook = await school["service"].get_offering_gradebook(school["current"].id, admin)
    assert len(gradebook.students) == 2


async def test_offering_stats_use_finished_attempts_only(school):
    stats = await school["service"].get_offering_stats(school["current"].id, school["instructor"])

    assert stats.student_count == 2
    assert stats.quiz_count == 3
    assert stats.attempt_count == 3
    assert stats.min_percentage == 50
    assert stats.max_percentage == 90
    assert stats.avg_percentage == pytest.approx((90 + 50 + 89.5) / 3)

    buckets = {b.label: b.count for b in stats.distribution}
    assert buckets["Excellent (90-100)"] == 1
    # 89.5 lands in the band below 90, not between bands
    assert buckets["Very good (80-89)"] == 1
    assert buckets["Fail (0-59)"] == 1
    assert sum(b.count for b in stats.distribution) == 3


async def test_offering_stats_without_attempts(school):
    stats = await school["service"].get_offering_stats(school["past"].id, CurrentUser(id=uuid4(), is_system_role=True))

    assert stats.attempt_count == 1
    empty = ReportService(
        FakeSession(),
        quiz_repo=FakeQuizRepository(),
        attempt_repo=FakeAttemptRepository(),
        offering_repo=FakeOfferingRepository(school["past"]),
        enrollment_repo=FakeEnrollmentRepository(),
    )
    stats = await empty.get_offering_stats(school["past"].id, CurrentUser(id=uuid4(), is_system_role=True))
    assert stats.attempt_count == 0
    assert stats.avg_percentage == 0
    assert all(b.percentage == 0 for b in stats.distribution)
