from types import SimpleNamespace
from uuid import uuid4

from sqlalchemy.dialects import postgresql

from app.models.quiz_attempt import AttemptStatus
from app.repositories.enrollment_repo import EnrollmentRepository
from app.repositories.quiz_repo import QuizAnswerRepository, QuizAttemptRepository
from tests.fakes import T0, FakeSession


class _RecordingSession(FakeSession):
    """Keeps every executed statement; answers with a fixed rowcount."""

    def __init__(self, rowcount=1, scalar=None):
        super().__init__()
        self.statements = []
        self.rowcount = rowcount
        self.scalar_value = scalar

    async def execute(self, stmt):
        self.statements.append(stmt)
        return SimpleNamespace(rowcount=self.rowcount, scalar=lambda: self.scalar_value)


def _compile(stmt):
    compiled = stmt.compile(dialect=postgresql.dialect())
    return str(compiled), compiled.params


async def test_upsert_answer_conflicts_on_attempt_and_question():
    db = _RecordingSession()
    repo = QuizAnswerRepository(db)

    await repo.upsert_answer(uuid4(), uuid4(), uuid4(), None, answered_at=T0)

    [stmt] = db.statements
    sql, _ = _compile(stmt)
    assert "INSERT INTO quiz_answers" in sql
    assert "ON CONFLICT (attempt_id, question_id) DO UPDATE SET" in sql

    set_clause = sql.split("DO UPDATE SET", 1)[1]
    for column in ("selected_option_id", "text_answer", "answered_at"):
        assert f"{column} = excluded.{column}" in set_clause
    assert "is_correct" not in set_clause
    assert "points_earned" not in set_clause


async def test_upsert_answer_never_commits():
    db = _RecordingSession()

    await QuizAnswerRepository(db).upsert_answer(uuid4(), uuid4(), None, "text", answered_at=T0)

    assert db.commits == 0


async def test_claim_submission_only_moves_in_progress_attempts():
    db = _RecordingSession(rowcount=1)
    attempt_id = uuid4()

    claimed = await QuizAttemptRepository(db).claim_submission(attempt_id, T0)

    assert claimed is True
    [stmt] = db.statements
    sql, params = _compile(stmt)
    assert sql.startswith("UPDATE quiz_attempts SET")
    where_clause = sql.split("WHERE", 1)[1]
    assert "quiz_attempts.id = " in where_clause
    assert "quiz_attempts.status = " in where_clause
    assert params["status"] == AttemptStatus.SUBMITTED
    assert params["submitted_at"] == T0
    assert AttemptStatus.IN_PROGRESS in params.values()
    assert attempt_id in params.values()


async def test_claim_submission_reports_lost_race():
    db = _RecordingSession(rowcount=0)

    assert await QuizAttemptRepository(db).claim_submission(uuid4(), T0) is False


async def test_is_enrolled_ignores_dropped_enrollments():
    db = _RecordingSession(scalar=True)

    assert await EnrollmentRepository(db).is_enrolled(uuid4(), uuid4()) is True

    sql, _ = _compile(db.statements[0])
    assert "enrollments.dropped_at IS NULL" in sql
