from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from app.api.v1.endpoints.attempts import get_attempt_service
from app.api.v1.endpoints.quizzes import get_quiz_service
from app.core.config import settings
from app.core.security import create_access_token
from app.main import app
from app.services.attempt_service import AttemptService
from app.services.quiz_service import QuizService
from tests.fakes import (
    FakeAnswerRepository,
    FakeAttemptRepository,
    FakeClock,
    FakeEnrollmentRepository,
    FakeQuizRepository,
    FakeSession,
    make_question,
    make_quiz,
)

API = settings.API_V1_PREFIX


@pytest.fixture
def env():
    quiz = make_quiz([make_question(points=2, options=(("A", True), ("B", False)))], duration_minutes=5)
    student_id = uuid4()
    enrollments = FakeEnrollmentRepository()
    enrollments.enroll(student_id, quiz.offering)
    db = FakeSession()
    clock = FakeClock()
    service = AttemptService(
        db,
        quiz_repo=FakeQuizRepository(quiz),
        attempt_repo=FakeAttemptRepository(),
        answer_repo=FakeAnswerRepository(),
        enrollment_repo=enrollments,
        clock=clock,
    )
    app.dependency_overrides[get_attempt_service] = lambda: service
    app.dependency_overrides[get_quiz_service] = lambda: QuizService(
        db,
        quiz_repo=FakeQuizRepository(quiz),
        attempt_repo=FakeAttemptRepository(),
    )

    token = create_access_token(student_id)
    yield dict(
        client=TestClient(app),
        headers={"Authorization": f"Bearer {token}"},
        quiz=quiz,
        db=db,
        clock=clock,
        service=service,
    )

    app.dependency_overrides.clear()


def _start(env):
    response = env["client"].post(f"{API}/quizzes/{env['quiz'].id}/attempts", headers=env["headers"])
    assert response.status_code == 201
    return response.json()["data"]["attempt_id"]


def test_full_attempt_round_trip(env):
    client, headers, quiz = env["client"], env["headers"], env["quiz"]
    question = quiz.questions[0]

    attempt_id = _start(env)
    assert _start(env) == attempt_id

    view = client.get(f"{API}/attempts/{attempt_id}", headers=headers).json()
    assert view["success"] is True
    options = view["data"]["questions"][0]["options"]
    assert all("is_correct" not in o for o in options)

    saved = client.put(
        f"{API}/attempts/{attempt_id}/answers",
        headers=headers,
        json={"question_id": str(question.id), "selected_option_id": str(question.options[0].id)},
    )
    assert saved.json() == {"success": True, "data": None, "error": None, "code": None}

    submitted = client.post(f"{API}/attempts/{attempt_id}/submit", headers=headers, json={"answers": []})
    assert submitted.status_code == 200
    assert submitted.json()["data"] == {"score": 2.0, "percentage": 100.0}

    again = client.post(f"{API}/attempts/{attempt_id}/submit", headers=headers, json={"answers": []})
    assert again.status_code == 409
    assert again.json()["success"] is False
    assert again.json()["code"] == "ALREADY_COMPLETED"

    result = client.get(f"{API}/attempts/{attempt_id}/result", headers=headers).json()
    assert result["data"]["attempt"]["passed"] is True
    assert result["data"]["questions"][0]["correct_option_id"] == str(question.options[0].id)


def test_expired_view_reports_expiry(env):
    client, headers = env["client"], env["headers"]
    attempt_id = _start(env)
    env["clock"].advance(minutes=6)

    response = client.get(f"{API}/attempts/{attempt_id}", headers=headers)

    assert response.status_code == 410
    body = response.json()
    assert body["success"] is False
    assert body["code"] == "EXPIRED"

    remaining = client.get(f"{API}/attempts/{attempt_id}/remaining-time", headers=headers).json()
    assert remaining["data"] == {"remaining_seconds": 0, "is_expired": True}


def test_foreign_attempt_is_forbidden(env):
    attempt_id = _start(env)
    other = {"Authorization": f"Bearer {create_access_token(uuid4())}"}

    response = env["client"].get(f"{API}/attempts/{attempt_id}", headers=other)

    assert response.status_code == 403
    assert response.json()["code"] == "UNAUTHORIZED"


def test_missing_token_is_401_envelope(env):
    response = env["client"].get(f"{API}/student/quizzes")

    assert response.status_code == 401
    assert response.json()["success"] is False
    assert response.json()["code"] == "UNAUTHORIZED"


def test_invalid_token_is_401(env):
    response = env["client"].get(f"{API}/student/quizzes", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401


def test_authoring_requires_permission(env):
    quiz_id = env["quiz"].id

    response = env["client"].post(f"{API}/quizzes/{quiz_id}/publish", headers=env["headers"])

    assert response.status_code == 403
    assert response.json()["code"] == "PERMISSION_DENIED"


def test_authoring_with_permission(env):
    token = create_access_token(uuid4(), permissions=["quiz.view"])

    response = env["client"].get(
        f"{API}/quizzes/{env['quiz'].id}",
        headers={"Authorization": f"Bearer {token}"},
    )

    assert response.status_code == 200
    assert response.json()["data"]["question_count"] == 1


def test_malformed_body_is_validation_envelope(env):
    attempt_id = _start(env)

    response = env["client"].put(
        f"{API}/attempts/{attempt_id}/answers",
        headers=env["headers"],
        json={"question_id": "not-a-uuid"},
    )

    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_unexpected_error_is_generic_and_rolls_back(env, monkeypatch):
    async def boom(student_id):
        raise RuntimeError("database is on fire")

    monkeypatch.setattr(env["service"], "list_student_quizzes", boom)

    response = env["client"].get(f"{API}/student/quizzes", headers=env["headers"])

    assert response.status_code == 500
    body = response.json()
    assert body["code"] == "INTERNAL_ERROR"
    assert "fire" not in body["error"]
    assert env["db"].rollbacks == 1
