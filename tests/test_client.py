"""Tests for the Python API client against the in-process app."""

from datetime import timedelta

import pytest
from jose import jwt

from profman.client import ApiError, ProfmanClient
from profman.core.records import utc_now


@pytest.fixture
def api(client):
    return ProfmanClient(http=client)


def _expired_token(user):
    past = int((utc_now() - timedelta(minutes=5)).timestamp())
    claims = {"userId": user.id, "email": user.email, "role": user.role, "type": "access", "exp": past}
    return jwt.encode(claims, "test-secret", algorithm="HS256")


class TestClientAuth:
    def test_login_keeps_tokens(self, api, professor):
        api.login(professor.email, "Prof1234")

        assert api.access_token and api.refresh_token
        assert api.user["id"] == professor.id
        assert api.me()["email"] == professor.email

    def test_login_failure(self, api, professor):
        with pytest.raises(ApiError) as exc_info:
            api.login(professor.email, "Wrong123")
        assert exc_info.value.status_code == 401
        assert exc_info.value.code == "LOGIN_FAILED"

    def test_validation_details(self, api, store):
        with pytest.raises(ApiError) as exc_info:
            api.register(email="x@university.edu", password="weak", displayName="X Y", role="professor")
        assert exc_info.value.code == "VALIDATION_ERROR"
        assert exc_info.value.details[0]["field"] == "password"

    def test_refresh_and_retry(self, api, professor):
        api.login(professor.email, "Prof1234")
        api.access_token = _expired_token(professor)

        page = api.subjects.fetch_all()

        assert page["total"] == 0
        assert api.access_token != _expired_token(professor)

    def test_failed_refresh_clears_tokens(self, api, professor):
        api.access_token = _expired_token(professor)
        api.refresh_token = "garbage"

        with pytest.raises(ApiError) as exc_info:
            api.subjects.fetch_all()
        assert exc_info.value.code == "TOKEN_EXPIRED"
        assert api.refresh_token is None

    def test_logout(self, api, professor):
        api.login(professor.email, "Prof1234")
        api.logout()
        with pytest.raises(ApiError):
            api.me()


class TestClientResources:
    def test_admin_workflow(self, api, admin, professor):
        api.login(admin.email, "Admin123")

        subject = api.subjects.create(code="CS101", title="Intro to CS")
        assert api.subjects.by_code("CS101")["id"] == subject["id"]
        api.subjects.assign(subject["id"], [professor.id])
        assert [a["professorId"] for a in api.subjects.assignments(subject["id"])] == [professor.id]

        branch = api.branches.create(subjectId=subject["id"], professorId=professor.id, title="Section A")
        assert api.branches.fetch(branch["id"])["title"] == "Section A"
        assert [p["id"] for p in api.users.professors()] == [professor.id]

        api.branches.delete(branch["id"])
        api.branches.restore(branch["id"])
        assert [b["id"] for b in api.branches.active()] == [branch["id"]]

    def test_quiz_workflow(self, api, professor, student):
        api.login(professor.email, "Prof1234")
        quiz = api.quizzes.create(
            branchId="b1",
            title="Quick check",
            questions=[{"type": "true_false", "question": "2 > 1 holds.", "correctAnswer": True, "points": 1}],
        )

        api.logout()
        api.login(student.email, student.student_number)
        attempt = api.quizzes.submit(quiz["id"], {quiz["questions"][0]["id"]: True}, time_spent=30)

        assert attempt["percentage"] == 100
        assert api.quizzes.best_attempt(student.id, quiz["id"])["id"] == attempt["id"]
        assert len(api.quizzes.attempts(student.id)) == 1

    def test_user_restore(self, api, admin, student):
        api.login(admin.email, "Admin123")
        api.users.delete(student.id)
        api.users.restore(student.id)
        assert api.users.fetch(student.id)["isDeleted"] is False

    def test_requires_base_url_or_http(self):
        with pytest.raises(ValueError):
            ProfmanClient()
