"""Tests for /api/exams endpoints."""

from unittest.mock import MagicMock

import pytest

from profman.web.deps import get_drive_service

EXAM = {
    "branchId": "branch1",
    "title": "Midterm Exam",
    "dueDate": "2099-03-15T23:59:00Z",
    "questions": [
        {"type": "multiple_choice", "question": "2 + 2?", "options": ["3", "4"], "correctAnswer": "4", "points": 10},
        {"type": "true_false", "question": "Tuples are mutable.", "correctAnswer": False, "points": 10},
        {"type": "essay", "question": "Explain recursion.", "points": 20},
    ],
}

ANSWERS = [
    {"questionId": "q1", "answer": "4"},
    {"questionId": "q2", "answer": False},
    {"questionId": "q3", "answer": "A function that calls itself."},
]


@pytest.fixture
def exam(client, professor_headers):
    response = client.post("/api/exams", headers=professor_headers, json=EXAM)
    assert response.status_code == 201
    return response.json()["data"]["exam"]


@pytest.fixture
def submission(client, student_headers, exam):
    response = client.post(f"/api/exams/{exam['id']}/submit", headers=student_headers, json={"answers": ANSWERS})
    assert response.status_code == 201
    return response.json()["data"]["submission"]


class TestExamCrud:
    def test_create(self, exam, professor):
        assert exam["professorId"] == professor.id
        assert exam["totalPoints"] == 40
        assert [q["id"] for q in exam["questions"]] == ["q1", "q2", "q3"]

    def test_empty_questions_rejected(self, client, professor_headers):
        response = client.post("/api/exams", headers=professor_headers, json={**EXAM, "questions": []})
        assert response.status_code == 400

    def test_professor_listing(self, client, professor_headers, exam):
        response = client.get("/api/exams/professor", headers=professor_headers)
        assert [e["id"] for e in response.json()["data"]["exams"]] == [exam["id"]]

    def test_branch_listing(self, client, student_headers, exam):
        response = client.get("/api/exams/branch/branch1", headers=student_headers)
        assert [e["id"] for e in response.json()["data"]["exams"]] == [exam["id"]]

    def test_update(self, client, professor_headers, exam):
        response = client.patch(
            f"/api/exams/{exam['id']}", headers=professor_headers, json={"allowLateSubmission": True}
        )
        assert response.json()["data"]["exam"]["allowLateSubmission"] is True

    def test_delete_restore(self, client, professor_headers, admin_headers, exam):
        path = f"/api/exams/{exam['id']}"
        assert client.delete(path, headers=professor_headers).status_code == 200
        assert client.get("/api/exams/branch/branch1", headers=professor_headers).json()["data"]["exams"] == []
        assert client.post(f"{path}/restore", headers=admin_headers).status_code == 200
        assert client.delete(f"{path}/permanent", headers=admin_headers).status_code == 200
        assert client.get(path, headers=professor_headers).status_code == 404


class TestExamSubmission:
    def test_submit(self, submission, student):
        assert submission["studentId"] == student.id
        assert submission["studentName"] == "Alice Johnson"
        assert submission["earnedPoints"] == 20
        assert submission["percentage"] == 50
        assert submission["grade"] == "F"
        assert submission["status"] == "submitted"

    def test_late_submission_rejected(self, client, professor_headers, student_headers):
        exam = client.post(
            "/api/exams", headers=professor_headers, json={**EXAM, "dueDate": "2000-01-01T00:00:00Z"}
        ).json()["data"]["exam"]
        response = client.post(f"/api/exams/{exam['id']}/submit", headers=student_headers, json={"answers": ANSWERS})
        assert response.status_code == 409

    def test_submissions_listing(self, client, professor_headers, student_headers, submission, student, exam):
        response = client.get(
            f"/api/exams/{exam['id']}/submissions", headers=professor_headers, params={"studentId": student.id}
        )
        assert [s["id"] for s in response.json()["data"]["submissions"]] == [submission["id"]]
        assert client.get(f"/api/exams/{exam['id']}/submissions", headers=student_headers).status_code == 403


class TestExamGrading:
    def test_grade(self, client, professor, professor_headers, submission):
        response = client.patch(
            f"/api/exams/submissions/{submission['id']}/grade",
            headers=professor_headers,
            json={
                "answers": [{"questionId": "q3", "points": 18, "feedback": "Clear"}],
                "overallFeedback": "Good work",
            },
        )

        assert response.status_code == 200
        graded = response.json()["data"]["submission"]
        assert graded["earnedPoints"] == 38
        assert graded["percentage"] == 95
        assert graded["grade"] == "A"
        assert graded["status"] == "graded"
        assert graded["gradedBy"] == professor.id
        assert graded["feedback"] == "Good work"

    def test_points_out_of_range(self, client, professor_headers, submission):
        response = client.patch(
            f"/api/exams/submissions/{submission['id']}/grade",
            headers=professor_headers,
            json={"answers": [{"questionId": "q3", "points": 25}]},
        )
        assert response.status_code == 400
        assert response.json()["error"]["details"][0]["field"] == "answers.q3.points"

    def test_student_cannot_grade(self, client, student_headers, submission):
        response = client.patch(
            f"/api/exams/submissions/{submission['id']}/grade",
            headers=student_headers,
            json={"answers": []},
        )
        assert response.status_code == 403


class TestExamUpload:
    @pytest.fixture
    def drive(self, app):
        fake = MagicMock()
        fake.create_folder.return_value = "folder1"
        fake.upload_file.return_value = {"id": "file123", "name": "notes.pdf", "webViewLink": "https://drive/x"}
        app.dependency_overrides[get_drive_service] = lambda: fake
        yield fake
        app.dependency_overrides.clear()

    def test_upload(self, client, professor, professor_headers, drive):
        response = client.post(
            "/api/exams/upload",
            headers=professor_headers,
            files={"file": ("notes.pdf", b"%PDF-1.4 test", "application/pdf")},
        )

        assert response.status_code == 201
        assert response.json()["data"] == {"fileId": "file123"}
        drive.upload_file.assert_called_once_with(
            professor.id, b"%PDF-1.4 test", "notes.pdf", "application/pdf", "folder1"
        )

    def test_disallowed_type(self, client, professor_headers, drive):
        response = client.post(
            "/api/exams/upload",
            headers=professor_headers,
            files={"file": ("run.sh", b"echo hi", "application/x-sh")},
        )
        assert response.status_code == 400
        assert response.json()["error"]["message"] == "File type not allowed"
