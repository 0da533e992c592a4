"""Tests for /api/drive and /api/sheets with the Google services mocked."""

from unittest.mock import MagicMock

import pytest

from profman.core.security import create_state_token
from profman.integrations.google_drive import DriveNotConnectedError
from profman.web.deps import get_drive_service, get_sheets_service


@pytest.fixture
def drive(app):
    fake = MagicMock()
    app.dependency_overrides[get_drive_service] = lambda: fake
    yield fake
    app.dependency_overrides.clear()


@pytest.fixture
def sheets(app):
    fake = MagicMock()
    app.dependency_overrides[get_sheets_service] = lambda: fake
    yield fake
    app.dependency_overrides.clear()


class TestDriveRoutes:
    def test_requires_token(self, client, drive):
        assert client.get("/api/drive/status").status_code == 401

    def test_oauth_url(self, client, professor, professor_headers, drive):
        drive.generate_auth_url.return_value = "https://accounts.google.com/o/oauth2/v2/auth?x=1"
        response = client.get("/api/drive/oauth-url", headers=professor_headers)

        assert response.json()["data"] == {"authUrl": "https://accounts.google.com/o/oauth2/v2/auth?x=1"}
        drive.generate_auth_url.assert_called_once_with(professor.id)

    def test_student_cannot_connect(self, client, student_headers, drive):
        assert client.get("/api/drive/oauth-url", headers=student_headers).status_code == 403

    def test_callback_missing_parameters(self, client, professor_headers, drive):
        response = client.get("/api/drive/oauth-callback", headers=professor_headers, params={"code": "abc"})
        assert response.status_code == 400
        assert response.json()["error"] == {
            "code": "MISSING_PARAMETERS",
            "message": "Code and state parameters are required",
        }

    def test_callback(self, client, professor, professor_headers, drive):
        state = create_state_token(professor.id)
        response = client.get(
            "/api/drive/oauth-callback", headers=professor_headers, params={"code": "abc", "state": state}
        )
        assert response.json()["message"] == "Google Drive connected successfully"
        drive.handle_callback.assert_called_once_with("abc", state)

    def test_status(self, client, professor_headers, drive):
        drive.connection_status.return_value = {"isConnected": False, "connectedAt": None}
        response = client.get("/api/drive/status", headers=professor_headers)
        assert response.json()["data"]["isConnected"] is False

    def test_not_connected_error(self, client, professor_headers, drive):
        drive.create_folder.side_effect = DriveNotConnectedError()
        response = client.post("/api/drive/folder", headers=professor_headers, json={"folderName": "Week 1"})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "DRIVE_NOT_CONNECTED"

    def test_upload_with_folder(self, client, professor, professor_headers, drive):
        drive.upload_file.return_value = {"id": "f1", "name": "a.txt", "webViewLink": "https://drive/f1"}
        response = client.post(
            "/api/drive/upload",
            headers=professor_headers,
            files={"file": ("a.txt", b"hello", "text/plain")},
            data={"folderId": "folder1"},
        )
        assert response.status_code == 201
        assert response.json()["data"] == {"fileId": "f1"}
        drive.upload_file.assert_called_once_with(professor.id, b"hello", "a.txt", "text/plain", "folder1")

    def test_download(self, client, student_headers, drive):
        drive.get_file.return_value = {"id": "f1", "name": "syllabus.pdf", "mimeType": "application/pdf"}
        drive.download_file.return_value = b"%PDF"

        response = client.get("/api/drive/file/f1", headers=student_headers)

        assert response.content == b"%PDF"
        assert response.headers["content-type"] == "application/pdf"
        assert response.headers["content-disposition"] == 'attachment; filename="syllabus.pdf"'

    def test_delete_and_disconnect(self, client, professor_headers, drive):
        assert client.delete("/api/drive/file/f1", headers=professor_headers).status_code == 200
        response = client.delete("/api/drive/disconnect", headers=professor_headers)
        assert response.json()["message"] == "Google Drive disconnected successfully"


class TestSheetsRoutes:
    def test_create_gradebook(self, client, professor, professor_headers, sheets):
        sheets.create_gradebook.return_value = {"spreadsheetId": "s1", "spreadsheetUrl": "https://docs/s1"}
        response = client.post(
            "/api/sheets/gradebook/create",
            headers=professor_headers,
            json={"branchTitle": "CS101 - Section A", "students": [{"studentNumber": "20230001", "displayName": "Alice"}]},
        )

        assert response.status_code == 201
        assert response.json()["data"]["spreadsheetId"] == "s1"
        user_id, title, students = sheets.create_gradebook.call_args.args
        assert user_id == professor.id
        assert title == "CS101 - Section A"
        assert students[0]["studentNumber"] == "20230001"

    def test_add_quiz_results(self, client, professor_headers, sheets):
        sheets.add_quiz_results.return_value = "I"
        response = client.post(
            "/api/sheets/gradebook/add-quiz-results",
            headers=professor_headers,
            json={
                "spreadsheetId": "s1",
                "quizTitle": "Quiz 1",
                "results": [{"studentId": "s", "studentName": "A", "score": 4, "totalPoints": 5, "percentage": 80}],
            },
        )
        assert response.json()["data"] == {"column": "I"}

    def test_update_scores_validation(self, client, professor_headers, sheets):
        response = client.post(
            "/api/sheets/gradebook/update-scores",
            headers=professor_headers,
            json={"spreadsheetId": "s1", "studentScores": [{"studentId": "s"}]},
        )
        assert response.status_code == 400
        sheets.update_scores.assert_not_called()

    def test_read_data(self, client, student_headers, sheets):
        sheets.get_data.return_value = [["Student ID"]]
        response = client.get("/api/sheets/spreadsheet/s1/data", headers=student_headers, params={"range": "A1:A1"})
        assert response.json()["data"] == {"values": [["Student ID"]]}
        assert sheets.get_data.call_args.args[1:] == ("s1", "A1:A1")
