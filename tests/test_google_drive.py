"""Tests for the Google Drive integration with mocked Google endpoints."""

from unittest.mock import MagicMock
from urllib.parse import parse_qs, urlparse

import httpx
import pytest
from googleapiclient.errors import HttpError

from profman.config.app_config import GoogleConfig
from profman.core.errors import IntegrationError, NotFoundError, ValidationError
from profman.core.security import create_access_token, create_state_token, seal_secret, unseal_secret
from profman.db import USERS
from profman.integrations.google_drive import (
    FOLDER_MIME_TYPE,
    GOOGLE_TOKEN_URL,
    DriveNotConnectedError,
    GoogleDriveService,
)

CONFIG = GoogleConfig(client_id="cid", client_secret="csecret", redirect_uri="http://localhost:5000/api/drive/oauth-callback")


def google_transport(requests):
    """Fake token and userinfo endpoints; records requests."""

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if str(request.url) == GOOGLE_TOKEN_URL:
            return httpx.Response(200, json={"access_token": "ya29.token", "refresh_token": "1//refresh"})
        return httpx.Response(200, json={"sub": "google-user-1", "email": "prof@gmail.com"})

    return httpx.MockTransport(handler)


@pytest.fixture
def api():
    return MagicMock()


@pytest.fixture
def drive(store, api):
    return GoogleDriveService(store, config=CONFIG, build_service=MagicMock(return_value=api))


@pytest.fixture
def connected(store, professor):
    store.update(
        USERS,
        professor.id,
        {
            "googleDrive": {
                "driveId": "google-user-1",
                "accessToken": "ya29.token",
                "refreshTokenEncrypted": seal_secret("1//refresh"),
                "connectedAt": "2024-01-01T00:00:00+00:00",
            }
        },
    )
    return professor


class TestOAuth:
    def test_auth_url(self, drive, professor):
        url = urlparse(drive.generate_auth_url(professor.id))
        params = parse_qs(url.query)

        assert url.netloc == "accounts.google.com"
        assert params["client_id"] == ["cid"]
        assert params["access_type"] == ["offline"]
        assert "https://www.googleapis.com/auth/spreadsheets" in params["scope"][0]
        assert params["state"][0]

    def test_not_configured(self, store, professor):
        service = GoogleDriveService(store, config=GoogleConfig())
        with pytest.raises(IntegrationError):
            service.generate_auth_url(professor.id)

    def test_callback_stores_sealed_refresh_token(self, store, professor):
        requests = []
        service = GoogleDriveService(
            store, config=CONFIG, http=httpx.Client(transport=google_transport(requests))
        )

        assert service.handle_callback("auth-code", create_state_token(professor.id)) == professor.id

        stored = store.get(USERS, professor.id)["googleDrive"]
        assert stored["accessToken"] == "ya29.token"
        assert stored["driveId"] == "google-user-1"
        assert "1//refresh" not in stored["refreshTokenEncrypted"]
        assert unseal_secret(stored["refreshTokenEncrypted"]) == "1//refresh"
        assert b"code=auth-code" in requests[0].content

    def test_callback_rejects_forged_state(self, drive, professor):
        with pytest.raises(ValidationError) as exc_info:
            drive.handle_callback("code", create_access_token(professor.to_dict()))
        assert exc_info.value.code == "OAUTH_ERROR"

    def test_token_exchange_failure(self, store, professor):
        transport = httpx.MockTransport(lambda request: httpx.Response(400, json={"error": "invalid_grant"}))
        service = GoogleDriveService(store, config=CONFIG, http=httpx.Client(transport=transport))
        with pytest.raises(IntegrationError, match="token exchange failed"):
            service.handle_callback("bad", create_state_token(professor.id))


class TestConnection:
    def test_status(self, drive, professor, connected):
        status = drive.connection_status(professor.id)
        assert status == {"isConnected": True, "connectedAt": "2024-01-01T00:00:00+00:00"}

    def test_not_connected(self, drive, professor):
        assert drive.connection_status(professor.id)["isConnected"] is False
        with pytest.raises(DriveNotConnectedError):
            drive.get_credentials(professor.id)

    def test_unknown_user(self, drive):
        with pytest.raises(NotFoundError):
            drive.get_credentials("ghost")

    def test_credentials(self, drive, connected):
        credentials = drive.get_credentials(connected.id)
        assert credentials.token == "ya29.token"
        assert credentials.refresh_token == "1//refresh"
        assert credentials.client_id == "cid"

    def test_disconnect(self, drive, store, connected):
        drive.disconnect(connected.id)
        assert "googleDrive" not in store.get(USERS, connected.id)
        assert drive.is_connected(connected.id) is False


class TestFiles:
    def test_upload(self, drive, api, connected):
        api.files.return_value.create.return_value.execute.return_value = {
            "id": "f1",
            "name": "a.pdf",
            "webViewLink": "https://drive.google.com/f1",
        }

        uploaded = drive.upload_file(connected.id, b"data", "a.pdf", "application/pdf", folder_id="folder9")

        assert uploaded["id"] == "f1"
        kwargs = api.files.return_value.create.call_args.kwargs
        assert kwargs["body"] == {"name": "a.pdf", "parents": ["folder9"]}
        assert kwargs["fields"] == "id,name,webViewLink"

    def test_create_folder(self, drive, api, connected):
        api.files.return_value.create.return_value.execute.return_value = {"id": "folder1", "name": "Exam Files"}

        assert drive.create_folder(connected.id, "Exam Files") == "folder1"
        body = api.files.return_value.create.call_args.kwargs["body"]
        assert body["mimeType"] == FOLDER_MIME_TYPE

    def test_download(self, drive, api, connected):
        api.files.return_value.get_media.return_value.execute.return_value = b"bytes"
        assert drive.download_file(connected.id, "f1") == b"bytes"

    def test_google_error_becomes_integration_error(self, drive, api, connected):
        response = MagicMock(status=404, reason="Not Found")
        api.files.return_value.delete.return_value.execute.side_effect = HttpError(response, b"{}")

        with pytest.raises(IntegrationError, match="Google drive delete failed"):
            drive.delete_file(connected.id, "missing")

    def test_requires_connection(self, drive, professor):
        with pytest.raises(DriveNotConnectedError):
            drive.upload_file(professor.id, b"x", "a.txt", "text/plain")
