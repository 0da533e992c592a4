"""Google Drive integration.

OAuth2 connect flow (authorization URL, code exchange over httpx) and file
operations on the user's Drive through google-api-python-client. The
refresh token is stored sealed (JWE) on the user document.
"""

from __future__ import annotations

import io
from typing import Any, Callable
from urllib.parse import urlencode

import httpx
import structlog
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseUpload

from profman.config.app_config import GoogleConfig, load_app_config
from profman.core.errors import IntegrationError, InvalidTokenError, NotFoundError, ValidationError
from profman.core.records import now_iso
from profman.core.security import create_state_token, read_state_token, seal_secret, unseal_secret
from profman.db import DELETE_FIELD, USERS, get_store

logger = structlog.get_logger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v3/userinfo"

SCOPES = [
    "https://www.googleapis.com/auth/drive",
    "https://www.googleapis.com/auth/drive.file",
    "https://www.googleapis.com/auth/spreadsheets",
]

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"


class DriveNotConnectedError(ValidationError):
    code = "DRIVE_NOT_CONNECTED"
    default_message = "Google Drive not connected"


class GoogleDriveService:
    """Per-user Google Drive access."""

    def __init__(
        self,
        store=None,
        config: GoogleConfig | None = None,
        http: httpx.Client | None = None,
        build_service: Callable[..., Any] = build,
    ):
        self._store = store
        self.config = config or load_app_config().google
        self.http = http
        self.build_service = build_service

    @property
    def store(self):
        return self._store if self._store is not None else get_store()

    def _require_config(self) -> GoogleConfig:
        if not self.config.is_configured:
            raise IntegrationError("Google Drive integration is not configured")
        return self.config

    # -------------------------------------------------------------------------
    # OAuth
    # -------------------------------------------------------------------------

    def generate_auth_url(self, user_id: str) -> str:
        """Consent URL; the state is a short-lived signed token for the user."""
        config = self._require_config()
        params = {
            "client_id": config.client_id,
            "redirect_uri": config.redirect_uri,
            "response_type": "code",
            "scope": " ".join(SCOPES),
            "access_type": "offline",
            "prompt": "consent",
            "state": create_state_token(user_id),
        }
        return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"

    def _post_token(self, data: dict[str, str]) -> dict[str, Any]:
        client = self.http or httpx.Client(timeout=30.0)
        try:
            response = client.post(GOOGLE_TOKEN_URL, data=data)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPError as e:
            logger.error("drive.token_request_failed", error=str(e))
            raise IntegrationError("Google token exchange failed") from e
        finally:
            if self.http is None:
                client.close()

    def _get_userinfo(self, access_token: str) -> dict[str, Any]:
        client = self.http or httpx.Client(timeout=30.0)
        try:
            response = client.get(
                GOOGLE_USERINFO_URL, headers={"Authorization": f"Bearer {access_token}"}
            )
            response.raise_for_status()
            return response.json()
        except httpx.HTTPError as e:
            raise IntegrationError("Failed to read Google account info") from e
        finally:
            if self.http is None:
                client.close()

    def handle_callback(self, code: str, state: str) -> str:
        """Exchange the authorization code and store the connection.

        Returns:
            The connected user's id

        Raises:
            ValidationError: If the state is invalid or expired
            IntegrationError: If Google rejects the exchange
        """
        try:
            user_id = read_state_token(state)
        except InvalidTokenError as e:
            raise ValidationError("Invalid state parameter", code="OAUTH_ERROR") from e

        if self.store.get(USERS, user_id) is None:
            raise NotFoundError("User not found")

        config = self._require_config()
        tokens = self._post_token(
            {
                "client_id": config.client_id,
                "client_secret": config.client_secret,
                "code": code,
                "grant_type": "authorization_code",
                "redirect_uri": config.redirect_uri,
            }
        )
        access_token = tokens.get("access_token")
        if not access_token:
            raise IntegrationError("No access token received from Google")

        info = self._get_userinfo(access_token)
        self.store.update(
            USERS,
            user_id,
            {
                "googleDrive": {
                    "driveId": info.get("sub", ""),
                    "accessToken": access_token,
                    "refreshTokenEncrypted": seal_secret(tokens.get("refresh_token", "")),
                    "connectedAt": now_iso(),
                },
                "updatedAt": now_iso(),
            },
        )
        logger.info("drive.connected", user_id=user_id)
        return user_id

    def is_connected(self, user_id: str) -> bool:
        user = self.store.get(USERS, user_id)
        drive = (user or {}).get("googleDrive") or {}
        return bool(drive.get("accessToken"))

    def connection_status(self, user_id: str) -> dict[str, Any]:
        user = self.store.get(USERS, user_id) or {}
        drive = user.get("googleDrive") or {}
        return {
            "isConnected": self.is_connected(user_id),
            "connectedAt": drive.get("connectedAt"),
        }

    def get_credentials(self, user_id: str) -> Credentials:
        """OAuth credentials for the user's Drive.

        Raises:
            NotFoundError: If the user doesn't exist
            DriveNotConnectedError: If the user hasn't connected Drive
        """
        user = self.store.get(USERS, user_id)
        if user is None:
            raise NotFoundError("User not found")
        drive = user.get("googleDrive")
        if not drive or not drive.get("accessToken"):
            raise DriveNotConnectedError()

        refresh_token = unseal_secret(drive["refreshTokenEncrypted"]) or None
        return Credentials(
            token=drive["accessToken"],
            refresh_token=refresh_token,
            token_uri=GOOGLE_TOKEN_URL,
            client_id=self.config.client_id,
            client_secret=self.config.client_secret,
            scopes=SCOPES,
        )

    def _store_access_token(self, user_id: str, token: str) -> None:
        user = self.store.get(USERS, user_id) or {}
        drive = {**(user.get("googleDrive") or {}), "accessToken": token}
        self.store.update(USERS, user_id, {"googleDrive": drive})
        logger.debug("drive.token_refreshed", user_id=user_id)

    def call(
        self,
        user_id: str,
        action: str,
        request_fn: Callable[[Any], Any],
        api: str = "drive",
        version: str = "v3",
    ):
        """Run request_fn against an authorised Google API client.

        Vendor errors become IntegrationError; a token refreshed by the
        client library during the call is written back to the user.
        """
        credentials = self.get_credentials(user_id)
        previous = credentials.token
        service = self.build_service(api, version, credentials=credentials, cache_discovery=False)
        try:
            result = request_fn(service)
        except HttpError as e:
            logger.error("google.request_failed", api=api, action=action, user_id=user_id, status=e.status_code)
            raise IntegrationError(f"Google {api} {action} failed") from e

        if credentials.token and credentials.token != previous:
            self._store_access_token(user_id, credentials.token)
        return result

    # -------------------------------------------------------------------------
    # Files
    # -------------------------------------------------------------------------

    def upload_file(
        self,
        user_id: str,
        content: bytes,
        file_name: str,
        mime_type: str,
        folder_id: str | None = None,
    ) -> dict[str, Any]:
        """Upload bytes; returns {id, name, webViewLink}."""
        metadata: dict[str, Any] = {"name": file_name}
        if folder_id:
            metadata["parents"] = [folder_id]
        media = MediaIoBaseUpload(io.BytesIO(content), mimetype=mime_type, resumable=False)

        uploaded = self.call(
            user_id,
            "upload",
            lambda drive: drive.files()
            .create(body=metadata, media_body=media, fields="id,name,webViewLink")
            .execute(),
        )
        logger.info("drive.file_uploaded", user_id=user_id, file_id=uploaded.get("id"))
        return uploaded

    def create_folder(self, user_id: str, folder_name: str, parent_folder_id: str | None = None) -> str:
        """Create a folder and return its id."""
        metadata: dict[str, Any] = {"name": folder_name, "mimeType": FOLDER_MIME_TYPE}
        if parent_folder_id:
            metadata["parents"] = [parent_folder_id]

        folder = self.call(
            user_id,
            "folder creation",
            lambda drive: drive.files().create(body=metadata, fields="id,name").execute(),
        )
        return folder["id"]

    def get_file(self, user_id: str, file_id: str) -> dict[str, Any]:
        """File metadata: id, name, mimeType, size, webViewLink."""
        return self.call(
            user_id,
            "file lookup",
            lambda drive: drive.files()
            .get(fileId=file_id, fields="id,name,mimeType,size,webViewLink")
            .execute(),
        )

    def download_file(self, user_id: str, file_id: str) -> bytes:
        return self.call(
            user_id,
            "download",
            lambda drive: drive.files().get_media(fileId=file_id).execute(),
        )

    def delete_file(self, user_id: str, file_id: str) -> None:
        self.call(
            user_id,
            "delete",
            lambda drive: drive.files().delete(fileId=file_id).execute(),
        )
        logger.info("drive.file_deleted", user_id=user_id, file_id=file_id)

    def disconnect(self, user_id: str) -> None:
        if self.store.get(USERS, user_id) is None:
            raise NotFoundError("User not found")
        self.store.update(USERS, user_id, {"googleDrive": DELETE_FIELD, "updatedAt": now_iso()})
        logger.info("drive.disconnected", user_id=user_id)
