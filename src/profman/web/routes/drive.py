"""Google Drive endpoints: OAuth connect, status and file operations."""

from typing import Any

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile, status

from profman.core.errors import ValidationError
from profman.core.users import User
from profman.integrations.google_drive import GoogleDriveService
from profman.web.deps import authenticate, get_drive_service, professor_or_admin
from profman.web.responses import envelope
from profman.web.schemas import CreateFolderRequest

router = APIRouter(prefix="/api/drive", tags=["drive"], dependencies=[Depends(authenticate)])


@router.get("/oauth-url")
def oauth_url(
    user: User = Depends(professor_or_admin), drive: GoogleDriveService = Depends(get_drive_service)
) -> dict[str, Any]:
    return envelope({"authUrl": drive.generate_auth_url(user.id)})


@router.get("/oauth-callback")
def oauth_callback(
    code: str | None = Query(None),
    state: str | None = Query(None),
    drive: GoogleDriveService = Depends(get_drive_service),
) -> dict[str, Any]:
    """Finish the consent flow; the user comes from the signed state."""
    if not code or not state:
        raise ValidationError("Code and state parameters are required", code="MISSING_PARAMETERS")
    drive.handle_callback(code, state)
    return envelope(message="Google Drive connected successfully")


@router.get("/status")
def connection_status(
    user: User = Depends(authenticate), drive: GoogleDriveService = Depends(get_drive_service)
) -> dict[str, Any]:
    return envelope(drive.connection_status(user.id))


@router.post("/upload", status_code=status.HTTP_201_CREATED)
async def upload_file(
    file: UploadFile = File(...),
    folder_id: str | None = Form(None, alias="folderId"),
    user: User = Depends(professor_or_admin),
    drive: GoogleDriveService = Depends(get_drive_service),
) -> dict[str, Any]:
    content = await file.read()
    uploaded = drive.upload_file(
        user.id,
        content,
        file.filename or "upload",
        file.content_type or "application/octet-stream",
        folder_id,
    )
    return envelope({"fileId": uploaded["id"]}, "File uploaded successfully")


@router.post("/folder", status_code=status.HTTP_201_CREATED)
def create_folder(
    body: CreateFolderRequest,
    user: User = Depends(professor_or_admin),
    drive: GoogleDriveService = Depends(get_drive_service),
) -> dict[str, Any]:
    folder_id = drive.create_folder(user.id, body.folder_name, body.parent_folder_id)
    return envelope({"folderId": folder_id}, "Folder created successfully")


@router.get("/file/{file_id}")
def download_file(
    file_id: str,
    user: User = Depends(authenticate),
    drive: GoogleDriveService = Depends(get_drive_service),
) -> Response:
    """Stream the file content back as an attachment."""
    metadata = drive.get_file(user.id, file_id)
    content = drive.download_file(user.id, file_id)
    return Response(
        content=content,
        media_type=metadata.get("mimeType") or "application/octet-stream",
        headers={"Content-Disposition": f'attachment; filename="{metadata.get("name", file_id)}"'},
    )


@router.delete("/file/{file_id}")
def delete_file(
    file_id: str,
    user: User = Depends(professor_or_admin),
    drive: GoogleDriveService = Depends(get_drive_service),
) -> dict[str, Any]:
    drive.delete_file(user.id, file_id)
    return envelope(message="File deleted successfully")


@router.delete("/disconnect")
def disconnect(
    user: User = Depends(professor_or_admin), drive: GoogleDriveService = Depends(get_drive_service)
) -> dict[str, Any]:
    drive.disconnect(user.id)
    return envelope(message="Google Drive disconnected successfully")
