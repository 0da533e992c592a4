"""Google Sheets gradebook endpoints."""

from typing import Any

from fastapi import APIRouter, Depends, Query, status

from profman.core.users import User
from profman.integrations.google_sheets import GoogleSheetsService
from profman.web.deps import authenticate, get_sheets_service, professor_or_admin
from profman.web.responses import envelope
from profman.web.schemas import AddQuizResultsRequest, CreateGradebookRequest, UpdateScoresRequest

router = APIRouter(prefix="/api/sheets", tags=["sheets"], dependencies=[Depends(authenticate)])


def _dump(rows) -> list[dict[str, Any]]:
    return [row.model_dump(by_alias=True) for row in rows]


@router.post("/gradebook/create", status_code=status.HTTP_201_CREATED)
def create_gradebook(
    body: CreateGradebookRequest,
    user: User = Depends(professor_or_admin),
    sheets: GoogleSheetsService = Depends(get_sheets_service),
) -> dict[str, Any]:
    created = sheets.create_gradebook(user.id, body.branch_title, _dump(body.students))
    return envelope(created, "Gradebook created successfully")


@router.post("/gradebook/update-scores")
def update_scores(
    body: UpdateScoresRequest,
    user: User = Depends(professor_or_admin),
    sheets: GoogleSheetsService = Depends(get_sheets_service),
) -> dict[str, Any]:
    sheets.update_scores(user.id, body.spreadsheet_id, _dump(body.student_scores))
    return envelope(message="Gradebook scores updated successfully")


@router.post("/gradebook/add-quiz-results")
def add_quiz_results(
    body: AddQuizResultsRequest,
    user: User = Depends(professor_or_admin),
    sheets: GoogleSheetsService = Depends(get_sheets_service),
) -> dict[str, Any]:
    column = sheets.add_quiz_results(user.id, body.spreadsheet_id, body.quiz_title, _dump(body.results))
    return envelope({"column": column}, "Quiz results added to gradebook successfully")


@router.get("/spreadsheet/{spreadsheet_id}/data")
def spreadsheet_data(
    spreadsheet_id: str,
    cell_range: str = Query("A:Z", alias="range"),
    user: User = Depends(authenticate),
    sheets: GoogleSheetsService = Depends(get_sheets_service),
) -> dict[str, Any]:
    return envelope({"values": sheets.get_data(user.id, spreadsheet_id, cell_range)})
