"""Google Sheets gradebook export."""

from __future__ import annotations

from datetime import date
from typing import Any

import structlog

from profman.core.errors import IntegrationError
from profman.integrations.google_drive import GoogleDriveService

logger = structlog.get_logger(__name__)

GRADEBOOK_HEADERS = [
    "Student ID",
    "Student Name",
    "Email",
    "Total Points",
    "Earned Points",
    "Percentage",
    "Grade",
    "Last Updated",
]

HEADER_COLOR = {"red": 0.2, "green": 0.4, "blue": 0.8}
RESULT_HEADER_COLOR = {"red": 0.9, "green": 0.9, "blue": 0.9}


def column_letter(column: int) -> str:
    """1-based column number to A1 letters: 1 -> A, 26 -> Z, 27 -> AA."""
    if column < 1:
        raise ValueError("Column numbers start at 1")
    letters = ""
    while column > 0:
        column, remainder = divmod(column - 1, 26)
        letters = chr(ord("A") + remainder) + letters
    return letters


def spreadsheet_url(spreadsheet_id: str) -> str:
    return f"https://docs.google.com/spreadsheets/d/{spreadsheet_id}"


def _today() -> str:
    return date.today().isoformat()


def _header_format(start: int, end: int, color: dict[str, float], white_text: bool) -> list[dict[str, Any]]:
    text_format: dict[str, Any] = {"bold": True}
    if white_text:
        text_format["foregroundColor"] = {"red": 1, "green": 1, "blue": 1}
    return [
        {
            "repeatCell": {
                "range": {
                    "sheetId": 0,
                    "startRowIndex": 0,
                    "endRowIndex": 1,
                    "startColumnIndex": start,
                    "endColumnIndex": end,
                },
                "cell": {
                    "userEnteredFormat": {"backgroundColor": color, "textFormat": text_format}
                },
                "fields": "userEnteredFormat(backgroundColor,textFormat)",
            }
        },
        {
            "autoResizeDimensions": {
                "dimensions": {
                    "sheetId": 0,
                    "dimension": "COLUMNS",
                    "startIndex": start,
                    "endIndex": end,
                }
            }
        },
    ]


class GoogleSheetsService:
    """Gradebook spreadsheets in the professor's Google account."""

    def __init__(self, drive: GoogleDriveService | None = None):
        self.drive = drive or GoogleDriveService()

    def _sheets(self, user_id: str, action: str, request_fn):
        return self.drive.call(user_id, action, request_fn, api="sheets", version="v4")

    def _write(self, user_id: str, spreadsheet_id: str, cell_range: str, values: list[list[Any]]) -> None:
        self._sheets(
            user_id,
            "update",
            lambda sheets: sheets.spreadsheets()
            .values()
            .update(
                spreadsheetId=spreadsheet_id,
                range=cell_range,
                valueInputOption="RAW",
                body={"values": values},
            )
            .execute(),
        )

    def _format(self, user_id: str, spreadsheet_id: str, requests: list[dict[str, Any]]) -> None:
        self._sheets(
            user_id,
            "format",
            lambda sheets: sheets.spreadsheets()
            .batchUpdate(spreadsheetId=spreadsheet_id, body={"requests": requests})
            .execute(),
        )

    def create_gradebook(
        self, user_id: str, branch_title: str, students: list[dict[str, Any]]
    ) -> dict[str, str]:
        """Create "Gradebook - <branch>" with one row per student.

        Returns:
            {"spreadsheetId": ..., "spreadsheetUrl": ...}
        """
        created = self._sheets(
            user_id,
            "create",
            lambda sheets: sheets.spreadsheets()
            .create(body={"properties": {"title": f"Gradebook - {branch_title}"}})
            .execute(),
        )
        spreadsheet_id = created.get("spreadsheetId")
        if not spreadsheet_id:
            raise IntegrationError("Failed to create spreadsheet")

        today = _today()
        rows = [GRADEBOOK_HEADERS] + [
            [
                student.get("studentNumber") or "",
                student.get("displayName") or "",
                student.get("email") or "",
                "",
                "",
                "",
                "",
                today,
            ]
            for student in students
        ]
        self._write(user_id, spreadsheet_id, f"A1:H{len(rows)}", rows)
        self._format(
            user_id,
            spreadsheet_id,
            _header_format(0, len(GRADEBOOK_HEADERS), HEADER_COLOR, white_text=True),
        )

        logger.info("sheets.gradebook_created", user_id=user_id, spreadsheet_id=spreadsheet_id)
        return {"spreadsheetId": spreadsheet_id, "spreadsheetUrl": spreadsheet_url(spreadsheet_id)}

    def update_scores(self, user_id: str, spreadsheet_id: str, scores: list[dict[str, Any]]) -> None:
        """Overwrite rows 2.. with the given student scores."""
        today = _today()
        rows = [
            [
                score.get("studentId", ""),
                score.get("studentName", ""),
                "",
                score.get("totalPoints", ""),
                score.get("earnedPoints", ""),
                score.get("percentage", ""),
                score.get("grade", ""),
                today,
            ]
            for score in scores
        ]
        if not rows:
            return
        self._write(user_id, spreadsheet_id, f"A2:H{len(rows) + 1}", rows)
        logger.info("sheets.scores_updated", spreadsheet_id=spreadsheet_id, rows=len(rows))

    def add_quiz_results(
        self, user_id: str, spreadsheet_id: str, quiz_title: str, results: list[dict[str, Any]]
    ) -> str:
        """Append a results column after the last used header column.

        Returns:
            The column letter written
        """
        header = self.get_data(user_id, spreadsheet_id, "1:1")
        used = len(header[0]) if header else len(GRADEBOOK_HEADERS)
        next_column = max(used, len(GRADEBOOK_HEADERS)) + 1
        letter = column_letter(next_column)

        cells = [[quiz_title]] + [
            [f"{r.get('score')}/{r.get('totalPoints')} ({r.get('percentage')}%)"] for r in results
        ]
        self._write(user_id, spreadsheet_id, f"{letter}1:{letter}{len(cells)}", cells)
        self._format(
            user_id,
            spreadsheet_id,
            _header_format(next_column - 1, next_column, RESULT_HEADER_COLOR, white_text=False),
        )

        logger.info("sheets.quiz_results_added", spreadsheet_id=spreadsheet_id, column=letter)
        return letter

    def get_data(self, user_id: str, spreadsheet_id: str, cell_range: str = "A:Z") -> list[list[Any]]:
        response = self._sheets(
            user_id,
            "read",
            lambda sheets: sheets.spreadsheets()
            .values()
            .get(spreadsheetId=spreadsheet_id, range=cell_range)
            .execute(),
        )
        return response.get("values", [])
