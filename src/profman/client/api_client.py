"""HTTP client for the ProfMan API.

Wraps httpx with bearer token handling: after login the access token is
sent on every request; a 401 triggers one refresh and a single retry.
Resource calls are grouped in slices (users, subjects, branches, quizzes,
exams) mirroring the API routers.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

logger = structlog.get_logger(__name__)

DEFAULT_TIMEOUT = 30.0


class ApiError(Exception):
    """A non-success envelope returned by the API."""

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        details: list[dict[str, Any]] | None = None,
    ):
        self.status_code = status_code
        self.code = code
        self.message = message
        self.details = details
        super().__init__(f"{status_code} {code}: {message}")


def _clean(params: dict[str, Any]) -> dict[str, Any]:
    """Drop unset query parameters; booleans as lowercase strings."""
    cleaned = {}
    for key, value in params.items():
        if value is None:
            continue
        cleaned[key] = str(value).lower() if isinstance(value, bool) else value
    return cleaned


class ProfmanClient:
    """Synchronous API client.

    Args:
        base_url: API root, e.g. "http://localhost:5000"
        http: Pre-built httpx.Client (tests pass FastAPI's TestClient)
    """

    def __init__(self, base_url: str | None = None, http: httpx.Client | None = None):
        if http is None and base_url is None:
            raise ValueError("base_url or http is required")
        self.http = http or httpx.Client(base_url=base_url, timeout=DEFAULT_TIMEOUT)
        self.access_token: str | None = None
        self.refresh_token: str | None = None
        self.user: dict[str, Any] | None = None

        self.users = UsersSlice(self)
        self.subjects = SubjectsSlice(self)
        self.branches = BranchesSlice(self)
        self.quizzes = QuizzesSlice(self)
        self.exams = ExamsSlice(self)

    def close(self) -> None:
        self.http.close()

    def __enter__(self) -> "ProfmanClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    def _headers(self) -> dict[str, str]:
        if self.access_token:
            return {"Authorization": f"Bearer {self.access_token}"}
        return {}

    def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        return self.http.request(method, path, headers=self._headers(), **kwargs)

    def request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        """Send a request and return the envelope.

        Raises:
            ApiError: If the API answers with success=false
        """
        response = self._send(method, path, **kwargs)
        if response.status_code == 401 and self.refresh_token and not path.startswith("/api/auth/"):
            if self._try_refresh():
                response = self._send(method, path, **kwargs)
        return self._unwrap(response)

    @staticmethod
    def _unwrap(response: httpx.Response) -> dict[str, Any]:
        try:
            body = response.json()
        except ValueError as e:
            raise ApiError(response.status_code, "INVALID_RESPONSE", response.text[:200]) from e

        if response.is_success and body.get("success", True):
            return body
        error = body.get("error") or {}
        raise ApiError(
            response.status_code,
            error.get("code", "UNKNOWN_ERROR"),
            error.get("message", response.reason_phrase),
            error.get("details"),
        )

    def _try_refresh(self) -> bool:
        response = self.http.post("/api/auth/refresh", json={"refreshToken": self.refresh_token})
        if not response.is_success:
            logger.info("client.refresh_failed", status=response.status_code)
            self.access_token = None
            self.refresh_token = None
            return False
        self.access_token = response.json()["data"]["accessToken"]
        logger.debug("client.token_refreshed")
        return True

    # -------------------------------------------------------------------------
    # Auth
    # -------------------------------------------------------------------------

    def login(self, email: str, password: str) -> dict[str, Any]:
        """Log in and keep the tokens for later calls."""
        data = self.request("POST", "/api/auth/login", json={"email": email, "password": password})["data"]
        self.access_token = data["accessToken"]
        self.refresh_token = data["refreshToken"]
        self.user = data["user"]
        return data

    def logout(self) -> None:
        self.access_token = None
        self.refresh_token = None
        self.user = None

    def register(self, **fields: Any) -> dict[str, Any]:
        return self.request("POST", "/api/auth/register", json=fields)["data"]["user"]

    def me(self) -> dict[str, Any]:
        return self.request("GET", "/api/auth/me")["data"]["user"]

    def change_password(self, old_password: str, new_password: str) -> None:
        self.request(
            "POST",
            "/api/auth/change-password",
            json={"oldPassword": old_password, "newPassword": new_password},
        )


class _Slice:
    """Shared CRUD calls for one resource."""

    path = ""
    item_key: str | None = None
    list_key: str | None = None

    def __init__(self, client: ProfmanClient):
        self.client = client

    def _item(self, data: dict[str, Any]) -> dict[str, Any]:
        return data[self.item_key] if self.item_key else data

    def fetch_all(self, **params: Any) -> dict[str, Any]:
        """One page: {<items>, total, page, totalPages}."""
        return self.client.request("GET", self.path, params=_clean(params))["data"]

    def fetch(self, item_id: str) -> dict[str, Any]:
        return self._item(self.client.request("GET", f"{self.path}/{item_id}")["data"])

    def create(self, **fields: Any) -> dict[str, Any]:
        return self._item(self.client.request("POST", self.path, json=fields)["data"])

    def update(self, item_id: str, **fields: Any) -> dict[str, Any]:
        return self._item(self.client.request("PATCH", f"{self.path}/{item_id}", json=fields)["data"])

    def delete(self, item_id: str) -> None:
        self.client.request("DELETE", f"{self.path}/{item_id}")

    def restore(self, item_id: str) -> None:
        self.client.request("POST", f"{self.path}/{item_id}/restore")

    def permanent_delete(self, item_id: str) -> None:
        self.client.request("DELETE", f"{self.path}/{item_id}/permanent")


class UsersSlice(_Slice):
    path = "/api/admin/users"
    item_key = "user"

    def restore(self, item_id: str) -> None:
        self.client.request("POST", f"/api/admin/restore/{item_id}")

    def professors(self) -> list[dict[str, Any]]:
        return self.client.request("GET", "/api/admin/professors")["data"]["professors"]

    def students(self) -> list[dict[str, Any]]:
        return self.client.request("GET", "/api/admin/students")["data"]["students"]


class SubjectsSlice(_Slice):
    path = "/api/subjects"
    item_key = "subject"

    def active(self) -> list[dict[str, Any]]:
        return self.client.request("GET", f"{self.path}/active")["data"]["subjects"]

    def by_code(self, code: str) -> dict[str, Any]:
        return self.client.request("GET", f"{self.path}/code/{code}")["data"]["subject"]

    def assign(self, subject_id: str, professor_ids: list[str]) -> dict[str, Any]:
        data = self.client.request(
            "POST", f"{self.path}/{subject_id}/assign", json={"professorIds": professor_ids}
        )["data"]
        return data["subject"]

    def assignments(self, subject_id: str) -> list[dict[str, Any]]:
        return self.client.request("GET", f"{self.path}/{subject_id}/assignments")["data"]["assignments"]


class BranchesSlice(_Slice):
    path = "/api/branches"
    item_key = "branch"

    def active(self) -> list[dict[str, Any]]:
        return self.client.request("GET", f"{self.path}/active")["data"]["branches"]

    def by_professor(self, professor_id: str) -> list[dict[str, Any]]:
        return self.client.request("GET", f"{self.path}/professor/{professor_id}")["data"]["branches"]

    def clone(self, branch_id: str, professor_id: str, title: str) -> dict[str, Any]:
        data = self.client.request(
            "POST", f"{self.path}/{branch_id}/clone", json={"professorId": professor_id, "title": title}
        )["data"]
        return data["branch"]


class QuizzesSlice(_Slice):
    path = "/api/quizzes"

    def by_branch(self, branch_id: str) -> list[dict[str, Any]]:
        return self.client.request("GET", f"{self.path}/branch/{branch_id}")["data"]

    def submit(self, quiz_id: str, answers: dict[str, Any], time_spent: int = 0) -> dict[str, Any]:
        """Submit an attempt; returns the graded attempt."""
        body = {"quizId": quiz_id, "answers": answers, "timeSpent": time_spent}
        return self.client.request("POST", f"{self.path}/submit", json=body)["data"]

    def attempts(self, student_id: str, quiz_id: str | None = None) -> list[dict[str, Any]]:
        params = _clean({"quizId": quiz_id})
        return self.client.request("GET", f"{self.path}/attempts/student/{student_id}", params=params)["data"]

    def attempts_for_quiz(self, quiz_id: str) -> list[dict[str, Any]]:
        return self.client.request("GET", f"{self.path}/attempts/quiz/{quiz_id}")["data"]

    def best_attempt(self, student_id: str, quiz_id: str) -> dict[str, Any]:
        return self.client.request("GET", f"{self.path}/attempts/best/{student_id}/{quiz_id}")["data"]


class ExamsSlice(_Slice):
    path = "/api/exams"
    item_key = "exam"

    def fetch_all(self, **params: Any) -> dict[str, Any]:
        """The caller's own exams."""
        return self.client.request("GET", f"{self.path}/professor", params=_clean(params))["data"]

    def by_branch(self, branch_id: str, is_active: bool | None = None) -> list[dict[str, Any]]:
        params = _clean({"isActive": is_active})
        return self.client.request("GET", f"{self.path}/branch/{branch_id}", params=params)["data"]["exams"]

    def submit(self, exam_id: str, answers: list[dict[str, Any]]) -> dict[str, Any]:
        data = self.client.request("POST", f"{self.path}/{exam_id}/submit", json={"answers": answers})["data"]
        return data["submission"]

    def submissions(self, exam_id: str, student_id: str | None = None) -> list[dict[str, Any]]:
        params = _clean({"studentId": student_id})
        data = self.client.request("GET", f"{self.path}/{exam_id}/submissions", params=params)["data"]
        return data["submissions"]

    def grade(
        self, submission_id: str, answers: list[dict[str, Any]], overall_feedback: str | None = None
    ) -> dict[str, Any]:
        body: dict[str, Any] = {"answers": answers}
        if overall_feedback is not None:
            body["overallFeedback"] = overall_feedback
        data = self.client.request("PATCH", f"{self.path}/submissions/{submission_id}/grade", json=body)["data"]
        return data["submission"]
