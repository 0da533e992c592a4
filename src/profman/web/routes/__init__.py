"""Route handlers for the Web API."""

from profman.web.routes.admin import router as admin_router
from profman.web.routes.auth import router as auth_router
from profman.web.routes.branches import router as branches_router
from profman.web.routes.drive import router as drive_router
from profman.web.routes.exams import router as exams_router
from profman.web.routes.health import router as health_router
from profman.web.routes.quizzes import router as quizzes_router
from profman.web.routes.sheets import router as sheets_router
from profman.web.routes.subjects import router as subjects_router

__all__ = [
    "admin_router",
    "auth_router",
    "branches_router",
    "drive_router",
    "exams_router",
    "health_router",
    "quizzes_router",
    "sheets_router",
    "subjects_router",
]
