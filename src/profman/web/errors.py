"""Global exception handling.

Every failure leaves the API as an envelope:
{"success": false, "error": {"code", "message", "details"?, "stack"?}}
"""

from __future__ import annotations

import traceback

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from profman.config.app_config import AppConfig
from profman.core.errors import ProfmanError
from profman.web.responses import error_body

logger = structlog.get_logger(__name__)

HTTP_ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    413: "PAYLOAD_TOO_LARGE",
}


def _field_name(loc: tuple) -> str:
    # ("body", "questions", 0, "points") -> "questions.0.points"
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "header")]
    return ".".join(parts) or "body"


def validation_details(exc: RequestValidationError) -> list[dict[str, str]]:
    details = []
    for error in exc.errors():
        message = error.get("msg", "Invalid value")
        # pydantic prefixes messages from our own validators
        if message.startswith("Value error, "):
            message = message[len("Value error, ") :]
        details.append({"field": _field_name(tuple(error.get("loc", ()))), "message": message})
    return details


def internal_error_response(exc: Exception, config: AppConfig) -> JSONResponse:
    """500 envelope; the message is masked in production."""
    error = {
        "code": "INTERNAL_ERROR",
        "message": "Internal Server Error" if config.is_production else str(exc) or "Internal Server Error",
    }
    if config.is_development:
        error["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return JSONResponse(status_code=500, content=error_body(error))


def install_error_handlers(app: FastAPI, config: AppConfig) -> None:
    """Register the exception handlers on the app."""

    @app.exception_handler(ProfmanError)
    async def handle_profman_error(request: Request, exc: ProfmanError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("http.integration_error", path=request.url.path, code=exc.code, error=exc.message)
        error = exc.to_dict()
        if exc.status_code == 500 and config.is_production:
            error["message"] = "Internal Server Error"
        return JSONResponse(status_code=exc.status_code, content=error_body(error))

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        error = {
            "code": "VALIDATION_ERROR",
            "message": "Validation failed",
            "details": validation_details(exc),
        }
        return JSONResponse(status_code=400, content=error_body(error))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404 and exc.detail == "Not Found":
            message = f"Route {request.method} {request.url.path} not found"
        else:
            message = str(exc.detail)
        error = {"code": HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR"), "message": message}
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(error),
            headers=getattr(exc, "headers", None),
        )
