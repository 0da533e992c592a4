"""FastAPI application factory.

Main entry point for the ProfMan Web API.
"""

import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from profman import __version__
from profman.config.app_config import AppConfig, load_app_config
from profman.db import get_store
from profman.utils.logging_setup import configure_logging
from profman.web.errors import install_error_handlers, internal_error_response
from profman.web.routes import (
    admin_router,
    auth_router,
    branches_router,
    drive_router,
    exams_router,
    health_router,
    quizzes_router,
    sheets_router,
    subjects_router,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan context manager for startup/shutdown events."""
    config: AppConfig = app.state.config
    store = get_store()
    logger.info(
        "api_startup",
        env=config.env,
        store_backend=store.backend,
        drive_configured=config.google.is_configured,
    )
    yield
    logger.info("api_shutdown")


def create_app(config: AppConfig | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Configuration to use (defaults to load_app_config())

    Returns:
        Configured FastAPI app instance
    """
    config = config or load_app_config()
    configure_logging(config.env)

    app = FastAPI(
        title="ProfMan API",
        description="Course management backend: subjects, branches, quizzes and exams",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[origin.strip() for origin in config.cors_origin.split(",")],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def access_log(request: Request, call_next):
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:
            logger.exception("http.unhandled_error", method=request.method, path=request.url.path)
            response = internal_error_response(exc, config)
        logger.info(
            "http.request",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        return response

    install_error_handlers(app, config)

    # Include routers
    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(admin_router)
    app.include_router(subjects_router)
    app.include_router(branches_router)
    app.include_router(quizzes_router)
    app.include_router(exams_router)
    app.include_router(drive_router)
    app.include_router(sheets_router)

    return app


# Default app instance for uvicorn
app = create_app()
