"""FastAPI application entry point."""

import logging

import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from unicodeprep_tracker.api.routes import router
from unicodeprep_tracker.config import Settings, get_settings
from unicodeprep_tracker.execution.runner import SubprocessExecutor
from unicodeprep_tracker.storage.progress_store import (
    FileProgressStore,
    InMemoryProgressStore,
    ProgressStore,
)


def configure_logging(settings: Settings) -> None:
    """Configure structlog: JSON for machine parsing, console for humans."""
    renderer = (
        structlog.processors.JSONRenderer()
        if settings.log_format == "json"
        else structlog.dev.ConsoleRenderer()
    )
    level = logging.getLevelNamesMapping().get(settings.log_level.upper(), logging.INFO)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def build_store(settings: Settings) -> ProgressStore:
    if settings.storage_backend == "memory":
        return InMemoryProgressStore()
    return FileProgressStore(settings.progress_dir)


def create_app(settings: Settings) -> FastAPI:
    app = FastAPI(title="UniCodePrep Progress Tracker", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.store = build_store(settings)
    app.state.executor = SubprocessExecutor(
        timeout_seconds=settings.execution_timeout_seconds,
        python_executable=settings.python_executable,
    )
    app.include_router(router)
    return app


def main() -> None:
    """Run the application."""
    settings = get_settings()
    configure_logging(settings)
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
