"""FastAPI application entry point for TrancheReady."""

import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.middleware.error_handler import global_exception_handler
from src.api.middleware.logging import StructuredLoggingMiddleware
from src.api.routes.health import router as health_router
from src.api.routes.risk import router as risk_router
from src.config import settings
from src.shared.logging import setup_logging

logger = structlog.get_logger()

# Track app start time for uptime calculation
APP_START_TIME: float = 0.0


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: startup and shutdown logic."""
    global APP_START_TIME
    APP_START_TIME = time.time()
    setup_logging(settings.log_level)

    Path(settings.runs_dir).mkdir(parents=True, exist_ok=True)

    logger.info(
        "trancheready_starting",
        app_name=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        runs_dir=settings.runs_dir,
        narratives_enabled=bool(settings.openai_api_key),
    )

    yield

    logger.info("trancheready_shutting_down")


app = FastAPI(
    title="TrancheReady",
    description="Client risk scoring, transaction monitoring and AML evidence packs",
    version=settings.app_version,
    lifespan=lifespan,
)

# CORS for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.debug else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Structured logging middleware
app.add_middleware(StructuredLoggingMiddleware)

# Exception handlers: data errors -> 400, unknown runs -> 404, rest -> 500
app.add_exception_handler(ValueError, global_exception_handler)
app.add_exception_handler(LookupError, global_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

# Register routers
app.include_router(health_router)
app.include_router(risk_router)


def get_uptime() -> int:
    """Get application uptime in seconds."""
    if APP_START_TIME == 0.0:
        return 0
    return int(time.time() - APP_START_TIME)


def run() -> None:
    """Serve the API with uvicorn on the configured host and port."""
    uvicorn.run(
        "src.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
