"""
Agent Readiness Scanner - Main Application Entry Point
FastAPI application with lifespan management.
"""

import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from agent_readiness.api.v1.routes import analysis, health
from agent_readiness.core.config import get_settings
from agent_readiness.core.context import REQUEST_ID_HEADER, build_http_client
from agent_readiness.core.errors import ReadinessError
from agent_readiness.core.logging import configure_logging
from agent_readiness.services.generative import GenerativeService

logger = structlog.get_logger(__name__)
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Manage application lifecycle: startup and shutdown."""
    configure_logging()
    logger.info("Starting Agent Readiness Scanner", version=settings.APP_VERSION, env=settings.ENV)

    app.state.http_client = build_http_client(settings)
    app.state.generative = GenerativeService(settings)
    if not app.state.generative.enabled:
        logger.warning("Gemini API key not found. Analysis will use fallback data.")

    yield

    await app.state.http_client.aclose()
    logger.info("Application shutdown complete")


def create_application() -> FastAPI:
    app = FastAPI(
        title="Agent Readiness Scanner API",
        description="Analyzes how well a website is prepared for AI-agent crawlers.",
        version=settings.APP_VERSION,
        docs_url="/docs" if settings.ENV != "production" else None,
        redoc_url="/redoc" if settings.ENV != "production" else None,
        lifespan=lifespan,
    )

    # Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    @app.middleware("http")
    async def bind_request_id(request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id, path=request.url.path)
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    # Routers
    app.include_router(health.router, prefix="/health", tags=["Health"])
    app.include_router(analysis.router, prefix="/api", tags=["Analysis"])

    @app.exception_handler(ReadinessError)
    async def readiness_error_handler(request: Request, exc: ReadinessError) -> JSONResponse:
        logger.info("Request rejected", path=request.url.path, error=str(exc), error_type=type(exc).__name__)
        return JSONResponse(status_code=exc.http_status, content={"error": str(exc)})

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled exception", path=request.url.path, error=str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error", "request_id": getattr(request.state, "request_id", None)},
        )

    return app


app = create_application()
