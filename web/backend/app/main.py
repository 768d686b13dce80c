"""FastAPI application for the ContentGuard moderation service.

Provides REST API endpoints wrapping the contentguard package for:
- Content submission, listing, and search
- The review queue and moderator status overrides
- Moderation rule management
- Aggregate stats and news ingestion
- A WebSocket channel pushing live moderation events
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from contentguard import __version__
from contentguard.config import get_settings
from contentguard.logging_config import configure_logging
from contentguard.service import ModerationService
from web.backend.app.routers import analyses, content, news, rules, stats, ws


def create_app(service: Optional[ModerationService] = None) -> FastAPI:
    """Build the API around *service*, or one configured from settings."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        svc = service
        if svc is None:
            settings = get_settings()
            configure_logging(settings.LOG_LEVEL)
            svc = ModerationService.from_settings(settings)
        app.state.service = svc
        await svc.start()
        try:
            yield
        finally:
            await svc.stop()

    app = FastAPI(
        title="ContentGuard API",
        description=(
            "REST API for automated content moderation. "
            "Submit content, review flagged items, tune moderation rules, "
            "and follow decisions live over WebSocket."
        ),
        version=__version__,
        lifespan=lifespan,
    )

    # -----------------------------------------------------------------------
    # CORS middleware (allow all origins for development)
    # -----------------------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": "Invalid request", "errors": jsonable_encoder(exc.errors())},
        )

    # -----------------------------------------------------------------------
    # Include routers
    # -----------------------------------------------------------------------
    app.include_router(content.router)
    app.include_router(analyses.router)
    app.include_router(rules.router)
    app.include_router(stats.router)
    app.include_router(news.router)
    app.include_router(ws.router)

    # -----------------------------------------------------------------------
    # Root and health-check endpoints
    # -----------------------------------------------------------------------

    @app.get("/", tags=["meta"])
    async def root():
        """Return basic API information."""
        return {
            "name": "ContentGuard API",
            "version": __version__,
            "description": "Automated content moderation REST API",
            "docs": "/docs",
            "openapi": "/openapi.json",
        }

    @app.get("/health", tags=["meta"])
    async def health_check(request: Request):
        """Health check endpoint."""
        svc: ModerationService = request.app.state.service
        return {
            "status": "healthy",
            "connections": len(svc.hub.connections),
            "external_classifier": svc.classifier.uses_external,
        }

    return app


app = create_app()
