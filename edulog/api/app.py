"""
EduLog FastAPI application.
"""

import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from edulog.api.routes import health, normalize, records, roster, settings as settings_routes
from edulog.core.service import EduLogService
from edulog.shared.config import settings
from edulog.shared.exceptions import InvalidRecordError, RecordNotFoundError
from edulog.shared.logging import get_logger

logger = get_logger(__name__)


def create_app(service: Optional[EduLogService] = None) -> FastAPI:
    """Create and configure FastAPI application."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan: startup and shutdown."""
        logger.info("Starting EduLog API")
        app.state.service = service or EduLogService()
        await app.state.service.startup()
        health.set_start_time(time.time())
        logger.info("EduLog API ready")
        yield
        logger.info("Shutting down EduLog API")
        await app.state.service.aclose()
        logger.info("EduLog API stopped")

    app = FastAPI(
        title="EduLog",
        description="Classroom observation records with roster sync and AI rewriting",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RecordNotFoundError)
    async def record_not_found(request: Request, exc: RecordNotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(InvalidRecordError)
    async def invalid_record(request: Request, exc: InvalidRecordError):
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    app.include_router(health.router)
    app.include_router(settings_routes.router)
    app.include_router(roster.router)
    app.include_router(records.router)
    app.include_router(normalize.router)

    return app


app = create_app()


def main():
    """CLI entry point for uvicorn."""
    import uvicorn

    uvicorn.run(
        "edulog.api.app:app",
        host=settings.api.host,
        port=settings.api.port,
        reload=False,
    )


if __name__ == "__main__":
    main()
