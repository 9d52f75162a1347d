"""FastAPI application entry point for the Trainload API."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from trainload.config import get_settings
from trainload.database import create_tables
from trainload.routers import activities, adaptive, athletes, metrics
from trainload.services.cache import ResultCache

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup: Create database tables
    create_tables()
    yield


def create_app() -> FastAPI:
    """Build the application and the objects it owns."""
    app = FastAPI(
        title="Trainload API",
        description="Activity file decoding, training-load chronicle and adaptive daily state",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.chronicle_cache = ResultCache(ttl_seconds=settings.CHRONICLE_CACHE_TTL_SECONDS)

    # Include routers
    app.include_router(athletes.router, prefix="/api/athletes", tags=["Athletes"])
    app.include_router(
        activities.router, prefix="/api/athletes/{athlete_id}/activities", tags=["Activities"]
    )
    app.include_router(
        metrics.router, prefix="/api/athletes/{athlete_id}/metrics", tags=["Load Chronicle"]
    )
    app.include_router(
        adaptive.router, prefix="/api/athletes/{athlete_id}/adaptive", tags=["Adaptive Engine"]
    )

    @app.get("/", tags=["Health"])
    async def root():
        """Root endpoint - API information."""
        return {
            "name": "Trainload API",
            "version": "1.0.0",
            "status": "running",
        }

    @app.get("/health", tags=["Health"])
    @app.get("/api/health", tags=["Health"])
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


app = create_app()
