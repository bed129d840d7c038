"""Tutor Tracker - FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.config import settings
from app.database import init_db
from app.middleware import AuthMiddleware
from app.routers import leaderboard, points, requests, store, system
from app.services.errors import TrackerError

logging.basicConfig(
    level="DEBUG" if settings.APP_DEBUG else settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    # Create data directory if needed
    settings.DATA_DIR.mkdir(parents=True, exist_ok=True)
    # Initialize database tables
    await init_db()
    yield


app = FastAPI(title=settings.APP_NAME, version="0.1.0", lifespan=lifespan)

# Middleware
app.add_middleware(AuthMiddleware)


@app.exception_handler(TrackerError)
async def tracker_error_handler(request: Request, exc: TrackerError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": type(exc).__name__},
    )


# Routers
app.include_router(system.router)
app.include_router(points.router)
app.include_router(store.router)
app.include_router(requests.router)
app.include_router(leaderboard.router)
