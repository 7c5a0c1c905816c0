"""
Filmle Backend API - FastAPI application.

Provides endpoints for:
- Today's mystery movie (calendar entry from Supabase, enriched from TMDb)
- TMDb movie search
- TMDb movie lookup with cast and crew
"""
from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.deps import validate_settings
from api.errors import register_exception_handlers
from api.routers import movies

logger = logging.getLogger(__name__)


def get_cors_origins() -> list[str]:
    """
    Get CORS allowed origins from environment.
    Set CORS_ALLOW_ORIGINS as comma-separated list of origins.
    Example: CORS_ALLOW_ORIGINS=https://filmle.app,https://www.filmle.app
    """
    origins_str = os.getenv("CORS_ALLOW_ORIGINS", "")
    if not origins_str:
        return []
    return [origin.strip() for origin in origins_str.split(",") if origin.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    # Refuses to start without Supabase and TMDb credentials.
    validate_settings()
    logger.info("Starting up Filmle Backend API...")
    yield
    logger.info("Shutting down Filmle Backend API...")


app = FastAPI(
    title="FilmleAPI",
    description="Daily mystery movie backed by a Supabase calendar and TheMovieDB",
    version="0.1.0",
    lifespan=lifespan,
)

# If no origins configured, allows all origins but disables credentials
cors_origins = get_cors_origins()
allow_credentials = len(cors_origins) > 0

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins if cors_origins else ["*"],
    allow_credentials=allow_credentials,
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(movies.router)
app.include_router(movies.legacy_router)


@app.get("/")
def root():
    """Health check endpoint."""
    return {"message": "FilmleAPI is running"}


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "healthy"}
