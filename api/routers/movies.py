"""
Movie endpoints: today's mystery movie, TMDb search and TMDb movie lookup.
"""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query
from pydantic import BaseModel

from api.deps import Calendar, SupabaseClient, Tmdb, Today
from api.errors import ApiError, translate_errors
from filmle_backend.integrations.tmdb.client import fetch_movie, fetch_movie_details, search_movies
from filmle_backend.repositories.calendar import find_calendar_entry

router = APIRouter(prefix="/api", tags=["movies"])
legacy_router = APIRouter(tags=["legacy"])


# --- Pydantic models ---

class MysteryMovie(BaseModel):
    date: str
    quote_en: str | None = None
    quote_pl: str | None = None
    description: str | None = None
    movie: dict[str, Any]


class LegacyMysteryMovie(BaseModel):
    date: str
    movie: dict[str, Any]


class SearchResults(BaseModel):
    query: str
    results: list[Any] | None = None
    total_results: int | None = None
    page: int | None = None
    total_pages: int | None = None


class MovieEnvelope(BaseModel):
    movie: dict[str, Any]


# --- Endpoints ---

@router.get("/mystery_movie", response_model=MysteryMovie)
def get_mystery_movie(db: SupabaseClient, tmdb: Tmdb, calendar: Calendar, today: Today) -> dict:
    """Today's calendar entry with its TMDb movie (including cast and crew)."""
    with translate_errors("fetch movie"):
        entry = find_calendar_entry(db, today, table=calendar.table, scan_limit=calendar.scan_limit)
        movie = fetch_movie_details(
            entry.movie_id,
            api_key=tmdb.api_key,
            language=tmdb.language,
            timeout_seconds=tmdb.timeout_seconds,
        )
        return {
            "date": today.isoformat(),
            "quote_en": entry.quote_en,
            "quote_pl": entry.quote_pl,
            "description": entry.description,
            "movie": movie,
        }


@legacy_router.get("/mystery_movie", response_model=LegacyMysteryMovie)
def get_mystery_movie_legacy(db: SupabaseClient, tmdb: Tmdb, calendar: Calendar, today: Today) -> dict:
    """Legacy shape: only the date and the plain TMDb movie object."""
    with translate_errors("fetch movie"):
        entry = find_calendar_entry(db, today, table=calendar.table, scan_limit=calendar.scan_limit)
        movie = fetch_movie(
            entry.movie_id,
            api_key=tmdb.api_key,
            language=tmdb.language,
            timeout_seconds=tmdb.timeout_seconds,
        )
        return {"date": today.isoformat(), "movie": movie}


@router.get("/search", response_model=SearchResults)
def search(tmdb: Tmdb, query: str | None = Query(default=None)) -> dict:
    """Free-text movie search; pagination fields are TMDb's own."""
    with translate_errors("search movies"):
        if not query:
            raise ApiError(400, "Query parameter is required", example="/api/search?query=batman")

        payload = search_movies(
            query,
            api_key=tmdb.api_key,
            language=tmdb.language,
            timeout_seconds=tmdb.timeout_seconds,
        )
        return {
            "query": query,
            "results": payload.get("results"),
            "total_results": payload.get("total_results"),
            "page": payload.get("page"),
            "total_pages": payload.get("total_pages"),
        }


@router.get("/movie", response_model=MovieEnvelope)
def get_movie_without_id() -> dict:
    raise ApiError(400, "Movie ID is required", example="/api/movie/550")


@router.get("/movie/{movie_id}", response_model=MovieEnvelope)
def get_movie(movie_id: str, tmdb: Tmdb) -> dict:
    """A TMDb movie with cast and crew."""
    with translate_errors("fetch movie"):
        movie_id = movie_id.strip()
        if not movie_id:
            raise ApiError(400, "Movie ID is required", example="/api/movie/550")

        movie = fetch_movie_details(
            movie_id,
            api_key=tmdb.api_key,
            language=tmdb.language,
            timeout_seconds=tmdb.timeout_seconds,
        )
        return {"movie": movie}
