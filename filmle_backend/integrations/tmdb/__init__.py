"""
TMDb integration clients.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from filmle_backend.integrations.tmdb.client import (
        TmdbClientError,
        TmdbTimeoutError,
        fetch_movie,
        fetch_movie_credits,
        fetch_movie_details,
        movie_id_path_segment,
        search_movies,
    )

__all__ = [
    "TmdbClientError",
    "TmdbTimeoutError",
    "fetch_movie",
    "fetch_movie_credits",
    "fetch_movie_details",
    "movie_id_path_segment",
    "search_movies",
]


def __getattr__(name: str):
    if name in __all__:
        from filmle_backend.integrations.tmdb import client

        return getattr(client, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
