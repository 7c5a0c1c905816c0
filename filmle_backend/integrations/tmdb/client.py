from __future__ import annotations

import logging
import os
import random
import time
from collections.abc import Iterator
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from typing import Any, Mapping
from urllib.parse import quote

import requests

logger = logging.getLogger(__name__)

TMDB_API_BASE_URL = "https://api.themoviedb.org/3"
DEFAULT_LANGUAGE = "pl-PL"
DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_MAX_ATTEMPTS = 2


class TmdbClientError(RuntimeError):
    """
    TMDb call failed.

    `status_code` is set when TMDb answered with a non-2xx response; it is None for
    transport failures and unreadable bodies.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        status_message: str | None = None,
        body_snippet: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.status_message = status_message
        self.body_snippet = body_snippet


class TmdbTimeoutError(TmdbClientError):
    pass


def _require_api_key(api_key: str | None) -> str:
    resolved = (api_key or os.getenv("TMDB_API_KEY") or "").strip()
    if not resolved:
        raise RuntimeError("TMDB_API_KEY is not set.")
    return resolved


def movie_id_path_segment(value: str | int) -> str:
    """
    Render a movie id for the `/movie/{id}` path.

    Ids are not validated beyond being non-empty: TMDb accepts slugged ids such as
    `550-fight-club` and answers unknown ids with its own 404.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid TMDb movie id: {value!r}")
    raw = str(value).strip()
    if not raw:
        raise ValueError("TMDb movie id is empty.")
    return quote(raw, safe="")


@contextmanager
def _session_scope(session: requests.Session | None) -> Iterator[requests.Session]:
    """Yield the caller's session, or a fresh one that is closed afterwards."""
    if session is not None:
        yield session
        return
    with requests.Session() as owned:
        yield owned


def _status_message(resp: requests.Response) -> str | None:
    try:
        body = resp.json()
    except ValueError:
        return None
    if isinstance(body, Mapping):
        message = body.get("status_message")
        if isinstance(message, str) and message.strip():
            return message.strip()
    return None


def _request_json(
    session: requests.Session,
    url: str,
    *,
    params: Mapping[str, Any] | None = None,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> dict[str, Any]:
    headers = {
        "accept": "application/json",
    }
    max_attempts = max(int(max_attempts), 1)

    resp: requests.Response | None = None
    for attempt in range(max_attempts):
        try:
            resp = session.get(url, params=params, headers=headers, timeout=timeout_seconds)
            break
        except requests.RequestException as exc:
            if attempt < max_attempts - 1:
                delay = 0.25 * (2**attempt)
                jitter = random.uniform(0.0, delay * 0.25)
                logger.warning(f"TMDb request to {url} failed ({exc}); retrying in {delay + jitter:.2f}s")
                time.sleep(delay + jitter)
                continue
            if isinstance(exc, requests.Timeout):
                raise TmdbTimeoutError(
                    f"TMDb request timed out after {timeout_seconds:g}s ({max_attempts} attempts)."
                ) from exc
            raise TmdbClientError(f"TMDb request failed: {exc}") from exc

    if resp is None:
        raise TmdbClientError("TMDb request failed (no response).")

    if not 200 <= resp.status_code < 300:
        status_message = _status_message(resp)
        raise TmdbClientError(
            status_message or f"TMDb request failed with HTTP {resp.status_code}.",
            status_code=resp.status_code,
            status_message=status_message,
            body_snippet=(resp.text or "")[:400],
        )

    try:
        payload = resp.json()
    except ValueError as exc:
        raise TmdbClientError(
            "TMDb returned non-JSON response.",
            body_snippet=(resp.text or "")[:400],
        ) from exc

    if not isinstance(payload, dict):
        raise TmdbClientError("TMDb returned unexpected JSON shape (not an object).")
    return payload


def fetch_movie(
    movie_id: str | int,
    *,
    api_key: str | None = None,
    language: str = DEFAULT_LANGUAGE,
    session: requests.Session | None = None,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
) -> dict[str, Any]:
    """Fetch the `/3/movie/{id}` payload."""

    api_key = _require_api_key(api_key)
    url = f"{TMDB_API_BASE_URL}/movie/{movie_id_path_segment(movie_id)}"
    with _session_scope(session) as http:
        return _request_json(
            http,
            url,
            params={"api_key": api_key, "language": language},
            timeout_seconds=timeout_seconds,
        )


def fetch_movie_credits(
    movie_id: str | int,
    *,
    api_key: str | None = None,
    language: str = DEFAULT_LANGUAGE,
    session: requests.Session | None = None,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
) -> dict[str, Any]:
    """Fetch the `/3/movie/{id}/credits` payload (`cast` and `crew`)."""

    api_key = _require_api_key(api_key)
    url = f"{TMDB_API_BASE_URL}/movie/{movie_id_path_segment(movie_id)}/credits"
    with _session_scope(session) as http:
        return _request_json(
            http,
            url,
            params={"api_key": api_key, "language": language},
            timeout_seconds=timeout_seconds,
        )


def fetch_movie_details(
    movie_id: str | int,
    *,
    api_key: str | None = None,
    language: str = DEFAULT_LANGUAGE,
    session: requests.Session | None = None,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
) -> dict[str, Any]:
    """
    Fetch a movie enriched with its credits.

    The details and credits calls run concurrently over one session and both must
    succeed; the first failure is raised and no partial record is returned. The
    details payload is returned with `cast` and `crew` copied in from the credits payload.
    """

    api_key = _require_api_key(api_key)
    movie_id_path_segment(movie_id)

    with _session_scope(session) as http:
        kwargs: dict[str, Any] = {
            "api_key": api_key,
            "language": language,
            "session": http,
            "timeout_seconds": timeout_seconds,
        }
        with ThreadPoolExecutor(max_workers=2) as pool:
            details_future = pool.submit(fetch_movie, movie_id, **kwargs)
            credits_future = pool.submit(fetch_movie_credits, movie_id, **kwargs)
            details = details_future.result()
            credits = credits_future.result()

    cast = credits.get("cast")
    crew = credits.get("crew")
    return {
        **details,
        "cast": cast if isinstance(cast, list) else [],
        "crew": crew if isinstance(crew, list) else [],
    }


def search_movies(
    query: str,
    *,
    api_key: str | None = None,
    language: str = DEFAULT_LANGUAGE,
    page: int = 1,
    session: requests.Session | None = None,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
) -> dict[str, Any]:
    """
    Free-text movie search via `/3/search/movie`.

    Returns TMDb's payload unchanged (`results`, `page`, `total_pages`, `total_results`).
    """

    if not isinstance(query, str) or not query:
        raise ValueError("TMDb search query is empty.")

    api_key = _require_api_key(api_key)
    url = f"{TMDB_API_BASE_URL}/search/movie"
    with _session_scope(session) as http:
        return _request_json(
            http,
            url,
            params={"api_key": api_key, "query": query, "language": language, "page": int(page)},
            timeout_seconds=timeout_seconds,
        )
