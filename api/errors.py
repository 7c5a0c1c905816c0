"""
Error responses for the API.

Every route translates failures inside its own body (see `translate_errors`), so
clients always get a JSON body of the form `{"error": ..., "details": ...}`.
"""
from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from filmle_backend.integrations.tmdb.client import TmdbClientError, TmdbTimeoutError
from filmle_backend.models.calendar import CalendarSchemaError
from filmle_backend.repositories.calendar import CalendarEntryNotFoundError, CalendarRepositoryError
from filmle_backend.utils.env import ConfigError

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """An error that maps directly onto an HTTP response."""

    def __init__(self, status_code: int, error: str, *, details: Any = None, **extra: Any) -> None:
        super().__init__(error)
        self.status_code = status_code
        self.error = error
        self.details = details
        self.extra = extra

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.error}
        if self.details is not None:
            payload["details"] = self.details
        payload.update(self.extra)
        return payload


@contextmanager
def translate_errors(upstream_action: str) -> Iterator[None]:
    """
    Translate domain errors raised inside a route into `ApiError`.

    `upstream_action` completes the TMDb failure message, e.g. "fetch movie".
    """
    try:
        yield
    except ApiError:
        raise
    except CalendarEntryNotFoundError as exc:
        logger.info(f"Calendar lookup miss: {exc}")
        raise ApiError(404, "No movie found for today", details=exc.diagnostics()) from exc
    except CalendarSchemaError as exc:
        logger.error(f"Calendar schema error: {exc}")
        raise ApiError(
            500,
            "Movie ID field not found in calendar entry",
            details=str(exc),
            available_fields=exc.available_fields,
        ) from exc
    except CalendarRepositoryError as exc:
        logger.error(f"Calendar database error: {exc}")
        raise ApiError(500, "Database error", details=str(exc)) from exc
    except TmdbTimeoutError as exc:
        logger.warning(f"TMDb timed out during {upstream_action}: {exc}")
        raise ApiError(504, f"Timed out trying to {upstream_action} from TheMovieDB", details=str(exc)) from exc
    except TmdbClientError as exc:
        if exc.status_code is None:
            logger.error(f"TMDb transport failure during {upstream_action}: {exc}")
            raise ApiError(500, "Internal server error", details=str(exc)) from exc
        logger.warning(f"TMDb returned HTTP {exc.status_code} during {upstream_action}: {exc}")
        raise ApiError(
            exc.status_code,
            f"Failed to {upstream_action} from TheMovieDB",
            details=exc.status_message or str(exc),
        ) from exc
    except Exception as exc:
        logger.exception(f"Unhandled error during {upstream_action}")
        raise ApiError(500, "Internal server error", details=str(exc)) from exc


async def _api_error_handler(_request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


async def _config_error_handler(_request: Request, exc: ConfigError) -> JSONResponse:
    logger.error(f"Configuration error: {exc}")
    return JSONResponse(status_code=500, content={"error": "Server misconfigured", "details": str(exc)})


async def _unhandled_error_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error: {exc}")
    return JSONResponse(status_code=500, content={"error": "Internal server error", "details": str(exc)})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, _api_error_handler)
    app.add_exception_handler(ConfigError, _config_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
