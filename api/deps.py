"""
Dependency injection for the Supabase client, TMDb settings and other shared resources.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import date, datetime, timezone
from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from supabase import Client

from filmle_backend.db.supabase import create_supabase_client, get_supabase_anon_key, get_supabase_url
from filmle_backend.integrations.tmdb.client import DEFAULT_LANGUAGE, DEFAULT_TIMEOUT_SECONDS
from filmle_backend.repositories.calendar import DEFAULT_CALENDAR_TABLE, DEFAULT_SCAN_LIMIT
from filmle_backend.utils.env import ConfigError, env_float, env_int, load_env, require_env

# Load environment variables if running standalone
load_env()

DEFAULT_PORT = 3000


@dataclass(frozen=True)
class TmdbSettings:
    api_key: str
    language: str = DEFAULT_LANGUAGE
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS


@dataclass(frozen=True)
class CalendarSettings:
    table: str = DEFAULT_CALENDAR_TABLE
    scan_limit: int = DEFAULT_SCAN_LIMIT


@lru_cache
def get_tmdb_api_key() -> str:
    return require_env("TMDB_API_KEY")


@lru_cache
def get_tmdb_settings() -> TmdbSettings:
    try:
        timeout_seconds = env_float(os.getenv("TMDB_TIMEOUT_SECONDS"), DEFAULT_TIMEOUT_SECONDS)
    except ValueError as exc:
        raise ConfigError(f"TMDB_TIMEOUT_SECONDS: {exc}") from exc
    return TmdbSettings(
        api_key=get_tmdb_api_key(),
        language=(os.getenv("TMDB_LANGUAGE") or "").strip() or DEFAULT_LANGUAGE,
        timeout_seconds=timeout_seconds,
    )


@lru_cache
def get_calendar_settings() -> CalendarSettings:
    try:
        scan_limit = env_int(os.getenv("CALENDAR_SCAN_LIMIT"), DEFAULT_SCAN_LIMIT)
    except ValueError as exc:
        raise ConfigError(f"CALENDAR_SCAN_LIMIT: {exc}") from exc
    return CalendarSettings(
        table=(os.getenv("CALENDAR_TABLE") or "").strip() or DEFAULT_CALENDAR_TABLE,
        scan_limit=scan_limit,
    )


def get_port() -> int:
    try:
        return env_int(os.getenv("PORT"), DEFAULT_PORT)
    except ValueError as exc:
        raise ConfigError(f"PORT: {exc}") from exc


def validate_settings() -> None:
    """
    Fail fast when required configuration is missing.

    Raises:
        ConfigError: listing every missing or malformed setting.
    """
    problems: list[str] = []
    for getter in (get_supabase_url, get_supabase_anon_key, get_tmdb_settings, get_calendar_settings, get_port):
        try:
            getter()
        except ConfigError as exc:
            problems.append(str(exc))
    if problems:
        raise ConfigError("; ".join(problems))


def get_supabase_client() -> Client:
    """
    Returns a Supabase client using the anon key (for public read operations).
    """
    return create_supabase_client()


def get_today() -> date:
    """Today's date on the server clock, in UTC."""
    return datetime.now(timezone.utc).date()


# Type aliases for dependency injection
SupabaseClient = Annotated[Client, Depends(get_supabase_client)]
Tmdb = Annotated[TmdbSettings, Depends(get_tmdb_settings)]
Calendar = Annotated[CalendarSettings, Depends(get_calendar_settings)]
Today = Annotated[date, Depends(get_today)]
