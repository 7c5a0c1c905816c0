from __future__ import annotations

from functools import lru_cache

from supabase import Client, create_client

from filmle_backend.utils.env import require_env


@lru_cache
def get_supabase_url() -> str:
    return require_env("SUPABASE_URL")


@lru_cache
def get_supabase_anon_key() -> str:
    return require_env("SUPABASE_ANON_KEY")


def create_supabase_client(*, url: str | None = None, anon_key: str | None = None) -> Client:
    """
    Create a Supabase client using the anon key.

    The calendar table is public read-only data, so the service never needs the service role key.
    """

    return create_client(url or get_supabase_url(), anon_key or get_supabase_anon_key())
