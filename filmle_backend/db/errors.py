"""
Classification helpers for Supabase / PostgREST errors.

supabase-py surfaces query failures either as a raised `postgrest.APIError` or
(older clients) as a `response.error` attribute; both carry code/message/details/hint.
"""

from __future__ import annotations

from typing import Any


def describe_supabase_error(error: Any) -> str:
    """Flatten a Supabase error (exception or error object) into one searchable string."""
    parts = [
        str(getattr(error, "code", "") or ""),
        str(getattr(error, "message", "") or ""),
        str(getattr(error, "details", "") or ""),
        str(getattr(error, "hint", "") or ""),
        str(error),
    ]
    seen: list[str] = []
    for part in parts:
        part = part.strip()
        if part and part not in seen:
            seen.append(part)
    return " ".join(seen)


def is_missing_table_error(message: str) -> bool:
    """Check if error indicates table does not exist."""
    msg = (message or "").casefold()
    return (
        "42p01" in msg  # undefined_table
        or "pgrst205" in msg  # postgrest relation not found
        or ("relation" in msg and "does not exist" in msg)
        or ("could not find" in msg and "relation" in msg)
        or ("could not find the table" in msg)
    )
