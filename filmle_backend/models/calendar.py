from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Mapping

logger = logging.getLogger(__name__)

# Priority order; the calendar table has used each of these column names at some point.
MOVIE_ID_FIELDS: tuple[str, ...] = ("movie_id", "movieId", "movieid", "movie")

_ISO_DATE_PREFIX = re.compile(r"^(\d{4}-\d{2}-\d{2})(?:$|[T ])")

# Epoch values above this are treated as milliseconds (year ~5138 in seconds).
_EPOCH_MS_THRESHOLD = 100_000_000_000


class CalendarSchemaError(RuntimeError):
    """Raised when a calendar row has no usable movie id column."""

    def __init__(self, message: str, *, available_fields: list[str] | None = None) -> None:
        super().__init__(message)
        self.available_fields = available_fields or []


class MissingMovieIdError(LookupError):
    """Raised when a calendar row has a movie id column but no value in it."""


@dataclass(frozen=True)
class CalendarEntry:
    """
    Canonical calendar row (maps to the Supabase `calendar` table).

    One row per date; `raw` keeps the row exactly as Supabase returned it.
    """

    date: date
    movie_id: int
    quote_en: str | None = None
    quote_pl: str | None = None
    description: str | None = None
    raw: Mapping[str, Any] = field(default_factory=dict)


def normalize_calendar_date(value: Any) -> str | None:
    """
    Normalize a `date` column value to `YYYY-MM-DD`.

    Handles plain dates, ISO timestamps (with or without offset), `date`/`datetime`
    objects and epoch seconds or milliseconds. Returns None when the value is unusable.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (int, float)):
        seconds = value / 1000 if abs(value) >= _EPOCH_MS_THRESHOLD else value
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc).date().isoformat()
        except (OverflowError, OSError, ValueError):
            return None
    if not isinstance(value, str):
        return None

    raw = value.strip()
    if not raw:
        return None
    # Timestamps with an offset are converted to UTC before truncating.
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        parsed = None
    if parsed is not None:
        return normalize_calendar_date(parsed)

    match = _ISO_DATE_PREFIX.match(raw)
    if match:
        return match.group(1)
    return None


def _coerce_movie_id(field_name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise CalendarSchemaError(f"Calendar field {field_name!r} holds a boolean, not a movie id.")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise CalendarSchemaError(f"Calendar field {field_name!r} is not a numeric movie id: {value!r}")


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text if text.strip() else None


def calendar_entry_from_row(row: Mapping[str, Any], *, fallback_date: date | None = None) -> CalendarEntry:
    """
    Map a raw calendar row to a `CalendarEntry`.

    Raises:
        CalendarSchemaError: none of the known movie id columns exist, or the value is not numeric.
        MissingMovieIdError: a movie id column exists but is empty for this row.
    """
    present = [name for name in MOVIE_ID_FIELDS if name in row]
    if not present:
        available = sorted(str(k) for k in row.keys())
        raise CalendarSchemaError(
            f"Calendar row has none of the movie id fields {list(MOVIE_ID_FIELDS)}; "
            f"available fields: {available}",
            available_fields=available,
        )

    field_name = next((name for name in present if row.get(name) not in (None, "")), None)
    if field_name is None:
        raise MissingMovieIdError(f"Calendar row has no movie id in {present}")
    if field_name != MOVIE_ID_FIELDS[0]:
        logger.info(f"Calendar row uses fallback movie id field {field_name!r}")

    movie_id = _coerce_movie_id(field_name, row[field_name])

    normalized = normalize_calendar_date(row.get("date"))
    if normalized is not None:
        entry_date = date.fromisoformat(normalized)
    elif fallback_date is not None:
        entry_date = fallback_date
    else:
        raise CalendarSchemaError(
            f"Calendar row has an unusable date value: {row.get('date')!r}",
            available_fields=sorted(str(k) for k in row.keys()),
        )

    return CalendarEntry(
        date=entry_date,
        movie_id=movie_id,
        quote_en=_optional_text(row.get("quote_en")),
        quote_pl=_optional_text(row.get("quote_pl")),
        description=_optional_text(row.get("description")),
        raw=dict(row),
    )
