from __future__ import annotations

import logging
from datetime import date
from typing import Any

from supabase import Client

from filmle_backend.db.errors import describe_supabase_error, is_missing_table_error
from filmle_backend.models.calendar import (
    CalendarEntry,
    MissingMovieIdError,
    calendar_entry_from_row,
    normalize_calendar_date,
)

logger = logging.getLogger(__name__)

DEFAULT_CALENDAR_TABLE = "calendar"
DEFAULT_SCAN_LIMIT = 1000
SAMPLE_SIZE = 3


class CalendarRepositoryError(RuntimeError):
    pass


class CalendarEntryNotFoundError(CalendarRepositoryError):
    """No usable calendar row for the requested day; carries diagnostics for the 404 body."""

    def __init__(
        self,
        message: str,
        *,
        day: date,
        rows_scanned: int | None = None,
        sample_dates: list[Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.day = day
        self.rows_scanned = rows_scanned
        self.sample_dates = sample_dates or []

    def diagnostics(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"date": self.day.isoformat()}
        if self.rows_scanned is not None:
            payload["rows_scanned"] = self.rows_scanned
            payload["sample_dates"] = self.sample_dates
        return payload


class _MissingTableError(CalendarRepositoryError):
    pass


def table_name_candidates(table: str) -> list[str]:
    """The configured table name first, then its alternate casing (`calendar` <-> `Calendar`)."""
    name = table.strip()
    alternate = name.lower() if name[:1].isupper() else name[:1].upper() + name[1:]
    candidates = [name]
    if alternate != name:
        candidates.append(alternate)
    return candidates


def _execute(query: Any, *, table: str, context: str) -> list[dict[str, Any]]:
    try:
        response = query.execute()
    except Exception as exc:
        message = describe_supabase_error(exc)
        if is_missing_table_error(message):
            raise _MissingTableError(f"Supabase table {table!r} does not exist: {message}") from exc
        raise CalendarRepositoryError(f"Supabase error during {context}: {message}") from exc

    error = getattr(response, "error", None)
    if error:
        message = describe_supabase_error(error)
        if is_missing_table_error(message):
            raise _MissingTableError(f"Supabase table {table!r} does not exist: {message}")
        raise CalendarRepositoryError(f"Supabase error during {context}: {message}")

    data = getattr(response, "data", None) or []
    if isinstance(data, dict):
        return [data]
    if not isinstance(data, list):
        raise CalendarRepositoryError(f"Supabase returned unexpected response shape during {context}.")
    return [row for row in data if isinstance(row, dict)]


def _query_by_date(db: Client, table: str, day_iso: str) -> list[dict[str, Any]]:
    query = db.table(table).select("*").eq("date", day_iso).limit(2)
    return _execute(query, table=table, context=f"reading {table} for {day_iso}")


def _query_with_table_fallback(db: Client, table: str, day_iso: str) -> tuple[str, list[dict[str, Any]]]:
    candidates = table_name_candidates(table)
    last_error: _MissingTableError | None = None
    for name in candidates:
        try:
            rows = _query_by_date(db, name, day_iso)
        except _MissingTableError as exc:
            last_error = exc
            logger.warning(f"Calendar table {name!r} not found; trying alternate casing")
            continue
        if name != candidates[0]:
            logger.warning(f"Calendar resolved via alternate table name {name!r}")
        return name, rows

    raise CalendarRepositoryError(
        f"None of the calendar tables {candidates} exist in Supabase."
    ) from last_error


def scan_calendar_rows(
    db: Client,
    *,
    day: date,
    table: str = DEFAULT_CALENDAR_TABLE,
    scan_limit: int = DEFAULT_SCAN_LIMIT,
) -> tuple[list[dict[str, Any]], int, list[Any]]:
    """
    Degraded lookup: read the most recent `scan_limit` rows and match on the normalized `date` column.

    Returns (matching rows, rows scanned, sample of raw date values).
    """
    day_iso = day.isoformat()
    query = db.table(table).select("*").order("date", desc=True).limit(max(int(scan_limit), 1))
    rows = _execute(query, table=table, context=f"scanning {table}")
    matches = [row for row in rows if normalize_calendar_date(row.get("date")) == day_iso]
    sample_dates = [row.get("date") for row in rows[:SAMPLE_SIZE]]
    return matches, len(rows), sample_dates


def _pick_row(rows: list[dict[str, Any]], day_iso: str) -> dict[str, Any]:
    if len(rows) > 1:
        logger.warning(f"Found {len(rows)} calendar rows for {day_iso}; using the first one")
    return rows[0]


def find_calendar_entry(
    db: Client,
    day: date,
    *,
    table: str = DEFAULT_CALENDAR_TABLE,
    scan_limit: int = DEFAULT_SCAN_LIMIT,
) -> CalendarEntry:
    """
    Find the calendar entry for `day`.

    Lookup order:
    1. `date = day` against `table`.
    2. The same query against the alternate table casing, only when `table` does not exist.
    3. A bounded scan with normalized date comparison, only when the query succeeded with no rows
       (date column stored as a timestamp or inconsistent strings).

    Raises:
        CalendarEntryNotFoundError: no row for the day, or the row has an empty movie id.
        CalendarSchemaError: the row has no recognizable movie id column.
        CalendarRepositoryError: the Supabase query failed.
    """
    day_iso = day.isoformat()
    resolved_table, rows = _query_with_table_fallback(db, table, day_iso)

    if not rows:
        logger.warning(
            f"No calendar row matched date = {day_iso} in {resolved_table!r}; "
            f"falling back to scanning the latest {scan_limit} rows"
        )
        rows, rows_scanned, sample_dates = scan_calendar_rows(
            db, day=day, table=resolved_table, scan_limit=scan_limit
        )
        if not rows:
            raise CalendarEntryNotFoundError(
                f"No calendar entry for {day_iso}",
                day=day,
                rows_scanned=rows_scanned,
                sample_dates=sample_dates,
            )
        logger.warning(f"Calendar row for {day_iso} found only by scan; check the `date` column type")

    row = _pick_row(rows, day_iso)
    try:
        return calendar_entry_from_row(row, fallback_date=day)
    except MissingMovieIdError as exc:
        raise CalendarEntryNotFoundError(f"Calendar entry for {day_iso} has no movie id", day=day) from exc
