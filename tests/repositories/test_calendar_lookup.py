from __future__ import annotations

from datetime import date

import pytest

from filmle_backend.models.calendar import CalendarSchemaError
from filmle_backend.repositories.calendar import (
    CalendarEntryNotFoundError,
    CalendarRepositoryError,
    find_calendar_entry,
    table_name_candidates,
)

TODAY = date(2024, 1, 15)


class _FakeResponse:
    def __init__(self, *, data=None, error=None):  # noqa: ANN001
        self.data = data if data is not None else []
        self.error = error


class _FakeAPIError(Exception):
    """Mimics postgrest.APIError (code/message/details/hint)."""

    def __init__(self, *, code: str | None = None, message: str | None = None) -> None:
        super().__init__(message or "error")
        self.code = code
        self.message = message
        self.details = None
        self.hint = None

    def __str__(self) -> str:
        return self.message or super().__str__()


def _missing_table(name: str) -> _FakeAPIError:
    return _FakeAPIError(code="PGRST205", message=f"Could not find the table 'public.{name}' in the schema cache")


class _FakeQuery:
    def __init__(self, client: "_FakeClient", table: str) -> None:
        self._client = client
        self._table = table
        self._filters: list[tuple[str, object]] = []
        self._order: tuple[str, bool] | None = None
        self._limit: int | None = None

    def select(self, *_args, **_kwargs):  # noqa: ANN001, ANN002
        return self

    def eq(self, col: str, val: object):  # noqa: ANN001
        self._filters.append((col, val))
        return self

    def order(self, col: str, *, desc: bool = False):  # noqa: ANN001
        self._order = (col, desc)
        return self

    def limit(self, n: int):  # noqa: ANN001
        self._limit = n
        return self

    def execute(self) -> _FakeResponse:
        self._client.calls.append(
            {"table": self._table, "filters": list(self._filters), "order": self._order, "limit": self._limit}
        )
        if self._client.exc is not None:
            raise self._client.exc
        if self._table in self._client.missing_tables:
            raise _missing_table(self._table)
        if self._table in self._client.error_tables:
            return _FakeResponse(error=self._client.error_tables[self._table])

        rows = list(self._client.tables.get(self._table, []))
        for col, val in self._filters:
            rows = [row for row in rows if row.get(col) == val]
        if self._order is not None:
            col, desc = self._order
            rows.sort(key=lambda row: str(row.get(col)), reverse=desc)
        if self._limit is not None:
            rows = rows[: self._limit]
        return _FakeResponse(data=rows)


class _FakeClient:
    """Fake Supabase client with in-memory tables."""

    def __init__(
        self,
        *,
        tables: dict[str, list[dict]] | None = None,
        missing_tables: tuple[str, ...] = (),
        error_tables: dict[str, object] | None = None,
        exc: Exception | None = None,
    ) -> None:
        self.tables = tables or {}
        self.missing_tables = set(missing_tables)
        self.error_tables = error_tables or {}
        self.exc = exc
        self.calls: list[dict] = []

    def table(self, name: str) -> _FakeQuery:
        return _FakeQuery(self, name)


def test_table_name_candidates_tries_alternate_casing() -> None:
    assert table_name_candidates("calendar") == ["calendar", "Calendar"]
    assert table_name_candidates("Calendar") == ["Calendar", "calendar"]


def test_find_calendar_entry_uses_direct_date_match() -> None:
    client = _FakeClient(
        tables={
            "calendar": [
                {"date": "2024-01-14", "movie_id": 13},
                {"date": "2024-01-15", "movie_id": 550, "quote_en": "His name was Robert Paulson."},
            ]
        }
    )

    entry = find_calendar_entry(client, TODAY)

    assert entry.movie_id == 550
    assert entry.date == TODAY
    assert entry.quote_en == "His name was Robert Paulson."
    assert len(client.calls) == 1
    assert client.calls[0]["filters"] == [("date", "2024-01-15")]


def test_find_calendar_entry_retries_alternate_table_casing_when_table_missing() -> None:
    client = _FakeClient(
        tables={"Calendar": [{"date": "2024-01-15", "movie": 550}]},
        missing_tables=("calendar",),
    )

    entry = find_calendar_entry(client, TODAY)

    assert entry.movie_id == 550
    assert [call["table"] for call in client.calls] == ["calendar", "Calendar"]


def test_find_calendar_entry_detects_missing_table_from_response_error() -> None:
    client = _FakeClient(
        tables={"Calendar": [{"date": "2024-01-15", "movie": 550}]},
        error_tables={"calendar": _FakeAPIError(code="42P01", message='relation "public.calendar" does not exist')},
    )

    entry = find_calendar_entry(client, TODAY)

    assert entry.movie_id == 550
    assert [call["table"] for call in client.calls] == ["calendar", "Calendar"]


def test_find_calendar_entry_raises_when_no_table_casing_exists() -> None:
    client = _FakeClient(missing_tables=("calendar", "Calendar"))

    with pytest.raises(CalendarRepositoryError) as excinfo:
        find_calendar_entry(client, TODAY)

    assert not isinstance(excinfo.value, CalendarEntryNotFoundError)
    assert "calendar" in str(excinfo.value)


def test_find_calendar_entry_does_not_fall_back_on_other_errors() -> None:
    client = _FakeClient(exc=RuntimeError("connection refused"))

    with pytest.raises(CalendarRepositoryError) as excinfo:
        find_calendar_entry(client, TODAY)

    assert "connection refused" in str(excinfo.value)
    assert len(client.calls) == 1


def test_find_calendar_entry_scans_when_date_is_stored_as_timestamp() -> None:
    client = _FakeClient(
        tables={
            "calendar": [
                {"date": "2024-01-14T00:00:00+00:00", "movie_id": 13},
                {"date": "2024-01-15T00:00:00+00:00", "movie_id": 550},
            ]
        }
    )

    entry = find_calendar_entry(client, TODAY, scan_limit=50)

    assert entry.movie_id == 550
    assert len(client.calls) == 2
    scan = client.calls[1]
    assert scan["filters"] == []
    assert scan["order"] == ("date", True)
    assert scan["limit"] == 50


def test_find_calendar_entry_scan_uses_resolved_table_name() -> None:
    client = _FakeClient(
        tables={"Calendar": [{"date": "2024-01-15 00:00:00", "movie_id": 550}]},
        missing_tables=("calendar",),
    )

    entry = find_calendar_entry(client, TODAY)

    assert entry.movie_id == 550
    assert [call["table"] for call in client.calls] == ["calendar", "Calendar", "Calendar"]


def test_find_calendar_entry_not_found_carries_diagnostics() -> None:
    client = _FakeClient(
        tables={
            "calendar": [
                {"date": "2024-01-13", "movie_id": 1},
                {"date": "2024-01-14", "movie_id": 2},
            ]
        }
    )

    with pytest.raises(CalendarEntryNotFoundError) as excinfo:
        find_calendar_entry(client, TODAY)

    diagnostics = excinfo.value.diagnostics()
    assert diagnostics["date"] == "2024-01-15"
    assert diagnostics["rows_scanned"] == 2
    assert diagnostics["sample_dates"] == ["2024-01-14", "2024-01-13"]


def test_find_calendar_entry_scan_is_bounded() -> None:
    rows = [{"date": f"2024-02-{day:02d}T00:00:00", "movie_id": day} for day in range(1, 11)]
    rows.append({"date": "2024-01-15T00:00:00", "movie_id": 550})
    client = _FakeClient(tables={"calendar": rows})

    with pytest.raises(CalendarEntryNotFoundError) as excinfo:
        find_calendar_entry(client, TODAY, scan_limit=5)

    assert excinfo.value.rows_scanned == 5


def test_find_calendar_entry_uses_first_row_when_date_is_duplicated() -> None:
    client = _FakeClient(
        tables={
            "calendar": [
                {"date": "2024-01-15", "movie_id": 550},
                {"date": "2024-01-15", "movie_id": 680},
            ]
        }
    )

    entry = find_calendar_entry(client, TODAY)

    assert entry.movie_id == 550
    assert client.calls[0]["limit"] == 2


def test_find_calendar_entry_empty_movie_id_is_not_found() -> None:
    client = _FakeClient(tables={"calendar": [{"date": "2024-01-15", "movie": None}]})

    with pytest.raises(CalendarEntryNotFoundError) as excinfo:
        find_calendar_entry(client, TODAY)

    assert "no movie id" in str(excinfo.value)
    assert "rows_scanned" not in excinfo.value.diagnostics()


def test_find_calendar_entry_missing_movie_id_column_is_schema_error() -> None:
    client = _FakeClient(tables={"calendar": [{"date": "2024-01-15", "title": "Fight Club"}]})

    with pytest.raises(CalendarSchemaError) as excinfo:
        find_calendar_entry(client, TODAY)

    assert excinfo.value.available_fields == ["date", "title"]
