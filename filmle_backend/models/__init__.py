"""
Domain models shared across the API and the repositories.
"""

from filmle_backend.models.calendar import (
    CalendarEntry,
    CalendarSchemaError,
    MissingMovieIdError,
    calendar_entry_from_row,
    normalize_calendar_date,
)

__all__ = [
    "CalendarEntry",
    "CalendarSchemaError",
    "MissingMovieIdError",
    "calendar_entry_from_row",
    "normalize_calendar_date",
]
