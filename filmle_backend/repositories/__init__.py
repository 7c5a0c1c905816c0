"""
Repository layer for DB access patterns.
"""

from filmle_backend.repositories.calendar import (
    CalendarEntryNotFoundError,
    CalendarRepositoryError,
    find_calendar_entry,
)

__all__ = [
    "CalendarEntryNotFoundError",
    "CalendarRepositoryError",
    "find_calendar_entry",
]
