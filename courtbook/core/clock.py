"""Time source used by the booking engine."""
from datetime import datetime, timezone
from typing import Optional


class Clock:
    """Wall clock returning timezone-aware UTC datetimes."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Attach UTC to naive datetimes read back from the database.

    SQLite drops tzinfo on DateTime(timezone=True) columns, so all stored
    datetimes are written in UTC and re-tagged on the way out.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


system_clock = Clock()


def get_clock() -> Clock:
    """Dependency returning the process clock."""
    return system_clock
