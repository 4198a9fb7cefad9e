"""Timestamp helper shared by models and storage."""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """
    Current UTC time as a naive datetime.

    Stored timestamps are naive UTC; SQLite returns them without an
    offset, so both backends hand back the same form.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)
