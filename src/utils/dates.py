from datetime import datetime, timezone


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes; SQLite drops tzinfo on timezone-aware columns."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
