from datetime import datetime, timezone


def now() -> datetime:
    """Current time in UTC without tzinfo (naive).
    This is the standard timestamp for every row in the project.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def now_tzinfo() -> datetime:
    return datetime.now(timezone.utc)


def isoformat_or_none(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt else None
