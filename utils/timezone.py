"""Aware-UTC datetimes and the UNIX-second conversions used by session tokens."""

from datetime import datetime, timezone


def now_utc() -> datetime:
    """Aware current time in UTC. Never call datetime.now() without a tz."""
    return datetime.now(timezone.utc)


def to_utc(dt: datetime) -> datetime:
    """
    Same instant, expressed in UTC.

    Raises ValueError for naive datetimes; their zone cannot be guessed.
    """
    if dt.tzinfo is None:
        raise ValueError("Refusing to convert a naive datetime; attach a tzinfo first.")
    return dt.astimezone(timezone.utc)


def to_epoch_seconds(dt: datetime) -> int:
    """Whole UNIX seconds for an aware datetime (JWT NumericDate)."""
    return int(to_utc(dt).timestamp())
