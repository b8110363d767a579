"""
Injectable time source

Everything that stamps or compares times takes a Clock so tests can pin "now".
"""
from datetime import datetime, timedelta, timezone


class Clock:
    """Wall clock in UTC"""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class SystemClock(Clock):
    pass


class FixedClock(Clock):
    """Clock that always returns the same instant until moved"""

    def __init__(self, instant: datetime):
        self.instant = ensure_utc(instant)

    def now(self) -> datetime:
        return self.instant

    def advance(self, **kwargs) -> datetime:
        """Move the clock forward by a timedelta built from kwargs (days=..., hours=...)"""
        self.instant = self.instant + timedelta(**kwargs)
        return self.instant


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
