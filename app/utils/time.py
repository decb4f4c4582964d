"""Time utilities (UTC now, injectable clock, elapsed formatting)."""
from __future__ import annotations
from datetime import datetime, timezone, timedelta
from typing import Callable

# Anything returning an aware UTC datetime. Services take one of these instead
# of reading the system clock directly so tests can pin "now".
Clock = Callable[[], datetime]

def utc_now() -> datetime:
    return datetime.now(timezone.utc)

def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on round trip)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)

class FixedClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime):
        self._current = as_utc(start)

    def __call__(self) -> datetime:
        return self._current  # type: ignore[return-value]

    def advance(self, **kwargs: float) -> datetime:
        self._current = self._current + timedelta(**kwargs)  # type: ignore[operator]
        return self._current  # type: ignore[return-value]

    def set(self, value: datetime) -> None:
        self._current = as_utc(value)

def format_elapsed(start: datetime, end: datetime | None = None) -> str:
    end_ts = end or utc_now()
    delta: timedelta = end_ts - start
    ms = int(delta.total_seconds() * 1000)
    if ms < 1000:
        return f"{ms}ms"
    if ms < 60_000:
        return f"{ms/1000:.2f}s"
    return f"{delta.total_seconds()/60:.2f}m"

__all__ = ["Clock", "FixedClock", "utc_now", "as_utc", "format_elapsed"]
