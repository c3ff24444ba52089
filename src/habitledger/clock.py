"""Injectable time source.

Every write stamps time through a ``Clock`` so tests can pin "now".
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone


class Clock:
    """Source of the current UTC time."""

    def now(self) -> datetime:
        raise NotImplementedError

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    """Wall-clock time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock(Clock):
    """A clock frozen at a given instant; ``advance`` moves it forward."""

    def __init__(self, at: datetime) -> None:
        if at.tzinfo is None:
            at = at.replace(tzinfo=timezone.utc)
        self._at = at

    def now(self) -> datetime:
        return self._at

    def advance(self, delta: timedelta) -> None:
        self._at = self._at + delta


_system_clock = SystemClock()


def get_clock() -> Clock:
    """FastAPI dependency returning the process clock (override in tests)."""
    return _system_clock
