"""Injected clocks.

Engine functions never read wall-clock time; they take an ``as_of`` date.
Application code obtains that date from a Clock so "today" is decided in one
place, in one reference timezone.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, datetime
from zoneinfo import ZoneInfo

from program_engine.config.settings import settings
from program_engine.schedule.calendar import to_calendar_date


class Clock(ABC):
    """Source of the current calendar date and instant."""

    # Reference timezone for today(), settings.reference_timezone when None
    timezone: str | None = None

    @abstractmethod
    def now(self) -> datetime:
        raise NotImplementedError

    def today(self) -> date:
        """Calendar date of ``now()`` in the reference timezone."""
        return to_calendar_date(self.now(), self.timezone or settings.reference_timezone)


class SystemClock(Clock):
    """Wall clock in the reference timezone."""

    def __init__(self, timezone: str | None = None) -> None:
        self.timezone = timezone or settings.reference_timezone
        self._tz = ZoneInfo(self.timezone)

    def now(self) -> datetime:
        return datetime.now(self._tz)


class FixedClock(Clock):
    """Clock pinned to one instant (tests, replays, CLI --as-of)."""

    def __init__(self, instant: datetime | date, timezone: str | None = None) -> None:
        self.timezone = timezone
        if not isinstance(instant, datetime):
            instant = datetime(instant.year, instant.month, instant.day)
        self._instant = instant

    def now(self) -> datetime:
        return self._instant
