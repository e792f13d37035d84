"""Planning horizon providers."""
from __future__ import annotations

from datetime import date, datetime, time, timedelta, tzinfo
from typing import Optional, Protocol

from rhythm.planner.errors import TimeRangeError


class TimeWindowProvider(Protocol):
    def start_time(self) -> datetime: ...

    def end_time(self) -> datetime: ...


class DailyTimeWindow:
    """A single day's horizon between two wall-clock hours (07:00-23:00 by default)."""

    def __init__(
        self,
        day: Optional[date] = None,
        *,
        start_hour: int = 7,
        end_hour: int = 23,
        tz: Optional[tzinfo] = None,
    ) -> None:
        if not 0 <= start_hour < end_hour <= 24:
            raise TimeRangeError(f"Invalid daily window {start_hour}:00-{end_hour}:00")
        self.day = day
        self.start_hour = start_hour
        self.end_hour = end_hour
        self.tz = tz

    def _day(self) -> date:
        return self.day or datetime.now(self.tz).date()

    def _at(self, hour: int) -> datetime:
        if hour == 24:
            return datetime.combine(self._day() + timedelta(days=1), time(0), tzinfo=self.tz)
        return datetime.combine(self._day(), time(hour), tzinfo=self.tz)

    def start_time(self) -> datetime:
        return self._at(self.start_hour)

    def end_time(self) -> datetime:
        return self._at(self.end_hour)
