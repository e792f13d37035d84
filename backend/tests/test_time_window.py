from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from rhythm.planner.errors import TimeRangeError
from rhythm.planner.time_window import DailyTimeWindow


def test_default_window_is_seven_to_eleven() -> None:
    window = DailyTimeWindow(date(2024, 3, 4))

    assert window.start_time() == datetime(2024, 3, 4, 7, 0)
    assert window.end_time() == datetime(2024, 3, 4, 23, 0)


def test_window_ending_at_midnight_keeps_the_last_minute() -> None:
    window = DailyTimeWindow(date(2024, 3, 4), start_hour=6, end_hour=24, tz=timezone.utc)

    assert window.start_time() == datetime(2024, 3, 4, 6, 0, tzinfo=timezone.utc)
    assert window.end_time() == datetime(2024, 3, 5, 0, 0, tzinfo=timezone.utc)


def test_window_without_day_uses_today() -> None:
    window = DailyTimeWindow(tz=timezone.utc)

    assert window.start_time().date() == datetime.now(timezone.utc).date()


@pytest.mark.parametrize(("start_hour", "end_hour"), [(9, 9), (23, 7), (-1, 10), (7, 25)])
def test_invalid_hours_are_rejected(start_hour: int, end_hour: int) -> None:
    with pytest.raises(TimeRangeError):
        DailyTimeWindow(date(2024, 3, 4), start_hour=start_hour, end_hour=end_hour)
