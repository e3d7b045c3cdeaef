"""Unit tests for next-occurrence calculation."""

from datetime import datetime, timedelta

import pytest

from dayos.models import Recurrence
from dayos.services.recurrence import advance, is_terminal


def test_none_is_terminal():
    assert advance(datetime(2025, 3, 10, 9, 0), Recurrence.NONE) is None
    assert is_terminal(Recurrence.NONE)
    assert not is_terminal(Recurrence.WEEKLY)


def test_daily_and_weekly_keep_time_of_day():
    start = datetime(2025, 3, 10, 7, 45)
    assert advance(start, Recurrence.DAILY) == datetime(2025, 3, 11, 7, 45)
    assert advance(start, Recurrence.WEEKLY) == datetime(2025, 3, 17, 7, 45)


def test_accepts_stored_string_values():
    assert advance(datetime(2025, 3, 10), "daily") == datetime(2025, 3, 11)


def test_unknown_pattern_rejected():
    with pytest.raises(ValueError):
        advance(datetime(2025, 3, 10), "hourly")


def test_monthly_clamps_to_end_of_short_month():
    assert advance(datetime(2025, 1, 31, 8, 0), Recurrence.MONTHLY) == datetime(2025, 2, 28, 8, 0)
    assert advance(datetime(2024, 1, 31, 8, 0), Recurrence.MONTHLY) == datetime(2024, 2, 29, 8, 0)


def test_monthly_after_clamp_stays_on_clamped_day():
    # Occurrences derive from the stored instant, so Feb 28 -> Mar 28
    feb = advance(datetime(2025, 1, 31), Recurrence.MONTHLY)
    assert advance(feb, Recurrence.MONTHLY) == datetime(2025, 3, 28)


def test_monthly_regular_day():
    assert advance(datetime(2025, 3, 15, 12, 0), Recurrence.MONTHLY) == datetime(2025, 4, 15, 12, 0)


@pytest.mark.parametrize("pattern", [Recurrence.DAILY, Recurrence.WEEKLY, Recurrence.MONTHLY])
def test_advance_is_strictly_increasing(pattern):
    current = datetime(2024, 1, 31, 23, 59)
    for _ in range(30):
        following = advance(current, pattern)
        assert following > current
        current = following


def test_overdue_reminder_advances_from_its_own_schedule():
    """A reminder ten days late moves one interval, not to now + interval"""
    scheduled = datetime(2025, 3, 1, 9, 0)
    now = scheduled + timedelta(days=10)

    next_at = advance(scheduled, Recurrence.DAILY)

    assert next_at == datetime(2025, 3, 2, 9, 0)
    assert next_at < now
