# dayos/services/recurrence.py
"""
Next-occurrence calculation for recurring reminders.

The interval is always added to the reminder's own ``scheduled_at``, never to the
processing time, so a daily reminder keeps its time of day. After downtime the
advanced instant may still be in the past and the reminder fires again on the
next pass, once per missed occurrence.
"""

from datetime import datetime, timedelta
from typing import Optional, Union

from dateutil.relativedelta import relativedelta

from dayos.models.reminder import Recurrence

_INTERVALS = {
    Recurrence.DAILY: timedelta(days=1),
    Recurrence.WEEKLY: timedelta(days=7),
    # relativedelta clamps the day to the end of shorter months (Jan 31 -> Feb 28/29)
    Recurrence.MONTHLY: relativedelta(months=1),
}


def advance(scheduled_at: datetime, recurrence: Union[Recurrence, str]) -> Optional[datetime]:
    """Return the next occurrence after ``scheduled_at``, or None when the reminder is terminal"""
    pattern = Recurrence(recurrence)
    if pattern is Recurrence.NONE:
        return None
    return scheduled_at + _INTERVALS[pattern]


def is_terminal(recurrence: Union[Recurrence, str]) -> bool:
    return Recurrence(recurrence) is Recurrence.NONE
