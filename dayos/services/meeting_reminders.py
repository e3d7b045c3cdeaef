# dayos/services/meeting_reminders.py
"""
Expands a newly created meeting into standalone lead-time reminders
"""

import logging
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from dayos.models import Meeting, Reminder, Recurrence

logger = logging.getLogger(__name__)

DEFAULT_LEAD_TIMES = (
    timedelta(days=1),
    timedelta(hours=1),
    timedelta(minutes=30),
    timedelta(minutes=10),
    timedelta(minutes=5),
    timedelta(minutes=2),
)


def describe_lead_time(offset: timedelta) -> str:
    minutes = int(offset.total_seconds() // 60)
    if minutes % (60 * 24) == 0:
        days = minutes // (60 * 24)
        return "1 day" if days == 1 else f"{days} days"
    if minutes % 60 == 0:
        hours = minutes // 60
        return "1 hour" if hours == 1 else f"{hours} hours"
    return "1 minute" if minutes == 1 else f"{minutes} minutes"


def lead_times(custom_minutes: Optional[Iterable[int]] = None) -> List[timedelta]:
    """Default lead times merged with custom ones, deduplicated, longest first"""
    offsets = set(DEFAULT_LEAD_TIMES)
    for minutes in custom_minutes or ():
        if minutes is None or int(minutes) <= 0:
            raise ValueError(f"Reminder lead time must be a positive number of minutes, got {minutes!r}")
        offsets.add(timedelta(minutes=int(minutes)))
    return sorted(offsets, reverse=True)


def plan_reminders(
    start_time: datetime,
    now: datetime,
    custom_minutes: Optional[Iterable[int]] = None,
) -> List[Tuple[timedelta, datetime]]:
    """(lead time, fire instant) pairs whose instant is strictly after ``now``"""
    planned = []
    for offset in lead_times(custom_minutes):
        fire_at = start_time - offset
        if fire_at > now:
            planned.append((offset, fire_at))
    return planned


def expand_meeting_reminders(
    db: Session,
    meeting: Meeting,
    now: datetime,
    custom_minutes: Optional[Iterable[int]] = None,
) -> List[Reminder]:
    """Add one reminder per future lead time to the session; the caller commits"""
    reminders = []
    for offset, fire_at in plan_reminders(meeting.start_time, now, custom_minutes):
        reminder = Reminder(
            user_id=meeting.user_id,
            meeting=meeting,
            title=f"{meeting.title} starts in {describe_lead_time(offset)}",
            scheduled_at=fire_at,
            recurrence=Recurrence.NONE,
        )
        db.add(reminder)
        reminders.append(reminder)

    logger.info(f"Expanded meeting '{meeting.title}' into {len(reminders)} reminders")
    return reminders


def create_meeting_with_reminders(
    db: Session,
    user_id: int,
    title: str,
    start_time: datetime,
    end_time: datetime,
    now: datetime,
    description: Optional[str] = None,
    link: Optional[str] = None,
    custom_minutes: Optional[Iterable[int]] = None,
) -> Meeting:
    """Insert a meeting and its lead-time reminders in one transaction"""
    if end_time < start_time:
        raise ValueError("Meeting end time cannot be before its start time")

    meeting = Meeting(
        user_id=user_id,
        title=title,
        description=description,
        link=link,
        start_time=start_time,
        end_time=end_time,
    )
    db.add(meeting)
    try:
        expand_meeting_reminders(db, meeting, now, custom_minutes)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(meeting)
    return meeting
