# dayos/services/due_resolver.py
"""
Resolves everything that is due at a given instant into one stream of
DueNotification records, regardless of where the schedule is stored.
"""

import enum
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy import and_, not_, or_
from sqlalchemy.orm import Session, selectinload

from dayos.models import Item, Meeting, Reminder, Recurrence, Task, User

logger = logging.getLogger(__name__)

UNTITLED = "Untitled Reminder"

class DueOrigin(str, enum.Enum):
    ITEM = "item"          # Item.reminder_at
    REMINDER = "reminder"  # standalone Reminder row

@dataclass(frozen=True)
class DueNotification:
    origin: DueOrigin
    entity_id: int
    user_id: int
    title: str
    scheduled_at: datetime
    url: Optional[str] = None
    recurrence: Recurrence = Recurrence.NONE

    @property
    def sort_key(self):
        return (self.scheduled_at, self.origin.value, self.entity_id)


def _from_item(item: Item) -> DueNotification:
    return DueNotification(
        origin=DueOrigin.ITEM,
        entity_id=item.id,
        user_id=item.user_id,
        title=item.title or item.url or UNTITLED,
        scheduled_at=item.reminder_at,
        url=item.url,
    )


def _from_reminder(reminder: Reminder) -> Optional[DueNotification]:
    kind = reminder.parent_kind
    parent = getattr(reminder, kind) if kind else None
    if kind and parent is None:
        logger.warning(
            f"Reminder {reminder.id} references missing {kind} "
            f"{getattr(reminder, kind + '_id')}, skipping"
        )
        return None

    if kind == "item":
        title = reminder.title or parent.title or parent.url
        url = parent.url
    elif kind == "meeting":
        title = reminder.title or parent.title
        url = parent.link or "/meetings"
    elif kind == "task":
        title = reminder.title or parent.title
        url = "/tasks"
    else:
        title = reminder.title
        url = "/settings"

    return DueNotification(
        origin=DueOrigin.REMINDER,
        entity_id=reminder.id,
        user_id=reminder.user_id,
        title=title or UNTITLED,
        scheduled_at=reminder.scheduled_at,
        url=url,
        recurrence=Recurrence(reminder.recurrence),
    )


def _due_reminder_query(db: Session, now: datetime):
    # Parents and owner are joined so rows pointing at deleted rows can be told apart in SQL
    return db.query(Reminder).outerjoin(
        Item, Reminder.item_id == Item.id
    ).outerjoin(
        Task, Reminder.task_id == Task.id
    ).outerjoin(
        Meeting, Reminder.meeting_id == Meeting.id
    ).outerjoin(
        User, Reminder.user_id == User.id
    ).filter(Reminder.scheduled_at <= now)


def _reminder_is_intact():
    return and_(
        or_(Reminder.item_id.is_(None), Item.id.isnot(None)),
        or_(Reminder.task_id.is_(None), Task.id.isnot(None)),
        or_(Reminder.meeting_id.is_(None), Meeting.id.isnot(None)),
        User.id.isnot(None),
    )


def _warn_orphans(db: Session, now: datetime, limit: Optional[int]):
    """Log due rows that can never be delivered; they are left out of the batch, not mutated"""
    orphans = _due_reminder_query(db, now).filter(not_(_reminder_is_intact())).order_by(Reminder.id.asc())
    if limit:
        orphans = orphans.limit(limit)
    for reminder in orphans.all():
        kind = reminder.parent_kind
        if kind and getattr(reminder, kind) is None:
            logger.warning(
                f"Reminder {reminder.id} references missing {kind} "
                f"{getattr(reminder, kind + '_id')}, skipping"
            )
        else:
            logger.warning(f"Reminder {reminder.id} belongs to missing user {reminder.user_id}, skipping")

    ownerless_items = db.query(Item.id).outerjoin(User, Item.user_id == User.id).filter(
        and_(
            User.id.is_(None),
            Item.reminder_at.isnot(None),
            Item.reminder_at <= now,
        )
    ).count()
    if ownerless_items:
        logger.warning(f"Skipping {ownerless_items} due items of missing users")


def resolve_due(db: Session, now: datetime, limit: Optional[int] = None) -> List[DueNotification]:
    """
    Collect due item reminders and standalone reminders. Does not modify anything.

    Rows whose parent or owner no longer exists are filtered out before ``limit``
    applies, so they never take batch slots from deliverable rows.
    """
    item_query = db.query(Item).join(User, Item.user_id == User.id).filter(
        and_(
            Item.reminder_at.isnot(None),
            Item.reminder_at <= now,
        )
    ).order_by(Item.reminder_at.asc(), Item.id.asc())

    reminder_query = _due_reminder_query(db, now).options(
        selectinload(Reminder.item),
        selectinload(Reminder.task),
        selectinload(Reminder.meeting),
    ).filter(
        _reminder_is_intact()
    ).order_by(Reminder.scheduled_at.asc(), Reminder.id.asc())

    if limit:
        item_query = item_query.limit(limit)
        reminder_query = reminder_query.limit(limit)

    _warn_orphans(db, now, limit)

    due = [_from_item(item) for item in item_query.all()]
    for reminder in reminder_query.all():
        # A parent deleted between the two statements still shows up here
        notification = _from_reminder(reminder)
        if notification is not None:
            due.append(notification)

    due.sort(key=lambda n: n.sort_key)
    logger.info(f"Resolved {len(due)} due notifications at {now.isoformat()}")
    return due
