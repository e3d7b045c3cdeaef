# dayos/services/actions.py
"""
Transitions applied when a user acts on a delivered push notification.

    action     | reminder              | item
    -----------+-----------------------+-----------------------------------
    snooze     | scheduled_at = now+1h | reminder_at = now+1h
    mark-done  | delete reminder       | read = True, reminder_at = None
    delete     | delete reminder       | delete the item itself
"""

import enum
import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from dayos.models import Item, Reminder

logger = logging.getLogger(__name__)

SNOOZE_DELAY = timedelta(hours=1)

class NotificationAction(str, enum.Enum):
    SNOOZE = "snooze"
    MARK_DONE = "mark-done"
    DELETE = "delete"

    @classmethod
    def parse(cls, value: str) -> "NotificationAction":
        # Older service workers send mark-read
        if value == "mark-read":
            return cls.MARK_DONE
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Unknown notification action: {value!r}")

class ActionTarget(str, enum.Enum):
    REMINDER = "reminder"
    ITEM = "item"

    @classmethod
    def parse(cls, value: str) -> "ActionTarget":
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Unknown notification entity type: {value!r}")


def _load(db: Session, target: ActionTarget, entity_id: int, user_id: Optional[int]):
    model = Reminder if target == ActionTarget.REMINDER else Item
    query = db.query(model).filter(model.id == entity_id)
    if user_id is not None:
        query = query.filter(model.user_id == user_id)
    return query.first()


def apply_notification_action(
    db: Session,
    action: str,
    entity_type: str,
    entity_id: int,
    now: datetime,
    user_id: Optional[int] = None,
) -> bool:
    """
    Apply one transition and commit it.

    Returns False when the entity does not exist (or belongs to another user
    when ``user_id`` is given). Raises ValueError for an unknown action or type.
    """
    parsed_action = NotificationAction.parse(action)
    target = ActionTarget.parse(entity_type)

    entity = _load(db, target, entity_id, user_id)
    if entity is None:
        logger.warning(f"[PUSH ACTION] {parsed_action.value} on missing {target.value} {entity_id}")
        return False

    logger.info(f"[PUSH ACTION] {parsed_action.value} on {target.value} {entity_id}")

    if parsed_action == NotificationAction.SNOOZE:
        if target == ActionTarget.REMINDER:
            entity.scheduled_at = now + SNOOZE_DELAY
        else:
            entity.reminder_at = now + SNOOZE_DELAY
    elif parsed_action == NotificationAction.MARK_DONE:
        if target == ActionTarget.REMINDER:
            db.delete(entity)
        else:
            entity.read = True
            entity.reminder_at = None
    else:
        # For items this removes the saved link, not just its reminder
        db.delete(entity)

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    return True
