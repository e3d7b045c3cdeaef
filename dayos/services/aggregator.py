# dayos/services/aggregator.py
import logging
from dataclasses import dataclass, field
from typing import Dict, List

from sqlalchemy.orm import Session

from dayos.models import User
from dayos.services.due_resolver import DueNotification

logger = logging.getLogger(__name__)

@dataclass
class UserAggregate:
    """Everything due for one user in one run, plus their push opt-in"""
    user_id: int
    push_enabled: bool
    notifications: List[DueNotification] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.notifications)

    @property
    def primary(self) -> DueNotification:
        return self.notifications[0]


def aggregate_by_user(db: Session, due: List[DueNotification]) -> List[UserAggregate]:
    """Group due notifications by owning user, one aggregate per user, ordered by user id"""
    grouped: Dict[int, List[DueNotification]] = {}
    for notification in due:
        grouped.setdefault(notification.user_id, []).append(notification)

    if not grouped:
        return []

    users = {
        user.id: user
        for user in db.query(User).filter(User.id.in_(list(grouped.keys()))).all()
    }

    aggregates = []
    for user_id in sorted(grouped):
        user = users.get(user_id)
        if user is None:
            logger.warning(f"Dropping {len(grouped[user_id])} due notifications for missing user {user_id}")
            continue
        aggregates.append(UserAggregate(
            user_id=user.id,
            push_enabled=user.push_notifications,
            notifications=grouped[user_id],
        ))

    logger.info(f"Aggregated {len(due)} due notifications into {len(aggregates)} users")
    return aggregates
