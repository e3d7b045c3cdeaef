# dayos/services/reminder_engine.py
"""
Entry points of the reminder engine. Every pass is a bounded batch job that
holds no state between invocations; the dispatcher and its credentials are
the only things kept for the life of the process.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Any, Callable, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from dayos.config.settings import Settings, ChannelConfig
from dayos.database import SessionLocal
from dayos.models import Item, Reminder, Meeting
from dayos.services.actions import apply_notification_action
from dayos.services.aggregator import aggregate_by_user
from dayos.services.digest import DigestReport, send_daily_digests
from dayos.services.dispatcher import ChannelDispatcher, DispatchReport
from dayos.services.due_resolver import DueNotification, DueOrigin, resolve_due
from dayos.services.meeting_reminders import create_meeting_with_reminders, expand_meeting_reminders
from dayos.services.recurrence import advance
from dayos.utils.clock import utcnow, resolve_timezone
from dayos.utils.notifications import DeliveryResult, record_deliveries, prune_delivery_logs

logger = logging.getLogger(__name__)

# Outcomes of the post-dispatch mutation of one entity
CLEARED = "cleared"
DELETED = "deleted"
ADVANCED = "advanced"
MISSING = "missing"
CHANGED = "changed"
FAILED = "failed"

@dataclass
class ProcessReport:
    due: int = 0
    users: int = 0
    dispatch: DispatchReport = field(default_factory=DispatchReport)
    outcomes: Dict[str, str] = field(default_factory=dict)  # "item:3" -> outcome

    def count(self, outcome: str) -> int:
        return sum(1 for value in self.outcomes.values() if value == outcome)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "due": self.due,
            "users": self.users,
            "dispatch": self.dispatch.to_dict(),
            "cleared": self.count(CLEARED),
            "deleted": self.count(DELETED),
            "advanced": self.count(ADVANCED),
            "skipped": self.count(MISSING) + self.count(CHANGED),
            "failed": self.count(FAILED),
        }


class ReminderEngine:

    def __init__(
        self,
        dispatcher: ChannelDispatcher,
        session_factory: Callable[[], Session] = SessionLocal,
        due_batch_size: Optional[int] = None,
        digest_timezone: tzinfo = timezone.utc,
        delivery_log_retention_days: int = 30,
    ):
        self.dispatcher = dispatcher
        self.session_factory = session_factory
        self.due_batch_size = due_batch_size
        self.digest_timezone = digest_timezone
        self.delivery_log_retention_days = delivery_log_retention_days

    async def process_due_reminders(self, now: Optional[datetime] = None) -> ProcessReport:
        """Resolve, aggregate, dispatch, then advance or remove every processed entity"""
        now = now or utcnow()
        report = ProcessReport()

        db = self.session_factory()
        try:
            due = resolve_due(db, now, limit=self.due_batch_size)
            aggregates = aggregate_by_user(db, due)
            report.due = len(due)
            report.users = len(aggregates)
            if aggregates:
                report.dispatch = await self.dispatcher.dispatch(db, aggregates)
        finally:
            db.close()

        for aggregate in aggregates:
            for notification in aggregate.notifications:
                key = f"{notification.origin.value}:{notification.entity_id}"
                report.outcomes[key] = self.finalize(notification)

        self._record(report.dispatch.results)
        logger.info(f"Processed due reminders: {report.to_dict()}")
        return report

    def finalize(self, notification: DueNotification) -> str:
        """Mutate one dispatched entity in its own transaction"""
        db = self.session_factory()
        try:
            if notification.origin == DueOrigin.ITEM:
                outcome = self._finalize_item(db, notification)
            else:
                outcome = self._finalize_reminder(db, notification)
            db.commit()
            return outcome
        except Exception as e:
            db.rollback()
            logger.error(f"Error finalizing {notification.origin.value} {notification.entity_id}: {e}")
            return FAILED
        finally:
            db.close()

    def _finalize_item(self, db: Session, notification: DueNotification) -> str:
        item = db.get(Item, notification.entity_id)
        if item is None:
            return MISSING
        if item.reminder_at != notification.scheduled_at:
            # Snoozed or rescheduled while the run was in flight
            return CHANGED
        item.reminder_at = None
        return CLEARED

    def _finalize_reminder(self, db: Session, notification: DueNotification) -> str:
        reminder = db.get(Reminder, notification.entity_id)
        if reminder is None:
            return MISSING
        if reminder.scheduled_at != notification.scheduled_at:
            return CHANGED
        next_at = advance(reminder.scheduled_at, reminder.recurrence)
        if next_at is None:
            db.delete(reminder)
            return DELETED
        reminder.scheduled_at = next_at
        return ADVANCED

    async def send_daily_digests(self, now: Optional[datetime] = None) -> DigestReport:
        now = now or utcnow()
        report = await send_daily_digests(self.session_factory, self.dispatcher, now, self.digest_timezone)
        self._record(report.deliveries)
        logger.info(f"Daily digest finished: {report.to_dict()}")
        return report

    def create_meeting(self, db: Session, user_id: int, title: str, start_time: datetime, end_time: datetime,
                       description: Optional[str] = None, link: Optional[str] = None,
                       custom_minutes: Optional[Iterable[int]] = None, now: Optional[datetime] = None) -> Meeting:
        return create_meeting_with_reminders(
            db,
            user_id=user_id,
            title=title,
            start_time=start_time,
            end_time=end_time,
            now=now or utcnow(),
            description=description,
            link=link,
            custom_minutes=custom_minutes,
        )

    def on_meeting_created(self, db: Session, meeting: Meeting,
                           custom_minutes: Optional[Iterable[int]] = None,
                           now: Optional[datetime] = None) -> List[Reminder]:
        """For meetings inserted elsewhere: expand and commit their reminders"""
        reminders = expand_meeting_reminders(db, meeting, now or utcnow(), custom_minutes)
        db.commit()
        return reminders

    def handle_action(self, db: Session, action: str, entity_type: str, entity_id: int,
                      user_id: Optional[int] = None, now: Optional[datetime] = None) -> bool:
        return apply_notification_action(db, action, entity_type, entity_id, now or utcnow(), user_id=user_id)

    def cleanup_delivery_logs(self, now: Optional[datetime] = None) -> int:
        cutoff = (now or utcnow()) - timedelta(days=self.delivery_log_retention_days)
        db = self.session_factory()
        try:
            count = prune_delivery_logs(db, cutoff)
        finally:
            db.close()
        logger.info(f"Cleaned up {count} delivery log rows")
        return count

    def _record(self, results: List[DeliveryResult]):
        if not results:
            return
        db = self.session_factory()
        try:
            record_deliveries(db, results)
        except Exception as e:
            db.rollback()
            logger.error(f"Error persisting {len(results)} delivery log rows: {e}")
        finally:
            db.close()


_engine: Optional[ReminderEngine] = None

def build_engine(settings=Settings) -> ReminderEngine:
    dispatcher = ChannelDispatcher(ChannelConfig.from_settings(settings))
    if not dispatcher.push_available:
        logger.warning("VAPID keys not configured; push notifications disabled")
    if not dispatcher.email_available:
        logger.warning("SMTP not configured; digest emails disabled")
    return ReminderEngine(
        dispatcher,
        due_batch_size=settings.ENGINE['due_batch_size'],
        digest_timezone=resolve_timezone(settings.ENGINE['digest_timezone']),
        delivery_log_retention_days=settings.ENGINE['delivery_log_retention_days'],
    )

def get_engine() -> ReminderEngine:
    """Process-wide engine, built on first use"""
    global _engine
    if _engine is None:
        _engine = build_engine()
    return _engine
