# dayos/services/digest.py
"""
Once-daily digest email with a per-user calendar-day guard
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import and_
from sqlalchemy.orm import Session, selectinload

from dayos.models import User, Meeting, Reminder, Item, ItemStatus
from dayos.services.dispatcher import ChannelDispatcher
from dayos.utils.clock import same_calendar_day
from dayos.utils.notifications import DeliveryResult

logger = logging.getLogger(__name__)

LOOKAHEAD = timedelta(hours=24)
LOOKBACK = timedelta(hours=24)
MAX_REMINDERS = 10
MAX_NEW_ITEMS = 5

@dataclass
class DigestContent:
    meetings: List[Meeting]
    reminders: List[Reminder]
    new_items: List[Item]

    @property
    def empty(self) -> bool:
        return not (self.meetings or self.reminders or self.new_items)

@dataclass
class DigestReport:
    sent: List[int] = field(default_factory=list)
    failed: List[int] = field(default_factory=list)
    skipped_already_sent: List[int] = field(default_factory=list)
    skipped_no_content: List[int] = field(default_factory=list)
    deliveries: List[DeliveryResult] = field(default_factory=list)
    email_skipped_reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sent": len(self.sent),
            "failed": len(self.failed),
            "skipped_already_sent": len(self.skipped_already_sent),
            "skipped_no_content": len(self.skipped_no_content),
            "email_skipped_reason": self.email_skipped_reason,
        }


def gather_digest_content(db: Session, user_id: int, now: datetime) -> DigestContent:
    meetings = db.query(Meeting).filter(
        and_(
            Meeting.user_id == user_id,
            Meeting.start_time >= now,
            Meeting.start_time < now + LOOKAHEAD,
        )
    ).order_by(Meeting.start_time.asc()).all()

    reminders = db.query(Reminder).options(selectinload(Reminder.item)).filter(
        and_(
            Reminder.user_id == user_id,
            Reminder.scheduled_at <= now + LOOKAHEAD,
        )
    ).order_by(Reminder.scheduled_at.asc()).limit(MAX_REMINDERS).all()

    new_items = db.query(Item).filter(
        and_(
            Item.user_id == user_id,
            Item.status == ItemStatus.INBOX,
            Item.created_at >= now - LOOKBACK,
        )
    ).order_by(Item.created_at.desc()).limit(MAX_NEW_ITEMS).all()

    return DigestContent(meetings=meetings, reminders=reminders, new_items=new_items)


def compose_digest(user: User, content: DigestContent, app_url: str):
    """Plain-text digest; returns (subject, body)"""
    subject = f"Daily Briefing: {len(content.meetings)} Meetings, {len(content.reminders)} Reminders"
    lines = [f"Good evening, {user.name or 'Friend'}", ""]

    if content.meetings:
        lines.append("Today's Agenda")
        for m in content.meetings:
            when = f"{m.start_time:%H:%M} - {m.end_time:%H:%M}"
            lines.append(f"  - {m.title} ({when})" + (f" {m.link}" if m.link else ""))
        lines.append("")

    if content.reminders:
        lines.append("Don't Forget")
        for r in content.reminders:
            title = r.title or (r.item.title if r.item else None) or "Untitled Reminder"
            lines.append(f"  - {title} (due {r.scheduled_at:%H:%M})" + (f" {r.item.url}" if r.item else ""))
        lines.append("")

    if content.new_items:
        lines.append("Recently Saved")
        for i in content.new_items:
            lines.append(f"  - {i.title or i.url}" + (f" ({i.site_name})" if i.site_name else ""))
        lines.append("")

    lines.append(f"Open Dashboard: {app_url}/inbox")
    lines.append(f"Manage Preferences: {app_url}/settings")
    return subject, "\n".join(lines)


async def send_daily_digests(
    session_factory: Callable[[], Session],
    dispatcher: ChannelDispatcher,
    now: datetime,
    tz: tzinfo = timezone.utc,
) -> DigestReport:
    report = DigestReport()

    if not dispatcher.email_available:
        report.email_skipped_reason = "email channel not configured (missing SMTP settings)"
        logger.warning(f"Skipping daily digest: {report.email_skipped_reason}")
        return report

    db = session_factory()
    try:
        user_ids = [
            row.id for row in db.query(User.id).filter(User.email_notifications.is_(True)).order_by(User.id).all()
        ]
    finally:
        db.close()

    logger.info(f"Processing digest for {len(user_ids)} users")

    for user_id in user_ids:
        db = session_factory()
        try:
            user = db.get(User, user_id)
            if user is None or not user.email_notifications:
                continue

            if user.last_digest_sent_at and same_calendar_day(user.last_digest_sent_at, now, tz):
                logger.info(f"Digest already sent to user {user_id} today, skipping")
                report.skipped_already_sent.append(user_id)
                continue

            content = gather_digest_content(db, user_id, now)
            if content.empty:
                logger.info(f"Skipping digest for user {user_id} - no content")
                report.skipped_no_content.append(user_id)
                continue

            subject, body = compose_digest(user, content, dispatcher.config.app_url)
            result = await dispatcher.send_email(
                user_id=user_id,
                recipient=user.email,
                subject=subject,
                body=body,
                metadata={
                    "kind": "daily_digest",
                    "meetings": len(content.meetings),
                    "reminders": len(content.reminders),
                    "new_items": len(content.new_items),
                },
            )
            report.deliveries.append(result)
            if not result.success:
                report.failed.append(user_id)
                continue

            # Only after the send returned; a crash before this commit means a resend next run
            user.last_digest_sent_at = now
            db.commit()
            report.sent.append(user_id)
        except Exception as e:
            db.rollback()
            logger.error(f"Error processing digest for user {user_id}: {e}")
            report.failed.append(user_id)
        finally:
            db.close()

    return report
