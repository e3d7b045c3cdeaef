# dayos/services/dispatcher.py
"""
Channel dispatcher: fans a user's aggregate out to their push subscriptions and
sends digest email. Delivery is best-effort with a single attempt per
subscription per run. There is no retry queue and no backoff.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from dayos.config.settings import ChannelConfig
from dayos.models import PushSubscription, DeliveryChannel, DeliveryStatus
from dayos.services.aggregator import UserAggregate
from dayos.services.channels import DeliveryError, WebPushSender, SmtpEmailSender
from dayos.services.due_resolver import DueOrigin
from dayos.utils.notifications import DeliveryResult, log_delivery

logger = logging.getLogger(__name__)

PUSH_ACTIONS = [
    {"action": "mark-done", "label": "Done"},
    {"action": "snooze", "label": "Snooze 1h"},
    {"action": "delete", "label": "Delete"},
]

def build_push_payload(aggregate: UserAggregate) -> Dict[str, Any]:
    """One payload summarizing everything due for the user"""
    primary = aggregate.primary
    id_key = "itemId" if primary.origin == DueOrigin.ITEM else "reminderId"
    return {
        "title": f"DayOS: {aggregate.count} Reminder(s)",
        "body": ", ".join(n.title for n in aggregate.notifications),
        "url": primary.url or ("/inbox" if primary.origin == DueOrigin.ITEM else "/settings"),
        id_key: primary.entity_id,
        "type": primary.origin.value,
        "userId": aggregate.user_id,
        "actions": PUSH_ACTIONS,
    }

@dataclass
class DispatchReport:
    results: List[DeliveryResult] = field(default_factory=list)
    users_considered: int = 0
    push_skipped_reason: Optional[str] = None

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.status == DeliveryStatus.SUCCESS)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if r.status == DeliveryStatus.FAILURE)

    def for_user(self, user_id: int) -> List[DeliveryResult]:
        return [r for r in self.results if r.user_id == user_id]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "users_considered": self.users_considered,
            "attempts": len(self.results),
            "succeeded": self.succeeded,
            "failed": self.failed,
            "push_skipped_reason": self.push_skipped_reason,
        }


class ChannelDispatcher:
    """Configured once per process and reused across runs"""

    def __init__(self, config: ChannelConfig, push_sender=None, email_sender=None):
        self.config = config
        if push_sender is None and config.push_configured:
            push_sender = WebPushSender(config)
        if email_sender is None and config.email_configured:
            email_sender = SmtpEmailSender(config)
        self.push_sender = push_sender
        self.email_sender = email_sender

    @property
    def push_available(self) -> bool:
        return self.push_sender is not None

    @property
    def email_available(self) -> bool:
        return self.email_sender is not None

    async def dispatch(self, db: Session, aggregates: List[UserAggregate]) -> DispatchReport:
        """Deliver every aggregate over push; users are handled concurrently"""
        report = DispatchReport(users_considered=len(aggregates))
        if not aggregates:
            return report

        if not self.push_available:
            report.push_skipped_reason = "push channel not configured (missing VAPID keys)"
            logger.warning(f"Skipping push for this run: {report.push_skipped_reason}")
            return report

        # Subscriptions are read up front so the concurrent part never touches the session
        work = []
        for aggregate in aggregates:
            if not aggregate.push_enabled:
                logger.info(f"User {aggregate.user_id} has push notifications disabled")
                continue
            try:
                subscriptions = self._load_subscriptions(db, aggregate.user_id)
            except Exception as e:
                db.rollback()
                logger.error(f"Failed to load push subscriptions for user {aggregate.user_id}: {e}")
                continue
            logger.info(f"Checking push for user {aggregate.user_id}: found {len(subscriptions)} subscriptions")
            if subscriptions:
                work.append((aggregate, [(s.id, s.endpoint, s.subscription_info()) for s in subscriptions]))

        semaphore = asyncio.Semaphore(max(1, self.config.dispatch_concurrency))

        async def run_user(aggregate, subscriptions):
            async with semaphore:
                return await self.push_to_user(aggregate, subscriptions)

        outcomes = await asyncio.gather(
            *(run_user(aggregate, subs) for aggregate, subs in work),
            return_exceptions=True,
        )
        for (aggregate, _), outcome in zip(work, outcomes):
            if isinstance(outcome, BaseException):
                logger.error(f"Push dispatch for user {aggregate.user_id} failed: {outcome}")
                continue
            report.results.extend(outcome)

        logger.info(f"Dispatch finished: {report.succeeded} succeeded, {report.failed} failed")
        return report

    def _load_subscriptions(self, db: Session, user_id: int) -> List[PushSubscription]:
        return db.query(PushSubscription).filter(
            PushSubscription.user_id == user_id
        ).order_by(PushSubscription.id.asc()).all()

    async def push_to_user(self, aggregate: UserAggregate, subscriptions) -> List[DeliveryResult]:
        """One attempt per subscription, all subscriptions in parallel"""
        payload = build_push_payload(aggregate)
        return list(await asyncio.gather(
            *(self._push_one(aggregate, sub_id, endpoint, info, payload) for sub_id, endpoint, info in subscriptions)
        ))

    async def _push_one(self, aggregate: UserAggregate, subscription_id: int, endpoint: str, info, payload) -> DeliveryResult:
        metadata = {
            "subscription_id": subscription_id,
            "notification_count": aggregate.count,
            "type": payload["type"],
            "attempt": 1,
        }
        try:
            status_code = await asyncio.to_thread(self.push_sender.send, info, payload)
            if status_code is not None:
                metadata["status_code"] = status_code
            result = DeliveryResult(
                user_id=aggregate.user_id,
                channel=DeliveryChannel.PUSH,
                status=DeliveryStatus.SUCCESS,
                recipient=endpoint,
                metadata=metadata,
            )
        except DeliveryError as e:
            if e.status_code is not None:
                metadata["status_code"] = e.status_code
            result = DeliveryResult(
                user_id=aggregate.user_id,
                channel=DeliveryChannel.PUSH,
                status=DeliveryStatus.FAILURE,
                recipient=endpoint,
                error=str(e),
                metadata=metadata,
            )
        except Exception as e:
            result = DeliveryResult(
                user_id=aggregate.user_id,
                channel=DeliveryChannel.PUSH,
                status=DeliveryStatus.FAILURE,
                recipient=endpoint,
                error=f"{type(e).__name__}: {e}",
                metadata=metadata,
            )
        return log_delivery(result)

    async def send_email(self, user_id: int, recipient: str, subject: str, body: str,
                         metadata: Optional[Dict[str, Any]] = None) -> DeliveryResult:
        if not self.email_available:
            raise RuntimeError("Email channel is not configured")

        metadata = dict(metadata or {}, subject=subject, attempt=1)
        try:
            await asyncio.to_thread(self.email_sender.send, recipient, subject, body)
            result = DeliveryResult(
                user_id=user_id,
                channel=DeliveryChannel.EMAIL,
                status=DeliveryStatus.SUCCESS,
                recipient=recipient,
                metadata=metadata,
            )
        except Exception as e:
            result = DeliveryResult(
                user_id=user_id,
                channel=DeliveryChannel.EMAIL,
                status=DeliveryStatus.FAILURE,
                recipient=recipient,
                error=str(e),
                metadata=metadata,
            )
        return log_delivery(result)
