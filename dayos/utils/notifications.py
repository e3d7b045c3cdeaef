# dayos/utils/notifications.py
"""
Structured logging and persistence of delivery attempts
"""

from sqlalchemy.orm import Session
from dayos.models import DeliveryLog, DeliveryChannel, DeliveryStatus
from dayos.utils.clock import utcnow
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, Iterable, List
from datetime import datetime
import json
import logging

logger = logging.getLogger("dayos.notifications")

@dataclass
class DeliveryResult:
    user_id: int
    channel: DeliveryChannel
    status: DeliveryStatus
    recipient: Optional[str] = None
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=utcnow)

    @property
    def success(self) -> bool:
        return self.status == DeliveryStatus.SUCCESS

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "user_id": self.user_id,
            "channel": self.channel.value,
            "status": self.status.value,
            "recipient": self.recipient,
            "error": self.error,
            "metadata": self.metadata,
        }

def log_delivery(result: DeliveryResult) -> DeliveryResult:
    """
    Emit one log record for a delivery attempt

    Failures are logged at ERROR, everything else at INFO. The full record is
    attached under ``extra["notification"]`` for structured handlers.
    """
    message = f"[NOTIFICATION] {result.channel.value.upper()} {result.status.value.upper()} - User: {result.user_id}"
    if result.recipient:
        message += f" - Recipient: {result.recipient}"
    if result.error:
        message += f" - Error: {result.error}"

    level = logging.ERROR if result.status == DeliveryStatus.FAILURE else logging.INFO
    logger.log(level, message, extra={"notification": result.to_dict()})
    return result

def record_deliveries(db: Session, results: Iterable[DeliveryResult]) -> List[DeliveryLog]:
    """
    Persist delivery attempts to the delivery_logs table

    Args:
        db: Database session
        results: Delivery attempts from a dispatch pass

    Returns:
        Created log rows
    """
    rows = [
        DeliveryLog(
            user_id=result.user_id,
            channel=result.channel,
            status=result.status,
            recipient=result.recipient,
            error=result.error,
            created_at=result.timestamp,
            extra_data=json.dumps(result.metadata) if result.metadata else None,
        )
        for result in results
    ]
    if not rows:
        return rows

    db.add_all(rows)
    db.commit()
    return rows

def prune_delivery_logs(db: Session, older_than: datetime) -> int:
    """Delete delivery log rows created before ``older_than``"""
    count = db.query(DeliveryLog).filter(DeliveryLog.created_at < older_than).delete(synchronize_session=False)
    db.commit()
    return count
