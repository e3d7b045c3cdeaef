# dayos/models/notification.py
from sqlalchemy import Column, Integer, String, Text, DateTime, Enum
from dayos.database import Base
from dayos.utils.clock import utcnow
import enum

class DeliveryChannel(str, enum.Enum):
    PUSH = "push"
    EMAIL = "email"

class DeliveryStatus(str, enum.Enum):
    SUCCESS = "success"
    FAILURE = "failure"

class DeliveryLog(Base):
    """One row per dispatch attempt, success or failure"""
    __tablename__ = "delivery_logs"

    id = Column(Integer, primary_key=True, index=True)
    # No foreign key: log rows outlive the users and subscriptions they mention
    user_id = Column(Integer, nullable=False, index=True)
    channel = Column(Enum(DeliveryChannel, values_callable=lambda e: [m.value for m in e], name="delivery_channel"), nullable=False)
    status = Column(Enum(DeliveryStatus, values_callable=lambda e: [m.value for m in e], name="delivery_status"), nullable=False)
    recipient = Column(Text, nullable=True)  # email address or push endpoint
    error = Column(Text, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    # Additional data (JSON)
    extra_data = Column(Text, nullable=True)

    def __repr__(self):
        return f"<DeliveryLog(id={self.id}, user_id={self.user_id}, channel='{self.channel}', status='{self.status}')>"
