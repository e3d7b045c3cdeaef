# dayos/models/item.py
from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, ForeignKey, Enum, Index
from sqlalchemy.orm import relationship
from dayos.database import Base
from dayos.utils.clock import utcnow
import enum

class ItemStatus(str, enum.Enum):
    INBOX = "inbox"
    ARCHIVED = "archived"
    TRASH = "trash"

class Item(Base):
    """A saved link. ``reminder_at`` is its embedded one-shot reminder."""
    __tablename__ = "items"
    __table_args__ = (
        Index("ix_items_user_status_created", "user_id", "status", "created_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    url = Column(Text, nullable=False)
    title = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    site_name = Column(String, nullable=True)
    status = Column(
        Enum(ItemStatus, values_callable=lambda e: [m.value for m in e], name="item_status"),
        nullable=False,
        default=ItemStatus.INBOX,
    )
    read = Column(Boolean, default=False, nullable=False)
    reminder_at = Column(DateTime, nullable=True, index=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    user = relationship("User", back_populates="items")
    reminders = relationship("Reminder", back_populates="item", cascade="all, delete-orphan")
