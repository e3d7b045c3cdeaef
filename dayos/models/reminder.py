# dayos/models/reminder.py
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum, CheckConstraint, Index
from sqlalchemy.orm import relationship
from dayos.database import Base
from dayos.utils.clock import utcnow
import enum

class Recurrence(str, enum.Enum):
    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

class Reminder(Base):
    __tablename__ = "reminders"
    __table_args__ = (
        # At most one parent back-reference
        CheckConstraint(
            "(CASE WHEN item_id IS NULL THEN 0 ELSE 1 END)"
            " + (CASE WHEN task_id IS NULL THEN 0 ELSE 1 END)"
            " + (CASE WHEN meeting_id IS NULL THEN 0 ELSE 1 END) <= 1",
            name="ck_reminders_single_parent",
        ),
        Index("ix_reminders_user_scheduled", "user_id", "scheduled_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    item_id = Column(Integer, ForeignKey("items.id", ondelete="CASCADE"), nullable=True)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=True)
    meeting_id = Column(Integer, ForeignKey("meetings.id", ondelete="CASCADE"), nullable=True)

    title = Column(String, nullable=True)
    scheduled_at = Column(DateTime, nullable=False, index=True)
    recurrence = Column(
        Enum(Recurrence, values_callable=lambda e: [m.value for m in e], name="recurrence"),
        nullable=False,
        default=Recurrence.NONE,
    )
    created_at = Column(DateTime, default=utcnow, nullable=False)

    user = relationship("User", back_populates="reminders")
    item = relationship("Item", back_populates="reminders")
    task = relationship("Task", back_populates="reminders")
    meeting = relationship("Meeting", back_populates="reminders")

    @property
    def parent_kind(self):
        if self.item_id is not None:
            return "item"
        if self.task_id is not None:
            return "task"
        if self.meeting_id is not None:
            return "meeting"
        return None

    def __repr__(self):
        return f"<Reminder(id={self.id}, user_id={self.user_id}, scheduled_at='{self.scheduled_at}', recurrence='{self.recurrence}')>"
