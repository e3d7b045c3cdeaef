# dayos/schemas/reminder.py
from pydantic import BaseModel, field_validator, model_validator
from datetime import datetime
from typing import Optional

from dayos.models.reminder import Recurrence
from dayos.utils.clock import to_naive_utc

class ReminderCreate(BaseModel):
    scheduled_at: datetime
    recurrence: Recurrence = Recurrence.NONE
    title: Optional[str] = None
    item_id: Optional[int] = None
    task_id: Optional[int] = None

    @field_validator('scheduled_at')
    @classmethod
    def normalize_scheduled_at(cls, v):
        return to_naive_utc(v)

    @model_validator(mode='after')
    def check_target(self):
        if self.item_id is not None and self.task_id is not None:
            raise ValueError('A reminder can reference an item or a task, not both')
        if self.item_id is None and self.task_id is None and not (self.title and self.title.strip()):
            raise ValueError('Must provide either an item, a task or a title for the reminder')
        return self

class ReminderOut(BaseModel):
    id: int
    user_id: int
    item_id: Optional[int] = None
    task_id: Optional[int] = None
    meeting_id: Optional[int] = None
    title: Optional[str] = None
    scheduled_at: datetime
    recurrence: Recurrence
    created_at: datetime

    class Config:
        from_attributes = True
