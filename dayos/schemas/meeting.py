# dayos/schemas/meeting.py
from pydantic import BaseModel, Field, field_validator, model_validator
from datetime import datetime
from typing import Optional, List

from dayos.schemas.reminder import ReminderOut
from dayos.utils.clock import to_naive_utc

class MeetingCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    link: Optional[str] = None
    start_time: datetime
    end_time: datetime
    custom_reminder_minutes: List[int] = Field(default_factory=list)

    @field_validator('start_time', 'end_time')
    @classmethod
    def normalize_times(cls, v):
        return to_naive_utc(v)

    @field_validator('custom_reminder_minutes')
    @classmethod
    def positive_minutes(cls, v):
        if any(m <= 0 for m in v):
            raise ValueError('Custom reminder lead times must be positive minutes')
        return v

    @model_validator(mode='after')
    def end_after_start(self):
        if self.end_time < self.start_time:
            raise ValueError('End time cannot be before start time')
        return self

class MeetingOut(BaseModel):
    id: int
    user_id: int
    title: str
    description: Optional[str] = None
    link: Optional[str] = None
    start_time: datetime
    end_time: datetime
    reminders: List[ReminderOut] = []

    class Config:
        from_attributes = True
