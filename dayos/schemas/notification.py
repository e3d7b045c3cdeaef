# dayos/schemas/notification.py
from pydantic import BaseModel, Field, AliasChoices, ConfigDict
from typing import Optional

class NotificationActionIn(BaseModel):
    """Body posted by the service worker when a notification button is pressed"""
    model_config = ConfigDict(populate_by_name=True)

    action: str = Field(..., min_length=1)
    entity_type: str = Field(..., validation_alias=AliasChoices('entityType', 'type', 'entity_type'))
    entity_id: int = Field(..., validation_alias=AliasChoices('entityId', 'itemId', 'reminderId', 'entity_id'))

class PushSubscriptionKeys(BaseModel):
    p256dh: str
    auth: str

class PushSubscriptionIn(BaseModel):
    endpoint: str = Field(..., min_length=1)
    keys: PushSubscriptionKeys

class PushSubscriptionRemove(BaseModel):
    endpoint: str = Field(..., min_length=1)

class NotificationPreferencesUpdate(BaseModel):
    email_notifications: Optional[bool] = None
    push_notifications: Optional[bool] = None

class NotificationPreferencesOut(BaseModel):
    email_notifications: bool
    push_notifications: bool

    class Config:
        from_attributes = True
