from .reminder import ReminderCreate, ReminderOut
from .meeting import MeetingCreate, MeetingOut
from .notification import (
    NotificationActionIn,
    PushSubscriptionIn,
    PushSubscriptionKeys,
    PushSubscriptionRemove,
    NotificationPreferencesUpdate,
    NotificationPreferencesOut,
)
