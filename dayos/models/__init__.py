from .user import User
from .item import Item, ItemStatus
from .task import Task
from .meeting import Meeting
from .reminder import Reminder, Recurrence
from .push_subscription import PushSubscription
from .notification import DeliveryLog, DeliveryChannel, DeliveryStatus
