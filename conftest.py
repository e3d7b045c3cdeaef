"""
Shared fixtures: a throwaway SQLite database, recording fake transports and
small factories for the rows the engine works on.
"""

from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from dayos.config.settings import ChannelConfig
from dayos.database import Base
from dayos.models import User, Item, Task, Meeting, Reminder, Recurrence, PushSubscription
from dayos.services.channels import DeliveryError
from dayos.services.dispatcher import ChannelDispatcher
from dayos.services.reminder_engine import ReminderEngine

NOW = datetime(2025, 3, 10, 9, 0)


class FakePushSender:
    """Records every send; endpoints listed in ``failing`` raise a 410"""

    def __init__(self):
        self.calls = []
        self.failing = set()
        self.crashing = set()

    def send(self, subscription_info, payload):
        endpoint = subscription_info["endpoint"]
        self.calls.append((endpoint, payload))
        if endpoint in self.crashing:
            raise ConnectionResetError("connection reset by peer")
        if endpoint in self.failing:
            raise DeliveryError("Push failed: 410 Gone", status_code=410)
        return 201

    def endpoints(self):
        return [endpoint for endpoint, _ in self.calls]


class FakeEmailSender:
    def __init__(self):
        self.sent = []
        self.fail = False

    def send(self, to_addr, subject, body):
        self.sent.append({"to": to_addr, "subject": subject, "body": body})
        if self.fail:
            raise DeliveryError("SMTP send failed: connection refused")


class Factory:
    def __init__(self, db):
        self.db = db
        self._seq = 0

    def _save(self, obj):
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def user(self, **kwargs):
        self._seq += 1
        kwargs.setdefault("email", f"user{self._seq}@example.com")
        kwargs.setdefault("name", f"User {self._seq}")
        return self._save(User(**kwargs))

    def item(self, user, **kwargs):
        self._seq += 1
        kwargs.setdefault("url", f"https://example.com/article-{self._seq}")
        kwargs.setdefault("title", f"Article {self._seq}")
        kwargs.setdefault("created_at", NOW)
        return self._save(Item(user_id=user.id, **kwargs))

    def task(self, user, **kwargs):
        kwargs.setdefault("title", "Write report")
        return self._save(Task(user_id=user.id, **kwargs))

    def meeting(self, user, start_time, **kwargs):
        kwargs.setdefault("title", "Standup")
        kwargs.setdefault("end_time", start_time)
        return self._save(Meeting(user_id=user.id, start_time=start_time, **kwargs))

    def reminder(self, user, scheduled_at, recurrence=Recurrence.NONE, **kwargs):
        kwargs.setdefault("title", "Water the plants")
        return self._save(Reminder(user_id=user.id, scheduled_at=scheduled_at, recurrence=recurrence, **kwargs))

    def subscription(self, user, endpoint=None):
        self._seq += 1
        return self._save(PushSubscription(
            user_id=user.id,
            endpoint=endpoint or f"https://push.example.com/sub/{self._seq}",
            p256dh="p256dh-key",
            auth="auth-secret",
        ))


@pytest.fixture
def session_factory(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'dayos-test.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def factory(db):
    return Factory(db)


@pytest.fixture
def push_sender():
    return FakePushSender()


@pytest.fixture
def email_sender():
    return FakeEmailSender()


@pytest.fixture
def channel_config():
    return ChannelConfig(
        app_url="https://dayos.test",
        vapid_public_key="test-public",
        vapid_private_key="test-private",
        smtp_host="smtp.test",
        email_from="digest@dayos.test",
        dispatch_concurrency=4,
    )


@pytest.fixture
def dispatcher(channel_config, push_sender, email_sender):
    return ChannelDispatcher(channel_config, push_sender=push_sender, email_sender=email_sender)


@pytest.fixture
def reminder_engine(dispatcher, session_factory):
    return ReminderEngine(dispatcher, session_factory=session_factory)
