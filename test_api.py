"""HTTP surface tests against the FastAPI app with the database and engine swapped out."""

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from dayos.config.settings import Settings
from dayos.database import get_db
from dayos.models import Item, PushSubscription, Reminder, Recurrence
from dayos.services.reminder_engine import get_engine
from dayos.utils.auth import create_access_token
from dayos.utils.clock import utcnow
from main import app


@pytest.fixture
def client(session_factory, reminder_engine, monkeypatch):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    monkeypatch.setitem(Settings.APP, "cron_secret", None)
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_engine] = lambda: reminder_engine
    yield TestClient(app)
    app.dependency_overrides.clear()


def _auth(user):
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


def test_root_and_health(client):
    assert client.get("/").status_code == 200

    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "push_configured": True, "email_configured": True}


def test_scheduler_status_when_disabled(client):
    status = client.get("/scheduler/status").json()

    assert status["mode"] == "external-cron"
    assert status["jobs"] == []
    assert status["digest_hour"] == Settings.SCHEDULER["digest_hour"]


# ============================================================================
# Cron triggers
# ============================================================================


def test_cron_reminders_processes_due_work(client, factory, db, push_sender):
    user = factory.user()
    factory.subscription(user)
    item = factory.item(user, reminder_at=utcnow() - timedelta(minutes=1))

    response = client.post("/cron/reminders")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["due"] == 1
    assert body["cleared"] == 1
    assert body["dispatch"]["succeeded"] == 1
    assert len(push_sender.calls) == 1
    db.expire_all()
    assert db.get(Item, item.id).reminder_at is None


def test_cron_accepts_get(client):
    response = client.get("/cron/reminders")
    assert response.status_code == 200
    assert response.json()["due"] == 0


def test_cron_secret_enforced(client, monkeypatch):
    monkeypatch.setitem(Settings.APP, "cron_secret", "s3cret")

    assert client.get("/cron/reminders").status_code == 401
    assert client.get("/cron/reminders", headers={"Authorization": "Bearer wrong"}).status_code == 401
    assert client.get("/cron/reminders", headers={"Authorization": "Bearer s3cret"}).status_code == 200


def test_cron_daily_digest(client, factory, email_sender):
    user = factory.user()
    factory.reminder(user, utcnow() + timedelta(hours=1), title="Renew passport")

    first = client.post("/cron/daily-digest").json()
    second = client.post("/cron/daily-digest").json()

    assert first["sent"] == 1
    assert second["sent"] == 0
    assert second["skipped_already_sent"] == 1
    assert len(email_sender.sent) == 1
    assert email_sender.sent[0]["subject"] == "Daily Briefing: 0 Meetings, 1 Reminders"


def test_cron_cleanup(client):
    response = client.post("/cron/cleanup")
    assert response.json() == {"success": True, "deleted_delivery_logs": 0}


# ============================================================================
# Notification actions and subscriptions
# ============================================================================


def test_action_accepts_service_worker_field_names(client, factory, db):
    user = factory.user()
    reminder = factory.reminder(user, utcnow() - timedelta(minutes=1), recurrence=Recurrence.DAILY)

    response = client.post(
        "/notifications/action",
        json={"action": "snooze", "type": "reminder", "reminderId": reminder.id},
        headers=_auth(user),
    )

    assert response.status_code == 200
    db.expire_all()
    assert db.get(Reminder, reminder.id).scheduled_at > utcnow() + timedelta(minutes=55)


def test_action_mark_read_on_item(client, factory, db):
    user = factory.user()
    item = factory.item(user, reminder_at=utcnow())

    response = client.post(
        "/notifications/action",
        json={"action": "mark-read", "entityType": "item", "entityId": item.id},
        headers=_auth(user),
    )

    assert response.status_code == 200
    db.expire_all()
    assert db.get(Item, item.id).read is True


def test_action_errors(client, factory):
    user = factory.user()
    item = factory.item(user)

    unknown = client.post(
        "/notifications/action",
        json={"action": "archive", "entityType": "item", "entityId": item.id},
        headers=_auth(user),
    )
    missing = client.post(
        "/notifications/action",
        json={"action": "delete", "entityType": "reminder", "entityId": 999},
        headers=_auth(user),
    )
    anonymous = client.post(
        "/notifications/action",
        json={"action": "delete", "entityType": "item", "entityId": item.id},
    )

    assert unknown.status_code == 400
    assert missing.status_code == 404
    assert anonymous.status_code == 401


def test_push_subscription_upsert_and_remove(client, factory, db):
    user = factory.user()
    body = {"endpoint": "https://push.example.com/abc", "keys": {"p256dh": "k1", "auth": "a1"}}

    assert client.post("/push/subscriptions", json=body, headers=_auth(user)).status_code == 201
    body["keys"] = {"p256dh": "k2", "auth": "a2"}
    assert client.post("/push/subscriptions", json=body, headers=_auth(user)).status_code == 201

    subscriptions = db.query(PushSubscription).all()
    assert len(subscriptions) == 1
    assert subscriptions[0].p256dh == "k2"

    response = client.request(
        "DELETE", "/push/subscriptions", json={"endpoint": body["endpoint"]}, headers=_auth(user)
    )
    assert response.json() == {"deleted": 1}


def test_update_notification_preferences(client, factory):
    user = factory.user()

    response = client.patch("/users/me/notifications", json={"push_notifications": False}, headers=_auth(user))

    assert response.json() == {"email_notifications": True, "push_notifications": False}


# ============================================================================
# Reminders, meetings and item reminders
# ============================================================================


def test_create_and_list_reminders(client, factory):
    user = factory.user()
    item = factory.item(user)
    headers = _auth(user)

    created = client.post(
        "/reminders/",
        json={"scheduled_at": "2030-01-31T09:00:00+02:00", "recurrence": "monthly", "item_id": item.id},
        headers=headers,
    )
    general = client.post(
        "/reminders/",
        json={"scheduled_at": "2030-01-01T08:00:00Z", "title": "Stretch"},
        headers=headers,
    )

    assert created.status_code == 201
    assert created.json()["scheduled_at"] == "2030-01-31T07:00:00"
    assert created.json()["recurrence"] == "monthly"
    assert general.status_code == 201

    listed = client.get("/reminders/", headers=headers).json()
    assert [r["id"] for r in listed] == [general.json()["id"], created.json()["id"]]


def test_create_reminder_validation(client, factory):
    owner = factory.user()
    other = factory.user()
    item = factory.item(owner)

    untargeted = client.post("/reminders/", json={"scheduled_at": "2030-01-01T08:00:00Z"}, headers=_auth(owner))
    foreign = client.post(
        "/reminders/",
        json={"scheduled_at": "2030-01-01T08:00:00Z", "item_id": item.id},
        headers=_auth(other),
    )

    assert untargeted.status_code == 422
    assert foreign.status_code == 400


def test_snooze_and_delete_reminder(client, factory, db):
    user = factory.user()
    reminder_id = factory.reminder(user, utcnow()).id
    headers = _auth(user)

    snoozed = client.post(f"/reminders/{reminder_id}/snooze?minutes=15", headers=headers)
    assert snoozed.status_code == 200

    assert client.delete(f"/reminders/{reminder_id}", headers=headers).status_code == 204
    assert client.delete(f"/reminders/{reminder_id}", headers=headers).status_code == 404
    assert db.query(Reminder).count() == 0


def test_create_meeting_expands_reminders(client, factory, db):
    user = factory.user()
    start = utcnow() + timedelta(hours=2)
    headers = _auth(user)

    response = client.post(
        "/meetings/",
        json={
            "title": "Quarterly planning",
            "start_time": start.isoformat() + "Z",
            "end_time": (start + timedelta(hours=1)).isoformat() + "Z",
            "custom_reminder_minutes": [15],
        },
        headers=headers,
    )

    assert response.status_code == 201
    meeting = response.json()
    # 1h, 30m, 15m, 10m, 5m and 2m are still ahead; 1 day is not
    assert len(meeting["reminders"]) == 6

    assert client.delete(f"/meetings/{meeting['id']}", headers=headers).status_code == 204
    assert db.query(Reminder).count() == 0


def test_create_meeting_rejects_end_before_start(client, factory):
    user = factory.user()

    response = client.post(
        "/meetings/",
        json={"title": "Backwards", "start_time": "2030-01-01T10:00:00Z", "end_time": "2030-01-01T09:00:00Z"},
        headers=_auth(user),
    )

    assert response.status_code == 422


def test_set_and_clear_item_reminder(client, factory, db):
    user = factory.user()
    item = factory.item(user)
    headers = _auth(user)

    response = client.put(f"/items/{item.id}/reminder", json={"reminder_at": "2030-05-01T12:00:00Z"}, headers=headers)
    assert response.json() == {"id": item.id, "reminder_at": "2030-05-01T12:00:00"}

    response = client.put(f"/items/{item.id}/reminder", json={"reminder_at": None}, headers=headers)
    assert response.json()["reminder_at"] is None
    db.expire_all()
    assert db.get(Item, item.id).reminder_at is None
    assert db.query(Reminder).count() == 0
