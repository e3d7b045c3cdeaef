"""Unit tests for due resolution and per-user aggregation."""

import logging
from datetime import timedelta

from conftest import NOW
from dayos.models import Item, Reminder, Recurrence
from dayos.services.aggregator import aggregate_by_user
from dayos.services.due_resolver import DueOrigin, resolve_due


def test_resolves_items_and_reminders_due_at_or_before_now(db, factory):
    user = factory.user()
    due_item = factory.item(user, reminder_at=NOW - timedelta(minutes=5))
    factory.item(user, reminder_at=NOW + timedelta(minutes=5))
    factory.item(user)
    due_reminder = factory.reminder(user, NOW)
    factory.reminder(user, NOW + timedelta(seconds=1))

    due = resolve_due(db, NOW)

    assert [(n.origin, n.entity_id) for n in due] == [
        (DueOrigin.ITEM, due_item.id),
        (DueOrigin.REMINDER, due_reminder.id),
    ]


def test_order_is_stable_by_time_then_origin_then_id(db, factory):
    user = factory.user()
    at = NOW - timedelta(minutes=1)
    r2 = factory.reminder(user, at)
    r1 = factory.reminder(user, NOW - timedelta(minutes=30))
    item = factory.item(user, reminder_at=at)

    first = resolve_due(db, NOW)
    second = resolve_due(db, NOW)

    assert [n.sort_key for n in first] == [n.sort_key for n in second]
    assert [(n.origin, n.entity_id) for n in first] == [
        (DueOrigin.REMINDER, r1.id),
        (DueOrigin.ITEM, item.id),
        (DueOrigin.REMINDER, r2.id),
    ]


def test_resolution_does_not_modify_anything(db, factory):
    user = factory.user()
    item = factory.item(user, reminder_at=NOW - timedelta(hours=1))
    reminder = factory.reminder(user, NOW - timedelta(hours=1), recurrence=Recurrence.DAILY)

    resolve_due(db, NOW)
    resolve_due(db, NOW)
    db.expire_all()

    assert db.get(Item, item.id).reminder_at == NOW - timedelta(hours=1)
    assert db.get(Reminder, reminder.id).scheduled_at == NOW - timedelta(hours=1)


def test_titles_and_urls_follow_parent(db, factory):
    user = factory.user()
    item = factory.item(user, title="Long read", url="https://example.com/long-read")
    task = factory.task(user, title="File taxes")
    meeting = factory.meeting(user, NOW + timedelta(minutes=10), title="1:1", link="https://meet.example.com/x")
    at = NOW - timedelta(minutes=1)
    from_item = factory.reminder(user, at, title=None, item_id=item.id)
    from_task = factory.reminder(user, at, title=None, task_id=task.id)
    from_meeting = factory.reminder(user, at, title="1:1 starts in 10 minutes", meeting_id=meeting.id)
    general = factory.reminder(user, at, title="Stretch")

    due = {n.entity_id: n for n in resolve_due(db, NOW)}

    assert (due[from_item.id].title, due[from_item.id].url) == ("Long read", "https://example.com/long-read")
    assert (due[from_task.id].title, due[from_task.id].url) == ("File taxes", "/tasks")
    assert due[from_meeting.id].url == "https://meet.example.com/x"
    assert (due[general.id].title, due[general.id].url) == ("Stretch", "/settings")


def test_reminder_with_missing_parent_is_skipped(db, factory, caplog):
    user = factory.user()
    # SQLite does not enforce the foreign key here, which stands in for a dangling row
    orphan = factory.reminder(user, NOW - timedelta(minutes=1), item_id=9999)
    healthy = factory.reminder(user, NOW - timedelta(minutes=1))

    with caplog.at_level(logging.WARNING, logger="dayos.services.due_resolver"):
        due = resolve_due(db, NOW)

    assert [n.entity_id for n in due] == [healthy.id]
    assert f"Reminder {orphan.id} references missing item" in caplog.text


def test_rows_of_missing_users_are_filtered_before_the_limit(db, factory, caplog):
    user = factory.user()
    stale = NOW - timedelta(hours=1)
    db.add(Reminder(user_id=777, scheduled_at=stale, recurrence=Recurrence.NONE, title="Ownerless"))
    db.add(Item(user_id=777, url="https://example.com/ownerless", title="Ownerless", reminder_at=stale, created_at=NOW))
    db.commit()
    reminder_id = factory.reminder(user, NOW - timedelta(minutes=1)).id
    item_id = factory.item(user, reminder_at=NOW - timedelta(minutes=1)).id

    with caplog.at_level(logging.WARNING, logger="dayos.services.due_resolver"):
        due = resolve_due(db, NOW, limit=1)

    assert [(n.origin, n.entity_id) for n in due] == [(DueOrigin.ITEM, item_id), (DueOrigin.REMINDER, reminder_id)]
    assert "belongs to missing user 777" in caplog.text
    assert "Skipping 1 due items of missing users" in caplog.text


def test_batch_limit_applies_per_source(db, factory):
    user = factory.user()
    for minutes in range(5):
        factory.reminder(user, NOW - timedelta(minutes=minutes + 1))
        factory.item(user, reminder_at=NOW - timedelta(minutes=minutes + 1))

    due = resolve_due(db, NOW, limit=2)

    assert sum(1 for n in due if n.origin == DueOrigin.ITEM) == 2
    assert sum(1 for n in due if n.origin == DueOrigin.REMINDER) == 2


def test_aggregates_one_entry_per_user_with_due_work(db, factory):
    alice = factory.user(name="Alice")
    bob = factory.user(name="Bob", push_notifications=False)
    factory.user(name="Carol")
    for minutes in range(5):
        factory.reminder(alice, NOW - timedelta(minutes=minutes))
    factory.item(bob, reminder_at=NOW - timedelta(minutes=1))

    aggregates = aggregate_by_user(db, resolve_due(db, NOW))

    assert [a.user_id for a in aggregates] == [alice.id, bob.id]
    assert aggregates[0].count == 5
    assert aggregates[0].primary.scheduled_at == NOW - timedelta(minutes=4)
    assert aggregates[1].push_enabled is False
    assert aggregates[1].count == 1


def test_aggregate_drops_notifications_of_missing_user(db, factory):
    user = factory.user()
    factory.reminder(user, NOW - timedelta(minutes=1))
    due = resolve_due(db, NOW)
    db.delete(user)
    db.commit()

    assert aggregate_by_user(db, due) == []


def test_nothing_due_aggregates_to_nothing(db):
    assert aggregate_by_user(db, resolve_due(db, NOW)) == []
