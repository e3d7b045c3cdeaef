# dayos/routers/notification.py
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from dayos.database import get_db
from dayos.models import PushSubscription, User
from dayos.schemas import (
    NotificationActionIn,
    PushSubscriptionIn,
    PushSubscriptionRemove,
    NotificationPreferencesUpdate,
    NotificationPreferencesOut,
)
from dayos.services.reminder_engine import ReminderEngine, get_engine
from dayos.utils.auth import get_current_user

router = APIRouter(tags=["notifications"])

@router.post("/notifications/action")
def notification_action(
    body: NotificationActionIn,
    db: Session = Depends(get_db),
    engine: ReminderEngine = Depends(get_engine),
    current_user: User = Depends(get_current_user)
):
    """Apply a mark-done / snooze / delete pressed on a push notification"""
    try:
        found = engine.handle_action(
            db,
            action=body.action,
            entity_type=body.entity_type,
            entity_id=body.entity_id,
            user_id=current_user.id,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if not found:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{body.entity_type.capitalize()} not found"
        )
    return {"success": True}

@router.post("/push/subscriptions", status_code=status.HTTP_201_CREATED)
def subscribe(
    body: PushSubscriptionIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Register (or re-register) this browser's push subscription"""
    subscription = db.query(PushSubscription).filter(PushSubscription.endpoint == body.endpoint).first()
    if subscription is None:
        subscription = PushSubscription(endpoint=body.endpoint)
        db.add(subscription)
    subscription.user_id = current_user.id
    subscription.p256dh = body.keys.p256dh
    subscription.auth = body.keys.auth
    db.commit()
    db.refresh(subscription)
    return {"id": subscription.id, "endpoint": subscription.endpoint}

@router.delete("/push/subscriptions")
def unsubscribe(
    body: PushSubscriptionRemove,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    deleted = db.query(PushSubscription).filter(
        PushSubscription.endpoint == body.endpoint,
        PushSubscription.user_id == current_user.id
    ).delete(synchronize_session=False)
    db.commit()
    return {"deleted": deleted}

@router.patch("/users/me/notifications", response_model=NotificationPreferencesOut)
def update_preferences(
    body: NotificationPreferencesUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Toggle the email and push channels"""
    if body.email_notifications is not None:
        current_user.email_notifications = body.email_notifications
    if body.push_notifications is not None:
        current_user.push_notifications = body.push_notifications
    db.commit()
    db.refresh(current_user)
    return current_user
