# dayos/routers/reminder.py
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import timedelta

from dayos.database import get_db
from dayos.models import Reminder, User, Item, Task
from dayos.schemas import ReminderCreate, ReminderOut
from dayos.utils.auth import get_current_user
from dayos.utils.clock import utcnow

router = APIRouter(prefix="/reminders", tags=["reminders"])

@router.get("/", response_model=List[ReminderOut])
def get_reminders(
    item_id: Optional[int] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """List the current user's reminders, soonest first"""
    query = db.query(Reminder).filter(Reminder.user_id == current_user.id)
    if item_id is not None:
        query = query.filter(Reminder.item_id == item_id)
    return query.order_by(Reminder.scheduled_at.asc()).offset(skip).limit(limit).all()

@router.post("/", response_model=ReminderOut, status_code=status.HTTP_201_CREATED)
def create_reminder(
    reminder: ReminderCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Schedule a reminder for a saved item, a task, or a free-standing title"""
    if reminder.item_id is not None:
        item = db.query(Item).filter(Item.id == reminder.item_id, Item.user_id == current_user.id).first()
        if not item:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Item not found")
    if reminder.task_id is not None:
        task = db.query(Task).filter(Task.id == reminder.task_id, Task.user_id == current_user.id).first()
        if not task:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Task not found")

    db_reminder = Reminder(
        user_id=current_user.id,
        item_id=reminder.item_id,
        task_id=reminder.task_id,
        title=reminder.title,
        scheduled_at=reminder.scheduled_at,
        recurrence=reminder.recurrence,
    )
    db.add(db_reminder)
    db.commit()
    db.refresh(db_reminder)
    return db_reminder

@router.post("/{reminder_id}/snooze", response_model=ReminderOut)
def snooze_reminder(
    reminder_id: int,
    minutes: int = Query(60, ge=1, le=60 * 24 * 30),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    reminder = db.query(Reminder).filter(
        Reminder.id == reminder_id,
        Reminder.user_id == current_user.id
    ).first()
    if not reminder:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Reminder not found")

    reminder.scheduled_at = utcnow() + timedelta(minutes=minutes)
    db.commit()
    db.refresh(reminder)
    return reminder

@router.delete("/{reminder_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_reminder(
    reminder_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    reminder = db.query(Reminder).filter(
        Reminder.id == reminder_id,
        Reminder.user_id == current_user.id
    ).first()
    if not reminder:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Reminder not found")

    db.delete(reminder)
    db.commit()
