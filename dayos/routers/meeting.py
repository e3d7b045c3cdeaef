# dayos/routers/meeting.py
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List

from dayos.database import get_db
from dayos.models import Meeting, User
from dayos.schemas import MeetingCreate, MeetingOut
from dayos.services.reminder_engine import ReminderEngine, get_engine
from dayos.utils.auth import get_current_user

router = APIRouter(prefix="/meetings", tags=["meetings"])

@router.get("/", response_model=List[MeetingOut])
def get_meetings(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return db.query(Meeting).filter(Meeting.user_id == current_user.id).order_by(Meeting.start_time.asc()).all()

@router.post("/", response_model=MeetingOut, status_code=status.HTTP_201_CREATED)
def create_meeting(
    meeting: MeetingCreate,
    db: Session = Depends(get_db),
    engine: ReminderEngine = Depends(get_engine),
    current_user: User = Depends(get_current_user)
):
    """Create a meeting together with its lead-time reminders"""
    try:
        return engine.create_meeting(
            db,
            user_id=current_user.id,
            title=meeting.title,
            start_time=meeting.start_time,
            end_time=meeting.end_time,
            description=meeting.description,
            link=meeting.link,
            custom_minutes=meeting.custom_reminder_minutes,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

@router.delete("/{meeting_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_meeting(
    meeting_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Delete a meeting; its reminders go with it"""
    meeting = db.query(Meeting).filter(
        Meeting.id == meeting_id,
        Meeting.user_id == current_user.id
    ).first()
    if not meeting:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Meeting not found")

    db.delete(meeting)
    db.commit()
