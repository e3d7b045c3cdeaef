# dayos/routers/item.py
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session
from datetime import datetime
from typing import Optional

from dayos.database import get_db
from dayos.models import Item, User
from dayos.utils.auth import get_current_user
from dayos.utils.clock import to_naive_utc

router = APIRouter(prefix="/items", tags=["items"])

class ItemReminderIn(BaseModel):
    reminder_at: Optional[datetime] = None

    @field_validator('reminder_at')
    @classmethod
    def normalize(cls, v):
        return to_naive_utc(v) if v is not None else v

@router.put("/{item_id}/reminder")
def set_item_reminder(
    item_id: int,
    body: ItemReminderIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Set or clear the one-shot reminder stored on a saved item"""
    item = db.query(Item).filter(Item.id == item_id, Item.user_id == current_user.id).first()
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Item not found")

    item.reminder_at = body.reminder_at
    db.commit()
    return {"id": item.id, "reminder_at": item.reminder_at.isoformat() if item.reminder_at else None}
