import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..database import get_db
from ..models import Notification, User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])

LATEST_LIMIT = 50


class NotificationResponse(BaseModel):
    id: int
    title: str
    message: str
    type: str
    read: bool
    orderId: Optional[int] = None
    createdAt: Optional[datetime] = None

    @classmethod
    def from_notification(cls, notification: Notification) -> "NotificationResponse":
        return cls(
            id=notification.id,
            title=notification.title,
            message=notification.message,
            type=notification.type,
            read=bool(notification.read),
            orderId=notification.order_id,
            createdAt=notification.created_at,
        )


class MarkAllReadResponse(BaseModel):
    success: bool
    updatedCount: int
    message: str


class MarkReadResponse(BaseModel):
    success: bool
    message: str
    notification: NotificationResponse


class UnreadCountResponse(BaseModel):
    unreadCount: int


@router.get("", response_model=list[NotificationResponse])
async def get_notifications(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Latest notifications for the signed-in user, newest first"""
    notifications = (
        db.query(Notification)
        .filter(Notification.user_id == current_user.id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(LATEST_LIMIT)
        .all()
    )
    return [NotificationResponse.from_notification(n) for n in notifications]


@router.post("", response_model=MarkAllReadResponse)
async def mark_all_as_read(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    updated = (
        db.query(Notification)
        .filter(Notification.user_id == current_user.id, Notification.read.is_(False))
        .update({Notification.read: True}, synchronize_session=False)
    )
    db.commit()

    logger.info(f"📭 Marked {updated} notifications as read for user {current_user.id}")
    return MarkAllReadResponse(
        success=True, updatedCount=updated, message=f"Marked {updated} notifications as read"
    )


@router.get("/unread-count", response_model=UnreadCountResponse)
async def get_unread_count(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    count = (
        db.query(func.count(Notification.id))
        .filter(Notification.user_id == current_user.id, Notification.read.is_(False))
        .scalar()
    )
    return UnreadCountResponse(unreadCount=count or 0)


@router.put("/{notification_id}/read", response_model=MarkReadResponse)
async def mark_notification_as_read(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    notification = db.query(Notification).filter(Notification.id == notification_id).first()
    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found")
    if notification.user_id != current_user.id:
        logger.warning(f"⚠️ User {current_user.id} tried to read notification {notification_id}")
        raise HTTPException(status_code=403, detail="Not authorized to update this notification")

    if notification.read:
        return MarkReadResponse(
            success=True,
            message="Notification already marked as read",
            notification=NotificationResponse.from_notification(notification),
        )

    notification.read = True
    db.commit()
    db.refresh(notification)
    return MarkReadResponse(
        success=True,
        message="Notification marked as read",
        notification=NotificationResponse.from_notification(notification),
    )
