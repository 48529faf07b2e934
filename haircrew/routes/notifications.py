import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from ..auth import require_admin
from ..database import get_db
from ..models import Notification, User
from ..services.notification_service import notify_admins

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin Notifications"])


class AdminNotifyRequest(BaseModel):
    type: str
    message: str
    data: Optional[dict[str, Any]] = None

    @field_validator("type", "message")
    @classmethod
    def validate_required(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Type and message are required")
        return v


def serialize_notification(notification: Notification) -> dict:
    return {
        "id": notification.id,
        "type": notification.type,
        "message": notification.message,
        "data": notification.data,
        "read": notification.read,
        "createdAt": notification.created_at.isoformat() if notification.created_at else None,
    }


@router.post("/notify")
async def admin_notify(
    data: AdminNotifyRequest, admin: User = Depends(require_admin), db: Session = Depends(get_db)
):
    """Store a notification and push it to the admin dashboard channel"""
    notification = notify_admins(db, data.type, data.message, data.data)
    return {"success": True, "id": notification.id}


@router.get("/notifications")
async def list_notifications(
    unreadOnly: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    query = db.query(Notification)
    if unreadOnly:
        query = query.filter(Notification.read.is_(False))
    notifications = query.order_by(Notification.read.asc(), Notification.created_at.desc()).limit(limit).all()
    unread = db.query(Notification).filter(Notification.read.is_(False)).count()
    return {"notifications": [serialize_notification(n) for n in notifications], "unreadCount": unread}


@router.post("/notifications/{notification_id}/read")
async def mark_notification_read(
    notification_id: str, admin: User = Depends(require_admin), db: Session = Depends(get_db)
):
    notification = db.query(Notification).filter(Notification.id == notification_id).first()
    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found")
    notification.read = True
    db.commit()
    return {"success": True}
