"""
Unified Notification Service
Fans out storefront events to the push channel, email and the admin notification feed
"""

import logging
from typing import Any, Optional

from sqlalchemy.orm import Session

from ..models import Notification, Order, User
from .pusher_service import ADMIN_CHANNEL, ORDERS_CHANNEL, broadcast

logger = logging.getLogger(__name__)


async def send_notification(
    notification_type: str,
    channel: Optional[str],
    event: Optional[str],
    payload: Optional[dict],
    recipient_email: Optional[str] = None,
    email_func=None,
    email_kwargs: Optional[dict] = None,
) -> dict:
    """
    Unified notification sender that handles both push and email

    Args:
        notification_type: Type of notification (for logging)
        channel: Push channel, or None to skip the push
        event: Push event name
        payload: Push payload
        recipient_email: Email address, or None to skip the email
        email_func: Async email function to call
        email_kwargs: Kwargs for email function

    Returns:
        Dict with push_sent and email_sent status
    """
    result = {"push_sent": False, "email_sent": False, "email_error": None}

    if channel and event:
        result["push_sent"] = broadcast(channel, event, payload or {})

    if recipient_email and email_func:
        try:
            logger.info(f"📧 Sending {notification_type} email to {recipient_email}")
            await email_func(**(email_kwargs or {}))
            result["email_sent"] = True
            logger.info(f"✅ {notification_type} email sent successfully to {recipient_email}")
        except Exception as e:
            result["email_error"] = str(e)
            logger.error(f"❌ Failed to send {notification_type} email to {recipient_email}: {e}")
    elif email_func:
        logger.debug(f"⚠️ No email address for {notification_type} notification")

    return result


def notify_admins(db: Session, notification_type: str, message: str, data: Optional[dict[str, Any]] = None) -> Notification:
    """Persist an admin notification, then push it to the live dashboard"""
    notification = Notification(type=notification_type, message=message, data=data or {})
    db.add(notification)
    db.commit()
    db.refresh(notification)

    broadcast(
        ADMIN_CHANNEL,
        "admin-notification",
        {
            "id": notification.id,
            "type": notification.type,
            "message": notification.message,
            "data": notification.data,
            "createdAt": notification.created_at,
        },
    )
    logger.info(f"🔔 Admin notification {notification_type}: {message}")
    return notification


def _user_summary(user: Optional[User]) -> Optional[dict]:
    if user is None:
        return None
    return {"id": user.id, "name": user.name, "email": user.email}


def new_order_notification(order: Order, user: User) -> dict:
    """send_notification kwargs for a placed order, read while the session is still open"""
    from ..email_service import send_order_confirmation_email

    return {
        "notification_type": "order_confirmation",
        "channel": ORDERS_CHANNEL,
        "event": "new-order",
        "payload": {
            "orderId": order.id,
            "user": _user_summary(user),
            "total": order.total,
            "createdAt": order.created_at,
        },
        "recipient_email": user.email,
        "email_func": send_order_confirmation_email,
        "email_kwargs": {
            "to": user.email,
            "user_name": user.name or "",
            "order_id": order.id,
            "order_number": order.order_number,
        },
    }


def order_status_notification(order: Order, reported_status: str, event: str, email: Optional[str]) -> dict:
    """
    send_notification kwargs for a status change: the orders channel push and the matching customer email

    Args:
        order: The updated order (with user loaded)
        reported_status: Status as requested ("PAID" for payment confirmations)
        event: Push event name
        email: "confirmation", "shipping" or None
    """
    from ..email_service import send_order_confirmation_email, send_shipping_update_email

    user = order.user
    email_func = None
    email_kwargs: dict = {}
    if user is not None and email == "confirmation":
        email_func = send_order_confirmation_email
        email_kwargs = {
            "to": user.email,
            "user_name": user.name or "",
            "order_id": order.id,
            "order_number": order.order_number,
        }
    elif user is not None and email == "shipping":
        email_func = send_shipping_update_email
        email_kwargs = {
            "to": user.email,
            "user_name": user.name or "",
            "order_id": order.id,
            "status": reported_status,
        }

    return {
        "notification_type": event,
        "channel": ORDERS_CHANNEL,
        "event": event,
        "payload": {"orderId": order.id, "status": reported_status, "user": _user_summary(user)},
        "recipient_email": user.email if (user is not None and email_func) else None,
        "email_func": email_func,
        "email_kwargs": email_kwargs,
    }
