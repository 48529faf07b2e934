"""
Order status transitions

Customers may only confirm payment on their own order ("I've paid"):
    PAID -> payment PAID, status PROCESSING

Admins move orders through fulfilment:
    CONFIRMED             -> status CONFIRMED (confirmation email)
    PROCESSING            -> status PROCESSING
    SHIPPED / DELIVERED   -> status as given (shipping update email)
    REFUNDED              -> status and payment REFUNDED
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import HTTPException

from ..models import Order, User

logger = logging.getLogger(__name__)

PAYMENT_CONFIRMED = "PAID"


@dataclass(frozen=True)
class StatusTransition:
    status: str
    payment_status: Optional[str]
    event: str
    email: Optional[str] = None  # "confirmation" | "shipping"


ADMIN_TRANSITIONS = {
    "CONFIRMED": StatusTransition("CONFIRMED", None, "order-confirmed", "confirmation"),
    "REFUNDED": StatusTransition("REFUNDED", "REFUNDED", "order-refunded"),
    "PROCESSING": StatusTransition("PROCESSING", None, "order-processing"),
    "SHIPPED": StatusTransition("SHIPPED", None, "order-shipping", "shipping"),
    "DELIVERED": StatusTransition("DELIVERED", None, "order-shipping", "shipping"),
}

PAYMENT_TRANSITION = StatusTransition("PROCESSING", "PAID", "order-status-updated")


def resolve_transition(order: Order, actor: User, new_status: str) -> StatusTransition:
    """
    Decide what a status request does to an order.

    Raises:
        HTTPException 403: the actor may not make this change
        HTTPException 400: admin requested a status with no transition
    """
    if new_status == PAYMENT_CONFIRMED:
        if order.user_id != actor.id:
            raise HTTPException(status_code=403, detail="Forbidden")
        return PAYMENT_TRANSITION

    if actor.role == "ADMIN":
        transition = ADMIN_TRANSITIONS.get(new_status)
        if transition is None:
            raise HTTPException(status_code=400, detail="Invalid status")
        return transition

    raise HTTPException(status_code=403, detail="Forbidden")


def apply_transition(order: Order, transition: StatusTransition) -> Order:
    previous = order.status
    order.status = transition.status
    if transition.payment_status:
        order.payment_status = transition.payment_status
    logger.info(f"✅ Order {order.id} transitioned: {previous} → {order.status} ({transition.event})")
    return order
