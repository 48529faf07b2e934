from datetime import date, timedelta
from typing import Optional

from ..config import FREE_SHIPPING_THRESHOLD, STANDARD_SHIPPING_FEE

DELIVERY_DAYS = 3


def shipping_fee(subtotal: float) -> float:
    """Free shipping at or above the threshold, flat fee below it"""
    if subtotal <= 0:
        return 0.0
    return 0.0 if subtotal >= FREE_SHIPPING_THRESHOLD else STANDARD_SHIPPING_FEE


def estimated_delivery(today: Optional[date] = None) -> date:
    return (today or date.today()) + timedelta(days=DELIVERY_DAYS)
