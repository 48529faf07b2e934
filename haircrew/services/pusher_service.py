"""
Pusher real-time broadcasts
Admin dashboard and storefront clients subscribe to these channels
"""

import logging
from datetime import date, datetime
from typing import Any, Optional

import pusher

from ..config import PUSHER_APP_ID, PUSHER_CLUSTER, PUSHER_KEY, PUSHER_SECRET

logger = logging.getLogger(__name__)

ORDERS_CHANNEL = "orders"
PRODUCTS_CHANNEL = "products"
ADMIN_CHANNEL = "presence-admin-dashboard"

_pusher_client: Optional[pusher.Pusher] = None


def get_pusher_client() -> Optional[pusher.Pusher]:
    """Get or create the Pusher client; None when credentials are not configured"""
    global _pusher_client

    if _pusher_client is None:
        if not (PUSHER_APP_ID and PUSHER_KEY and PUSHER_SECRET):
            return None
        _pusher_client = pusher.Pusher(
            app_id=PUSHER_APP_ID,
            key=PUSHER_KEY,
            secret=PUSHER_SECRET,
            cluster=PUSHER_CLUSTER,
            ssl=True,
        )
        logger.info(f"📡 Pusher client initialized (cluster: {PUSHER_CLUSTER})")
    return _pusher_client


def to_jsonable(value: Any) -> Any:
    """Dates become ISO strings so payloads survive json.dumps"""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


def broadcast(channel: str, event: str, payload: dict) -> bool:
    """
    Trigger an event on a channel.

    Returns:
        True if Pusher accepted the event. Missing configuration and delivery
        failures are logged and reported as False, never raised.
    """
    client = get_pusher_client()
    if client is None:
        logger.warning(f"⚠️ Pusher not configured - skipping {channel}/{event}")
        return False

    try:
        client.trigger(channel, event, to_jsonable(payload))
        logger.info(f"📡 Broadcast {channel}/{event}")
        return True
    except Exception as e:
        logger.error(f"❌ Failed to broadcast {channel}/{event}: {e}")
        return False
