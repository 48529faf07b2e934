"""
Audit trail helpers
One structured log line per auth, order, product, validation or security event
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

logger = logging.getLogger("haircrew.audit")


def _emit(
    category: str,
    action: str,
    user_id: Optional[str] = None,
    resource: Optional[str] = None,
    ip_address: Optional[str] = None,
    details: Optional[dict[str, Any]] = None,
    level: int = logging.INFO,
) -> dict[str, Any]:
    log_entry = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "category": category,
        "action": action,
        "user_id": user_id,
        "resource": resource,
        "ip_address": ip_address,
        "details": details or {},
    }
    logger.log(level, f"AUDIT_{category.upper()}: {log_entry}")
    return log_entry


def log_auth_event(action: str, user_id: Optional[str] = None, ip_address: Optional[str] = None, **details):
    """login, logout, register, failed_login, password_reset_requested, password_reset"""
    level = logging.WARNING if action.startswith("failed") else logging.INFO
    return _emit("auth", action, user_id, "user", ip_address, details, level)


def log_order_event(action: str, order_id: str, user_id: Optional[str] = None, **details):
    return _emit("order", action, user_id, f"order:{order_id}", None, details)


def log_product_event(action: str, product_id: str, user_id: Optional[str] = None, **details):
    return _emit("product", action, user_id, f"product:{product_id}", None, details)


def log_validation_event(resource: str, errors: list[str], user_id: Optional[str] = None):
    return _emit("validation", "rejected", user_id, resource, None, {"errors": errors}, logging.WARNING)


def log_security_event(
    event_type: str,
    user_id: Optional[str] = None,
    ip_address: Optional[str] = None,
    details: Optional[dict[str, Any]] = None,
):
    """Denied admin access, CSRF failures, self-demotion attempts"""
    return _emit("security", event_type, user_id, None, ip_address, details, logging.WARNING)
