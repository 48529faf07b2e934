"""Pure helpers: paging windows, status rules, shipping, broadcasts, notifications, sanitizing"""

import asyncio
from datetime import date, datetime

import pytest
from fastapi import HTTPException

from haircrew import email_service
from haircrew.errors import DashboardError
from haircrew.models import Order, User
from haircrew.pagination import clamp_page_size, get_date_range, parse_pagination_params, total_pages
from haircrew.services import pusher_service
from haircrew.services.analytics_service import bucket_key
from haircrew.services.notification_service import new_order_notification, send_notification
from haircrew.services.order_status import apply_transition, resolve_transition
from haircrew.services.shipping import estimated_delivery, shipping_fee
from haircrew.utils.sanitization import sanitize_dict, sanitize_string, validate_and_sanitize_input
from haircrew.utils.slugs import slugify, unique_slug
from tests.factories import make_order

# ============================================================================
# PAGINATION
# ============================================================================


def test_pagination_defaults():
    params = parse_pagination_params(None, None, None)

    assert (params.page, params.page_size, params.filter) == (1, 10, "monthly")
    assert params.offset == 0


def test_pagination_clamps_out_of_range_values():
    params = parse_pagination_params("-4", "1000", "daily")

    assert (params.page, params.page_size) == (1, 100)
    assert clamp_page_size(0) == 1


def test_pagination_rejects_non_integers():
    with pytest.raises(DashboardError) as exc:
        parse_pagination_params("1", "ten", None)
    assert exc.value.code == "INVALID_PAGINATION"


def test_date_ranges():
    now = datetime(2025, 3, 15, 14, 30)

    assert get_date_range("daily", now) == datetime(2025, 2, 13)
    assert get_date_range("weekly", now) == datetime(2024, 12, 15)
    assert get_date_range("monthly", now) == datetime(2024, 3, 1)
    assert get_date_range("yearly", now) == datetime(2020, 1, 1)


def test_monthly_range_crosses_year_boundary():
    assert get_date_range("monthly", datetime(2025, 1, 31, 8, 0)) == datetime(2024, 1, 1)


def test_total_pages():
    assert total_pages(0, 10) == 0
    assert total_pages(21, 10) == 3


def test_bucket_keys():
    assert bucket_key(datetime(2024, 12, 30), "weekly") == "2025-01"
    assert bucket_key(datetime(2024, 12, 30), "monthly") == "2024-12"


# ============================================================================
# ORDER STATUS
# ============================================================================


def make_actor(user_id, role="USER"):
    return User(id=user_id, email=f"{user_id}@example.com", role=role)


def test_owner_payment_confirmation():
    order = Order(user_id="u1", status="PENDING", payment_status="PENDING")

    transition = resolve_transition(order, make_actor("u1"), "PAID")
    apply_transition(order, transition)

    assert (order.status, order.payment_status) == ("PROCESSING", "PAID")


def test_admin_cannot_confirm_payment_for_customer():
    order = Order(user_id="u1")

    with pytest.raises(HTTPException) as exc:
        resolve_transition(order, make_actor("a1", "ADMIN"), "PAID")
    assert exc.value.status_code == 403


def test_cancelled_is_not_an_admin_transition():
    with pytest.raises(HTTPException) as exc:
        resolve_transition(Order(user_id="u1"), make_actor("a1", "ADMIN"), "CANCELLED")
    assert exc.value.status_code == 400


def test_confirmed_keeps_payment_status():
    order = Order(user_id="u1", status="PENDING", payment_status="PAID")

    apply_transition(order, resolve_transition(order, make_actor("a1", "ADMIN"), "CONFIRMED"))

    assert (order.status, order.payment_status) == ("CONFIRMED", "PAID")


# ============================================================================
# SHIPPING
# ============================================================================


@pytest.mark.parametrize("subtotal, fee", [(0, 0), (450, 50), (999.99, 50), (1000, 0), (5000, 0)])
def test_shipping_fee(subtotal, fee):
    assert shipping_fee(subtotal) == fee


def test_estimated_delivery_is_three_days_out():
    assert estimated_delivery(date(2025, 2, 27)) == date(2025, 3, 2)


# ============================================================================
# PUSHER AND NOTIFICATIONS
# ============================================================================


def test_broadcast_serializes_dates(pusher_events):
    assert pusher_service.broadcast("orders", "new-order", {"createdAt": datetime(2025, 1, 1, 9, 0)}) is True
    assert pusher_events.events == [("orders", "new-order", {"createdAt": "2025-01-01T09:00:00"})]


def test_broadcast_without_credentials_is_skipped(monkeypatch):
    monkeypatch.setattr(pusher_service, "_pusher_client", None)
    assert pusher_service.broadcast("orders", "new-order", {}) is False


def test_broadcast_failures_are_swallowed(monkeypatch):
    class Exploding:
        def trigger(self, channel, event, data):
            raise RuntimeError("pusher outage")

    monkeypatch.setattr(pusher_service, "_pusher_client", Exploding())
    assert pusher_service.broadcast("orders", "new-order", {}) is False


def test_send_notification_reports_email_failure(pusher_events):
    async def failing_email(**kwargs):
        raise email_service.EmailDeliveryError("Email service not configured")

    result = asyncio.run(
        send_notification(
            notification_type="order_confirmation",
            channel="orders",
            event="new-order",
            payload={"orderId": "o1"},
            recipient_email="priya@example.com",
            email_func=failing_email,
            email_kwargs={"to": "priya@example.com"},
        )
    )

    assert result == {"push_sent": True, "email_sent": False, "email_error": "Email service not configured"}


def test_new_order_notification_outlives_the_session(db_session, catalog, customer, pusher_events, outbox):
    """Background tasks run after the request session is gone"""
    order = make_order(db_session, customer, [(catalog["products"]["argan"], 2)])
    notification = new_order_notification(order, customer)
    db_session.close()

    result = asyncio.run(send_notification(**notification))

    assert result["push_sent"] and result["email_sent"]
    [pushed] = pusher_events.find("orders", "new-order")
    assert pushed["orderId"] == notification["payload"]["orderId"]
    assert pushed["user"]["email"] == "priya@example.com"
    [email] = outbox.of_kind("send_order_confirmation_email")
    assert email["order_number"] == notification["email_kwargs"]["order_number"]


def test_send_email_requires_resend_key():
    with pytest.raises(email_service.EmailDeliveryError):
        asyncio.run(email_service.send_email(to="priya@example.com", subject="Hi", mjml_content="<mjml></mjml>"))


# ============================================================================
# SANITIZING AND SLUGS
# ============================================================================


def test_sanitize_string_strips_markup():
    assert sanitize_string('<img src=x onerror=alert(1)>') == "img src=x alert(1)"
    assert sanitize_string("javascript:alert(1)") == "alert(1)"
    assert sanitize_string(None) is None


def test_sanitize_dict_recurses():
    assert sanitize_dict({"a": "<b>", "n": 1, "nested": {"c": " x "}, "items": ["<i>"]}) == {
        "a": "b",
        "n": 1,
        "nested": {"c": "x"},
        "items": ["i"],
    }


def test_validate_and_sanitize_input_enforces_length():
    assert validate_and_sanitize_input("hi\x00 there") == "hi there"
    with pytest.raises(ValueError):
        validate_and_sanitize_input("x" * 11, max_length=10)


def test_slugs():
    assert slugify("  Argan & Jojoba Oil ") == "argan--jojoba-oil"
    assert unique_slug("Argan Oil", now_ms=1700000000000) == "argan-oil-1700000000000"
