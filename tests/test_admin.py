"""Admin users, settings, notifications and the homepage carousel"""

import pytest
from sqlalchemy import text

from haircrew.models import CarouselImage, Order, Setting, User
from haircrew.security_utils import verify_password
from tests.factories import auth_headers, make_order, make_user

# ============================================================================
# USERS
# ============================================================================


@pytest.fixture
def foreign_keys(db_session):
    """SQLite only enforces foreign keys when asked to"""
    db_session.execute(text("PRAGMA foreign_keys=ON"))
    db_session.commit()


def test_list_users_searches_and_clamps_paging(admin_client, customer, other_customer):
    res = admin_client.get("/api/admin/users", params={"search": "rahul", "page": 0, "pageSize": 500})

    body = res.json()
    assert body["page"] == 1
    assert body["pageSize"] == 100
    assert [u["email"] for u in body["users"]] == [other_customer.email]
    assert body["totalPages"] == 1


def test_promote_user(admin_client, customer):
    res = admin_client.patch("/api/admin/users", json={"id": customer.id, "role": "ADMIN"})

    assert res.status_code == 200
    assert res.json()["data"]["role"] == "ADMIN"


def test_admin_cannot_demote_themselves(admin_client, admin):
    res = admin_client.patch("/api/admin/users", json={"id": admin.id, "role": "USER"})

    assert res.status_code == 400
    assert res.json()["detail"] == "Cannot demote yourself"


def test_invalid_role_is_rejected(admin_client, customer):
    assert admin_client.patch("/api/admin/users", json={"id": customer.id, "role": "OWNER"}).status_code == 400


def test_role_change_for_missing_user_is_404(admin_client):
    assert admin_client.patch("/api/admin/users", json={"id": "ghost", "role": "ADMIN"}).status_code == 404


def test_delete_user_keeps_their_orders(admin_client, db_session, catalog, customer):
    order = make_order(db_session, customer, [(catalog["products"]["argan"], 1)])
    customer_id = customer.id

    res = admin_client.request("DELETE", "/api/admin/users", json={"id": customer_id})

    assert res.json() == {"success": True}
    db_session.expire_all()
    assert db_session.get(User, customer_id) is None
    assert db_session.get(Order, order.id).user_id is None


def test_delete_admin_who_added_carousel_images(admin_client, db_session, foreign_keys, catalog):
    editor = make_user(db_session, "editor@haircrew.com", role="ADMIN", name="Store Editor")
    image = CarouselImage(url="https://images.haircrew.in/banner.jpg", alt_text="Monsoon sale", created_by=editor.id)
    db_session.add(image)
    db_session.commit()
    order = make_order(db_session, editor, [(catalog["products"]["argan"], 1)])
    editor_id, image_id = editor.id, image.id

    res = admin_client.request("DELETE", "/api/admin/users", json={"id": editor_id})

    assert res.json() == {"success": True}
    db_session.expire_all()
    assert db_session.get(User, editor_id) is None
    assert db_session.get(CarouselImage, image_id).created_by is None
    assert db_session.get(Order, order.id).user_id is None


def test_admin_cannot_delete_themselves(admin_client, admin):
    res = admin_client.request("DELETE", "/api/admin/users", json={"id": admin.id})

    assert res.status_code == 400
    assert res.json()["detail"] == "Cannot delete yourself"


def test_user_admin_requires_admin(customer_client):
    assert customer_client.get("/api/admin/users").status_code == 401


# ============================================================================
# SETTINGS
# ============================================================================


def test_settings_default_to_empty_sections(admin_client, admin):
    res = admin_client.get("/api/admin/settings")

    assert res.json() == {
        "profile": {"name": "Store Admin", "email": admin.email},
        "store": {},
        "payment": {},
        "notifications": {},
    }


def test_settings_update_round_trip(admin_client, db_session, admin):
    res = admin_client.patch(
        "/api/admin/settings",
        json={
            "profile": {"name": "Head Admin", "email": admin.email, "password": "newpass1"},
            "store": {
                "storeName": "HairCrew",
                "storeContact": "hello@haircrew.in",
                "storeAddress": "12 MG Road, Bengaluru",
            },
            "notifications": {"orderNotifications": True, "stockAlerts": False, "emailNotifications": True},
        },
    )
    assert res.json() == {"success": True}

    settings = admin_client.get("/api/admin/settings").json()
    assert settings["profile"]["name"] == "Head Admin"
    assert settings["store"]["storeName"] == "HairCrew"
    assert settings["notifications"]["stockAlerts"] is False
    assert settings["payment"] == {}
    assert {row.key for row in db_session.query(Setting)} == {"store", "notifications"}

    db_session.refresh(admin)
    assert verify_password("newpass1", admin.password_hash)


def test_settings_email_must_be_unique(admin_client, customer, admin):
    res = admin_client.patch(
        "/api/admin/settings", json={"profile": {"name": "Store Admin", "email": customer.email}}
    )

    assert res.status_code == 400
    assert res.json()["detail"] == "Email already in use."


def test_settings_validation(admin_client, admin):
    res = admin_client.patch(
        "/api/admin/settings", json={"profile": {"name": "Store Admin", "email": admin.email, "password": "123"}}
    )

    assert res.status_code == 400
    assert res.json()["errors"] == ["Password must be at least 6 characters"]


def test_settings_reject_blank_emails(admin_client, db_session, admin):
    res = admin_client.patch("/api/admin/settings", json={"profile": {"name": "Store Admin", "email": ""}})

    assert res.status_code == 400
    db_session.refresh(admin)
    assert admin.email == "admin@haircrew.com"

    res = admin_client.patch(
        "/api/admin/settings",
        json={"store": {"storeName": "HairCrew", "storeContact": "", "storeAddress": "12 MG Road, Bengaluru"}},
    )

    assert res.status_code == 400
    assert db_session.query(Setting).count() == 0


# ============================================================================
# NOTIFICATIONS
# ============================================================================


def test_notify_list_and_mark_read(admin_client, pusher_events):
    res = admin_client.post(
        "/api/admin/notify", json={"type": "LOW_STOCK", "message": "Onion Oil is low", "data": {"stock": 3}}
    )
    assert res.json()["success"] is True
    notification_id = res.json()["id"]

    [pushed] = pusher_events.find("presence-admin-dashboard", "admin-notification")
    assert pushed["data"] == {"stock": 3}

    listing = admin_client.get("/api/admin/notifications").json()
    assert listing["unreadCount"] == 1
    assert listing["notifications"][0]["read"] is False

    assert admin_client.post(f"/api/admin/notifications/{notification_id}/read").json() == {"success": True}
    assert admin_client.get("/api/admin/notifications", params={"unreadOnly": True}).json() == {
        "notifications": [],
        "unreadCount": 0,
    }


def test_notify_requires_type_and_message(admin_client):
    res = admin_client.post("/api/admin/notify", json={"type": " ", "message": "x"})
    assert res.status_code == 400


def test_mark_missing_notification_is_404(admin_client):
    assert admin_client.post("/api/admin/notifications/ghost/read").status_code == 404


# ============================================================================
# CAROUSEL
# ============================================================================


def test_carousel_is_public_and_ordered(client, db_session):
    db_session.add_all(
        [
            CarouselImage(url="https://cdn.haircrew.in/b.jpg", order=2),
            CarouselImage(url="https://cdn.haircrew.in/a.jpg", order=1),
        ]
    )
    db_session.commit()

    res = client.get("/api/carousel")

    assert [img["url"] for img in res.json()] == ["https://cdn.haircrew.in/a.jpg", "https://cdn.haircrew.in/b.jpg"]


def test_admin_manages_carousel(admin_client, admin, db_session):
    res = admin_client.post("/api/carousel", json={"url": "https://cdn.haircrew.in/sale.jpg", "altText": "Sale"})
    assert res.status_code == 200
    image = res.json()
    assert image["createdBy"] == admin.id
    assert image["altText"] == "Sale"

    res = admin_client.delete("/api/carousel", params={"id": image["id"]})
    assert res.status_code == 204
    assert db_session.query(CarouselImage).count() == 0


def test_carousel_writes_are_forbidden_for_others(client, db_session):
    customer = make_user(db_session, "visitor@example.com")

    res = client.post("/api/carousel", json={"url": "https://cdn.haircrew.in/x.jpg"})
    assert res.status_code == 403

    res = client.post("/api/carousel", json={"url": "https://cdn.haircrew.in/x.jpg"}, headers=auth_headers(customer))
    assert res.status_code == 403
    assert res.json()["detail"] == "Unauthorized"


def test_carousel_delete_errors(admin_client):
    res = admin_client.delete("/api/carousel")
    assert res.status_code == 400
    assert res.json()["detail"] == "Missing id"

    assert admin_client.delete("/api/carousel", params={"id": "ghost"}).status_code == 404
