"""Admin dashboard, analytics and best sellers"""

from datetime import timedelta

import pytest

from haircrew.models import utcnow
from haircrew.routes import dashboard as dashboard_routes
from tests.factories import auth_headers, make_order


@pytest.fixture
def sales(db_session, catalog, customer, other_customer):
    """Four orders spread over the last three weeks"""
    products = catalog["products"]
    now = utcnow()
    return {
        "delivered": make_order(
            db_session, customer, [(products["argan"], 2)], status="DELIVERED", created_at=now - timedelta(days=1)
        ),
        "cancelled": make_order(
            db_session, customer, [(products["keratin"], 1)], status="CANCELLED", created_at=now - timedelta(days=2)
        ),
        "refunded": make_order(
            db_session,
            other_customer,
            [(products["onion"], 1)],
            status="REFUNDED",
            payment_status="REFUNDED",
            created_at=now - timedelta(days=3),
        ),
        "old": make_order(db_session, other_customer, [(products["argan"], 1)], created_at=now - timedelta(days=20)),
    }


# ============================================================================
# DASHBOARD
# ============================================================================


def test_dashboard_rejects_non_admins(client, customer):
    expected = {"error": "Unauthorized", "code": "UNAUTHORIZED"}

    res = client.get("/api/admin/dashboard")
    assert res.status_code == 401
    assert res.json() == expected

    res = client.get("/api/admin/dashboard", headers=auth_headers(customer))
    assert res.status_code == 401
    assert res.json() == expected


def test_dashboard_metrics_and_tables(admin_client, sales):
    res = admin_client.get("/api/admin/dashboard")

    assert res.status_code == 200
    body = res.json()
    assert body["metrics"] == {
        "totalRevenue": 3349.0,
        "totalOrders": 4,
        "totalCustomers": 2,
        "averageOrderValue": 837.25,
    }
    assert body["revenueFilter"] == "monthly"
    assert sum(point["revenue"] for point in body["revenueData"]) == 3349.0
    assert sum(point["count"] for point in body["orderStats"]["volumeData"]) == 4
    assert {s["status"]: s["count"] for s in body["orderStats"]["statusData"]} == {
        "DELIVERED": 1,
        "CANCELLED": 1,
        "REFUNDED": 1,
        "PENDING": 1,
    }
    assert sum(p["count"] for p in body["orderStats"]["peakTimesData"]) == 4

    assert [o["id"] for o in body["recentOrders"]][:2] == [sales["delivered"].id, sales["cancelled"].id]
    assert body["recentOrders"][0]["customer"] == "Priya Sharma"
    assert [p["name"] for p in body["lowStockProducts"]] == ["Repair Serum", "Onion Oil"]
    assert body["lowStockProducts"][0]["threshold"] == 10
    assert body["topProducts"][0]["name"] == "Argan Oil"
    assert body["pagination"] == {"page": 1, "pageSize": 10}


def test_dashboard_pagination_is_clamped(admin_client, sales):
    body = admin_client.get("/api/admin/dashboard", params={"page": "0", "pageSize": "2"}).json()

    assert body["pagination"] == {"page": 1, "pageSize": 2}
    assert len(body["recentOrders"]) == 2


def test_dashboard_weekly_buckets_use_iso_weeks(admin_client, sales):
    body = admin_client.get("/api/admin/dashboard", params={"filter": "weekly"}).json()

    assert body["revenueFilter"] == "weekly"
    for point in body["revenueData"]:
        year, week = point["date"].split("-")
        assert len(year) == 4 and len(week) == 2


@pytest.mark.parametrize(
    "params, code",
    [({"filter": "hourly"}, "INVALID_FILTER"), ({"page": "abc"}, "INVALID_PAGINATION")],
)
def test_dashboard_bad_params(admin_client, params, code):
    res = admin_client.get("/api/admin/dashboard", params=params)

    assert res.status_code == 400
    assert res.json()["code"] == code


def test_dashboard_unexpected_failure_is_500(admin_client, monkeypatch):
    def explode(db, params):
        raise RuntimeError("database went away")

    monkeypatch.setattr(dashboard_routes, "get_dashboard", explode)

    res = admin_client.get("/api/admin/dashboard")

    assert res.status_code == 500
    assert res.json() == {"error": "Internal server error", "code": "INTERNAL_ERROR"}


def test_dashboard_is_rate_limited(admin_client, fake_redis):
    for _ in range(15):
        assert admin_client.get("/api/admin/dashboard").status_code == 200

    res = admin_client.get("/api/admin/dashboard")

    assert res.status_code == 429
    assert res.json()["code"] == "RATE_LIMITED"
    assert res.headers["X-RateLimit-Limit"] == "15"
    assert res.headers["X-RateLimit-Remaining"] == "0"
    assert 1 <= int(res.headers["Retry-After"]) <= 30


def test_dashboard_limit_applies_before_auth(client, fake_redis):
    for _ in range(15):
        assert client.get("/api/admin/dashboard").status_code == 401

    assert client.get("/api/admin/dashboard").status_code == 429


def test_redis_failure_denies_dashboard(admin_client, fake_redis, monkeypatch):
    def broken_pipeline():
        raise ConnectionError("redis down")

    monkeypatch.setattr(fake_redis, "pipeline", broken_pipeline)

    res = admin_client.get("/api/admin/dashboard")

    assert res.status_code == 503


# ============================================================================
# ANALYTICS
# ============================================================================


def test_analytics_last7(admin_client, sales):
    res = admin_client.get("/api/admin/analytics", params={"dateRange": "last7"})

    assert res.status_code == 200
    body = res.json()
    assert body["metrics"] == {
        "totalRevenue": 1699.0,
        "totalOrders": 2,
        "totalCustomers": 2,
        "avgOrderValue": 849.5,
        "refunds": 799.0,
        "refundCount": 1,
        "cancellations": 1,
        "lowStockCount": 1,
        "outOfStockCount": 1,
    }

    charts = body["charts"]
    assert {s["status"]: s["count"] for s in charts["orderStatusDistribution"]} == {
        "DELIVERED": 1,
        "CANCELLED": 1,
        "REFUNDED": 1,
    }
    assert len(charts["salesOverTime"]) == 2
    assert [p["name"] for p in charts["topProducts"]] == ["Argan Oil", "Onion Oil"]
    assert charts["topProducts"][0]["totalRevenue"] == 900
    assert charts["customerAcquisition"] == {"newCustomers": 1, "returningCustomers": 1}

    assert [p["name"] for p in body["alerts"]["lowStockProducts"]] == ["Onion Oil"]
    assert body["filters"]["dateRange"] == "last7"


def test_analytics_defaults_to_last30(admin_client, sales):
    body = admin_client.get("/api/admin/analytics").json()

    assert body["filters"]["dateRange"] == "last30"
    assert body["metrics"]["totalOrders"] == 3


def test_analytics_invalid_range(admin_client):
    res = admin_client.get("/api/admin/analytics", params={"dateRange": "forever"})

    assert res.status_code == 400
    assert res.json() == {"error": "Invalid date range", "code": "INVALID_DATE_RANGE"}


def test_analytics_requires_admin(customer_client):
    assert customer_client.get("/api/admin/analytics").status_code == 401


def test_top_products_rank_by_quantity(admin_client, sales):
    top = admin_client.get("/api/admin/top-products").json()

    assert top[0]["name"] == "Argan Oil"
    assert top[0]["totalSold"] == 3
    assert top[0]["totalRevenue"] == 1350
    assert top[0]["category"] == "Hair Oils"
    assert {p["name"] for p in top} == {"Argan Oil", "Keratin Shampoo", "Onion Oil"}
