"""
Admin dashboard and analytics aggregations
Time bucketing happens in Python so results are identical on SQLite and Postgres
"""

import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ..config import LOW_STOCK_THRESHOLD
from ..errors import DashboardError
from ..models import Order, OrderItem, Product, User, utcnow
from ..pagination import PaginationParams, get_date_range

logger = logging.getLogger(__name__)

DEFAULT_DATE_RANGE = "last30"
ANALYTICS_LOW_STOCK_LIMIT = 5


def _first_image(images) -> Optional[str]:
    return images[0] if images else None


def bucket_key(created_at: datetime, time_filter: str) -> str:
    """ISO year-week for the weekly filter, year-month otherwise"""
    if time_filter == "weekly":
        iso_year, iso_week, _ = created_at.isocalendar()
        return f"{iso_year}-{iso_week:02d}"
    return created_at.strftime("%Y-%m")


# ============================================================================
# TOP PRODUCTS
# ============================================================================


def get_top_products(db: Session, limit: int = 10) -> list[dict]:
    """Best sellers by quantity; revenue is quantity sold at the current price"""
    rows = (
        db.query(OrderItem.product_id, func.sum(OrderItem.quantity).label("total_sold"))
        .group_by(OrderItem.product_id)
        .order_by(func.sum(OrderItem.quantity).desc())
        .limit(limit)
        .all()
    )
    if not rows:
        return []

    products = {
        p.id: p
        for p in db.query(Product)
        .options(joinedload(Product.category))
        .filter(Product.id.in_([r.product_id for r in rows]))
        .all()
    }

    result = []
    for row in rows:
        product = products.get(row.product_id)
        total_sold = int(row.total_sold or 0)
        result.append(
            {
                "id": row.product_id,
                "name": product.name if product else None,
                "images": product.images if product else [],
                "price": product.price if product else None,
                "stock": product.stock if product else None,
                "category": product.category.name if product and product.category else None,
                "totalSold": total_sold,
                "totalRevenue": total_sold * product.price if product else 0,
            }
        )
    return result


# ============================================================================
# DASHBOARD
# ============================================================================


def serialize_recent_order(order: Order) -> dict:
    customer = "Unknown"
    if order.user is not None:
        customer = order.user.name or order.user.email or "Unknown"
    return {
        "id": order.id,
        "orderNumber": order.order_number,
        "customer": customer,
        "total": order.total,
        "status": order.status,
        "date": order.created_at.strftime("%Y-%m-%d"),
    }


def serialize_low_stock_product(product: Product) -> dict:
    return {
        "id": product.id,
        "name": product.name,
        "stock": product.stock,
        "threshold": LOW_STOCK_THRESHOLD,
        "image": _first_image(product.images),
    }


def get_dashboard(db: Session, params: PaginationParams, now: Optional[datetime] = None) -> dict:
    """Headline metrics, charts and paginated tables for the admin dashboard"""
    now = now or utcnow()
    start = get_date_range(params.filter, now)

    total_revenue = db.query(func.coalesce(func.sum(Order.total), 0)).scalar() or 0
    total_orders = db.query(func.count(Order.id)).scalar() or 0
    total_customers = db.query(func.count(User.id)).filter(User.role == "USER").scalar() or 0

    window_orders = (
        db.query(Order.created_at, Order.total)
        .filter(Order.created_at >= start)
        .order_by(Order.created_at.asc())
        .all()
    )
    all_orders = db.query(Order.created_at, Order.status).order_by(Order.created_at.asc()).all()

    revenue_buckets: dict[str, float] = {}
    volume_buckets: dict[str, int] = {}
    for created_at, total in window_orders:
        key = bucket_key(created_at, params.filter)
        revenue_buckets[key] = revenue_buckets.get(key, 0) + float(total or 0)
        volume_buckets[key] = volume_buckets.get(key, 0) + 1

    status_counts: dict[str, int] = {}
    hour_counts: dict[str, int] = {}
    for created_at, status in all_orders:
        status_counts[status] = status_counts.get(status, 0) + 1
        hour = created_at.strftime("%H")
        hour_counts[hour] = hour_counts.get(hour, 0) + 1

    recent_orders = (
        db.query(Order)
        .options(joinedload(Order.user))
        .order_by(Order.created_at.desc())
        .offset(params.offset)
        .limit(params.page_size)
        .all()
    )
    low_stock = (
        db.query(Product)
        .filter(Product.stock < LOW_STOCK_THRESHOLD)
        .order_by(Product.stock.asc(), Product.name.asc())
        .offset(params.offset)
        .limit(params.page_size)
        .all()
    )

    return {
        "metrics": {
            "totalRevenue": float(total_revenue),
            "totalOrders": total_orders,
            "totalCustomers": total_customers,
            "averageOrderValue": float(total_revenue) / total_orders if total_orders else 0,
        },
        "revenueData": [{"date": k, "revenue": v} for k, v in revenue_buckets.items()],
        "revenueFilter": params.filter,
        "orderStats": {
            "volumeData": [{"date": k, "count": v} for k, v in volume_buckets.items()],
            "statusData": [{"status": k, "count": v} for k, v in status_counts.items()],
            "peakTimesData": [{"hour": k, "count": v} for k, v in hour_counts.items()],
        },
        "recentOrders": [serialize_recent_order(o) for o in recent_orders],
        "lowStockProducts": [serialize_low_stock_product(p) for p in low_stock],
        "topProducts": get_top_products(db),
        "pagination": {"page": params.page, "pageSize": params.page_size},
    }


# ============================================================================
# ANALYTICS
# ============================================================================


def get_analytics_window(date_range: str, now: datetime) -> tuple[datetime, datetime]:
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if date_range == "today":
        return midnight, now
    if date_range == "last7":
        return now - timedelta(days=7), now
    if date_range == "last30":
        return now - timedelta(days=30), now
    if date_range == "thisMonth":
        return midnight.replace(day=1), now
    if date_range == "thisYear":
        return midnight.replace(month=1, day=1), now
    raise DashboardError("INVALID_DATE_RANGE", "Invalid date range", {"dateRange": date_range})


def get_analytics(db: Session, date_range: Optional[str] = None, now: Optional[datetime] = None) -> dict:
    """
    Sales analytics over a named date range.

    Cancelled orders are excluded from revenue, order, customer and average
    figures but still appear in the status distribution.
    """
    date_range = date_range or DEFAULT_DATE_RANGE
    now = now or utcnow()
    start, end = get_analytics_window(date_range, now)

    in_window = db.query(Order).filter(Order.created_at >= start, Order.created_at <= end)
    orders = in_window.order_by(Order.created_at.asc()).all()
    counted = [o for o in orders if o.status != "CANCELLED"]

    total_revenue = sum(float(o.total or 0) for o in counted)
    total_orders = len(counted)
    total_customers = len({o.user_id for o in counted})

    status_distribution = Counter(o.status for o in orders)

    sales: dict[str, dict] = {}
    for o in counted:
        day = o.created_at.strftime("%Y-%m-%d")
        bucket = sales.setdefault(day, {"date": day, "revenue": 0.0, "orders": 0})
        bucket["revenue"] += float(o.total or 0)
        bucket["orders"] += 1

    orders_per_customer = Counter(o.user_id for o in orders)
    new_customers = sum(1 for count in orders_per_customer.values() if count == 1)
    returning_customers = sum(1 for count in orders_per_customer.values() if count > 1)

    refunded = [o for o in orders if o.status == "REFUNDED"]
    cancellations = sum(1 for o in orders if o.status == "CANCELLED")

    revenue_expr = func.sum(OrderItem.price * OrderItem.quantity)
    top_rows = (
        db.query(
            OrderItem.product_id,
            func.sum(OrderItem.quantity).label("total_quantity"),
            revenue_expr.label("total_revenue"),
        )
        .join(Order, Order.id == OrderItem.order_id)
        .filter(Order.created_at >= start, Order.created_at <= end, Order.status != "CANCELLED")
        .group_by(OrderItem.product_id)
        .order_by(revenue_expr.desc())
        .limit(10)
        .all()
    )
    product_ids = [r.product_id for r in top_rows]
    products = {p.id: p for p in db.query(Product).filter(Product.id.in_(product_ids)).all()} if product_ids else {}
    top_products = [
        {
            "productId": r.product_id,
            "name": products[r.product_id].name if r.product_id in products else "Unknown Product",
            "image": _first_image(products[r.product_id].images) if r.product_id in products else None,
            "totalQuantity": int(r.total_quantity or 0),
            "totalRevenue": float(r.total_revenue or 0),
        }
        for r in top_rows
    ]

    low_stock_query = db.query(Product).filter(Product.stock <= LOW_STOCK_THRESHOLD, Product.stock > 0)
    low_stock_count = low_stock_query.count()
    low_stock_products = [
        {"id": p.id, "name": p.name, "stock": p.stock, "images": p.images or []}
        for p in low_stock_query.order_by(Product.stock.asc()).limit(ANALYTICS_LOW_STOCK_LIMIT).all()
    ]
    out_of_stock = db.query(func.count(Product.id)).filter(Product.stock <= 0).scalar() or 0

    return {
        "metrics": {
            "totalRevenue": total_revenue,
            "totalOrders": total_orders,
            "totalCustomers": total_customers,
            "avgOrderValue": total_revenue / total_orders if total_orders else 0,
            "refunds": sum(float(o.total or 0) for o in refunded),
            "refundCount": len(refunded),
            "cancellations": cancellations,
            "lowStockCount": low_stock_count,
            "outOfStockCount": out_of_stock,
        },
        "charts": {
            "orderStatusDistribution": [{"status": s, "count": c} for s, c in status_distribution.items()],
            "salesOverTime": list(sales.values()),
            "topProducts": top_products,
            "customerAcquisition": {
                "newCustomers": new_customers,
                "returningCustomers": returning_customers,
            },
        },
        "alerts": {
            "lowStockProducts": low_stock_products,
            "outOfStockCount": out_of_stock,
        },
        "filters": {
            "dateRange": date_range,
            "startDate": start.isoformat(),
            "endDate": end.isoformat(),
        },
    }
