"""Order service - Checkout, order history, status transitions and export"""

import csv
import logging
import random
import time
from datetime import datetime, timezone
from io import StringIO
from typing import Optional

from fastapi import HTTPException
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from ...audit import log_order_event
from ...config import CURRENCY
from ...models import Order, User
from ...services.order_status import StatusTransition, apply_transition, resolve_transition
from ...services.shipping import shipping_fee
from ...utils.sanitization import sanitize_dict
from .repository import OrderRepository
from .schemas import OrderCreate

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = [
    "Order ID",
    "Order Number",
    "Customer Name",
    "Customer Email",
    "Total",
    "Status",
    "Created At",
    "Items",
]


def generate_order_number() -> str:
    return f"ORD-{int(time.time() * 1000)}-{random.randint(0, 9999)}"


def format_amount(value: float) -> str:
    """1050.0 -> '1050', 99.5 -> '99.5'"""
    value = float(value)
    return str(int(value)) if value.is_integer() else str(value)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """Lenient ISO-8601 parse; unparseable values are ignored like a missing filter"""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.warning(f"Ignoring invalid export date: {value}")
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


class OrderService:
    """Service layer for order business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = OrderRepository()

    def create_order(self, data: OrderCreate, user: User) -> Order:
        """Price the cart from the catalog, check stock, then persist and decrement stock"""
        quantities: dict[str, int] = {}
        for item in data.items:
            quantities[item.id] = quantities.get(item.id, 0) + item.quantity

        products = self.repo.get_products_for_update(self.db, list(quantities))
        lines = []
        for product_id, quantity in quantities.items():
            product = products.get(product_id)
            if product is None or not product.is_active:
                self.db.rollback()
                raise HTTPException(status_code=400, detail=f"Product {product_id} is not available")
            if quantity > product.stock:
                self.db.rollback()
                raise HTTPException(status_code=400, detail=f"Insufficient stock for {product.name}")
            lines.append((product, quantity))

        subtotal = round(sum(product.price * quantity for product, quantity in lines), 2)
        fee = shipping_fee(subtotal)

        order = Order(
            order_number=generate_order_number(),
            user_id=user.id,
            status="PENDING",
            payment_status="PENDING",
            payment_method=data.method,
            subtotal=subtotal,
            shipping=fee,
            total=round(subtotal + fee, 2),
            currency=CURRENCY,
            shipping_address=sanitize_dict(data.shipping.model_dump()),
        )
        if data.createdAt is not None:
            created_at = data.createdAt
            if created_at.tzinfo is not None:
                created_at = created_at.astimezone(timezone.utc).replace(tzinfo=None)
            order.created_at = created_at

        order = self.repo.create_order(self.db, order, lines)
        log_order_event("created", order.id, user.id, total=order.total, method=order.payment_method)
        return order

    def get_user_order(self, order_id: Optional[str], user: User) -> Order:
        if not order_id:
            raise HTTPException(status_code=400, detail="Order ID required")
        order = self.repo.get_order(self.db, order_id)
        if not order or order.user_id != user.id:
            raise HTTPException(status_code=404, detail="Order not found")
        return order

    def order_history(self, user: User, page: int, page_size: int) -> tuple[list[Order], int]:
        return self.repo.list_user_orders(self.db, user.id, (page - 1) * page_size, page_size)

    def change_status(
        self, order_id: Optional[str], new_status: Optional[str], actor: User
    ) -> tuple[Order, StatusTransition]:
        if not order_id or not new_status:
            raise HTTPException(status_code=400, detail="Missing orderId or newStatus")

        order = self.repo.get_order(self.db, order_id)
        if not order:
            raise HTTPException(status_code=404, detail="Order not found")

        transition = resolve_transition(order, actor, new_status)
        apply_transition(order, transition)
        order = self.repo.save(self.db, order)
        log_order_event("status_changed", order.id, actor.id, requested=new_status, status=order.status)
        return order, transition

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------

    def admin_list(
        self, page: int, page_size: int, status: Optional[str], search: Optional[str]
    ) -> tuple[list[Order], int]:
        return self.repo.list_orders(self.db, status, search, (page - 1) * page_size, page_size)

    def export_orders_csv(self, admin: User, start: Optional[str], end: Optional[str]) -> StreamingResponse:
        """Export orders as CSV; every cell quoted"""
        logger.info(f"📊 Order CSV export requested by admin {admin.id}")

        orders = self.repo.list_for_export(self.db, parse_iso_datetime(start), parse_iso_datetime(end))

        output = StringIO()
        writer = csv.writer(output, quoting=csv.QUOTE_ALL, lineterminator="\n")
        writer.writerow(EXPORT_COLUMNS)
        for order in orders:
            writer.writerow(
                [
                    order.id,
                    order.order_number,
                    (order.user.name if order.user else None) or "",
                    (order.user.email if order.user else None) or "",
                    format_amount(order.total),
                    order.status,
                    order.created_at.isoformat(timespec="milliseconds") + "Z",
                    "; ".join(
                        f"{item.quantity}x {format_amount(item.price)} ({item.product_id})" for item in order.items
                    ),
                ]
            )

        logger.info(f"✅ CSV export successful ({len(orders)} orders)")
        return StreamingResponse(
            iter([output.getvalue().rstrip("\n")]),
            media_type="text/csv",
            headers={
                "Content-Disposition": 'attachment; filename="orders-export.csv"',
                "Cache-Control": "no-cache",
            },
        )
