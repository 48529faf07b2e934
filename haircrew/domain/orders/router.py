"""Order router - checkout, order history, status changes and admin order tools"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_admin
from ...database import get_db
from ...models import User
from ...pagination import total_pages
from ...services.notification_service import new_order_notification, order_status_notification, send_notification
from ...services.order_status import PAYMENT_CONFIRMED
from .schemas import (
    AdminOrderListResponse,
    AdminOrderRow,
    OrderCreate,
    OrderHistoryResponse,
    OrderResponse,
    OrderStatusRequest,
    OrderSummary,
)
from .service import OrderService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/order", tags=["Orders"])
admin_router = APIRouter(prefix="/admin", tags=["Admin Orders"])


def get_order_service(db: Session = Depends(get_db)) -> OrderService:
    """Dependency injection for OrderService"""
    return OrderService(db)


@router.post("", status_code=201)
async def create_order(
    data: OrderCreate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    """Place an order; the admin dashboard and the customer are notified after the response"""
    order = service.create_order(data, current_user)
    background_tasks.add_task(send_notification, **new_order_notification(order, current_user))
    return {"id": order.id}


@router.get("", response_model=OrderResponse)
async def get_order(
    id: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    return OrderResponse.from_model(service.get_user_order(id, current_user))


@router.get("/history", response_model=OrderHistoryResponse)
async def order_history(
    page: int = Query(1, ge=1),
    pageSize: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    orders, total = service.order_history(current_user, page, pageSize)
    return OrderHistoryResponse(
        orders=[
            OrderSummary(
                id=o.id, orderNumber=o.order_number, total=o.total, status=o.status, createdAt=o.created_at
            )
            for o in orders
        ],
        total=total,
    )


def _change_status(
    service: OrderService, background_tasks: BackgroundTasks, order_id, new_status, actor: User
) -> dict:
    order, transition = service.change_status(order_id, new_status, actor)
    background_tasks.add_task(
        send_notification, **order_status_notification(order, new_status, transition.event, transition.email)
    )
    return {"success": True, "order": OrderResponse.from_model(order)}


@router.post("/status")
async def update_order_status(
    data: OrderStatusRequest,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    """Customer payment confirmation or admin fulfilment transition"""
    return _change_status(service, background_tasks, data.orderId, data.newStatus, current_user)


@router.post("/{order_id}/confirm-upi")
async def confirm_upi_payment(
    order_id: str,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    """Customer's "I've paid" for a UPI order"""
    return _change_status(service, background_tasks, order_id, PAYMENT_CONFIRMED, current_user)


# ============================================================================
# ADMIN
# ============================================================================


@admin_router.get("/orders", response_model=AdminOrderListResponse)
async def admin_list_orders(
    page: int = Query(1, ge=1),
    pageSize: int = Query(20, ge=1, le=100),
    status: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    admin: User = Depends(require_admin),
    service: OrderService = Depends(get_order_service),
):
    orders, total = service.admin_list(page, pageSize, status, search)
    return AdminOrderListResponse(
        orders=[
            AdminOrderRow(
                id=o.id,
                orderNumber=o.order_number,
                total=o.total,
                status=o.status,
                createdAt=o.created_at,
                paymentStatus=o.payment_status,
                paymentMethod=o.payment_method,
                customerName=o.user.name if o.user else None,
                customerEmail=o.user.email if o.user else None,
                itemCount=sum(i.quantity for i in o.items),
            )
            for o in orders
        ],
        total=total,
        page=page,
        pageSize=pageSize,
        totalPages=total_pages(total, pageSize),
    )


@admin_router.get("/export/orders")
async def export_orders_csv(
    start: Optional[str] = Query(None),
    end: Optional[str] = Query(None),
    admin: User = Depends(require_admin),
    service: OrderService = Depends(get_order_service),
):
    """Export orders as CSV, optionally bounded by ISO start/end dates"""
    return service.export_orders_csv(admin, start, end)
