"""Order repository - Database operations for orders"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session, joinedload, selectinload

from ...models import Order, OrderItem, Product


class OrderRepository:
    """Repository for order database operations"""

    @staticmethod
    def get_products_for_update(db: Session, product_ids: list[str]) -> dict[str, Product]:
        """Lock the ordered products' rows until the order commits (no-op on SQLite)"""
        products = db.query(Product).filter(Product.id.in_(product_ids)).with_for_update().all()
        return {p.id: p for p in products}

    @staticmethod
    def create_order(db: Session, order: Order, lines: list[tuple[Product, int]]) -> Order:
        """Persist the order with its items and decrement stock in one transaction"""
        try:
            for product, quantity in lines:
                order.items.append(OrderItem(product_id=product.id, quantity=quantity, price=product.price))
                product.stock = product.stock - quantity
            db.add(order)
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(order)
        return order

    @staticmethod
    def get_order(db: Session, order_id: str) -> Optional[Order]:
        return (
            db.query(Order)
            .options(joinedload(Order.user), selectinload(Order.items))
            .filter(Order.id == order_id)
            .first()
        )

    @staticmethod
    def list_user_orders(db: Session, user_id: str, offset: int, limit: int) -> tuple[list[Order], int]:
        query = db.query(Order).filter(Order.user_id == user_id)
        total = query.count()
        orders = query.order_by(Order.created_at.desc()).offset(offset).limit(limit).all()
        return orders, total

    @staticmethod
    def list_orders(
        db: Session, status: Optional[str], search: Optional[str], offset: int, limit: int
    ) -> tuple[list[Order], int]:
        query = db.query(Order)
        if status:
            query = query.filter(Order.status == status)
        if search:
            query = query.filter(Order.order_number.ilike(f"%{search}%"))
        total = query.count()
        orders = (
            query.options(joinedload(Order.user), selectinload(Order.items))
            .order_by(Order.created_at.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return orders, total

    @staticmethod
    def list_for_export(db: Session, start: Optional[datetime], end: Optional[datetime]) -> list[Order]:
        query = db.query(Order).options(joinedload(Order.user), selectinload(Order.items))
        if start:
            query = query.filter(Order.created_at >= start)
        if end:
            query = query.filter(Order.created_at <= end)
        return query.order_by(Order.created_at.desc()).all()

    @staticmethod
    def save(db: Session, order: Order) -> Order:
        db.commit()
        db.refresh(order)
        return order
