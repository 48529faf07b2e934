"""Product repository - Database operations for products"""

from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Query, Session, joinedload

from ...models import Category, OrderItem, Product

PRICE_BOUNDS = {
    "0-500": (0, 500),
    "500-1000": (500, 1000),
    "1000-2000": (1000, 2000),
    "2000+": (2000, None),
}

SORT_COLUMNS = {
    "newest": Product.created_at.desc(),
    "oldest": Product.created_at.asc(),
    "price-low": Product.price.asc(),
    "price-high": Product.price.desc(),
    "name-asc": Product.name.asc(),
    "name-desc": Product.name.desc(),
}


def apply_stock_filter(query: Query, stock_status: Optional[str]) -> Query:
    """in-stock > 10, low-stock 1..10, out-of-stock <= 0"""
    if stock_status == "in-stock":
        return query.filter(Product.stock > 10)
    if stock_status == "low-stock":
        return query.filter(Product.stock > 0, Product.stock <= 10)
    if stock_status == "out-of-stock":
        return query.filter(Product.stock <= 0)
    return query


class ProductRepository:
    """Repository for product database operations"""

    @staticmethod
    def list_active(
        db: Session,
        category_slug: Optional[str],
        search: Optional[str],
        price_range: Optional[str],
        stock_status: Optional[str],
        sort_by: str,
        offset: int,
        limit: int,
    ) -> tuple[list[Product], int]:
        query = db.query(Product).filter(Product.is_active.is_(True))

        if category_slug:
            query = query.join(Category, Category.id == Product.category_id).filter(Category.slug == category_slug)

        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(Product.name.ilike(pattern), Product.description.ilike(pattern)))

        if price_range in PRICE_BOUNDS:
            low, high = PRICE_BOUNDS[price_range]
            query = query.filter(Product.price >= low)
            if high is not None:
                query = query.filter(Product.price < high)

        query = apply_stock_filter(query, stock_status)

        total = query.count()
        products = query.order_by(SORT_COLUMNS[sort_by], Product.id).offset(offset).limit(limit).all()
        return products, total

    @staticmethod
    def list_latest(db: Session, take: int, search: Optional[str] = None) -> list[Product]:
        query = db.query(Product).filter(Product.is_active.is_(True))
        if search:
            query = query.filter(Product.name.ilike(f"%{search}%"))
        return query.order_by(Product.created_at.desc()).limit(take).all()

    @staticmethod
    def get_by_slug(db: Session, slug: str) -> Optional[Product]:
        return db.query(Product).options(joinedload(Product.category)).filter(Product.slug == slug).first()

    @staticmethod
    def get_by_id(db: Session, product_id: str) -> Optional[Product]:
        return db.query(Product).options(joinedload(Product.category)).filter(Product.id == product_id).first()

    @staticmethod
    def list_related(db: Session, product: Product, limit: int = 4) -> list[Product]:
        return (
            db.query(Product)
            .filter(
                Product.category_id == product.category_id,
                Product.id != product.id,
                Product.is_active.is_(True),
            )
            .order_by(Product.created_at.desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def list_admin(
        db: Session,
        search: Optional[str],
        category_id: Optional[str],
        status: Optional[str],
        stock_status: Optional[str],
        offset: int,
        limit: int,
    ) -> tuple[list[Product], int]:
        query = db.query(Product)

        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(Product.name.ilike(pattern), Product.description.ilike(pattern), Product.sku.ilike(pattern))
            )
        if category_id:
            query = query.filter(Product.category_id == category_id)
        if status == "active":
            query = query.filter(Product.is_active.is_(True))
        elif status == "inactive":
            query = query.filter(Product.is_active.is_(False))
        elif status == "featured":
            query = query.filter(Product.is_featured.is_(True))

        query = apply_stock_filter(query, stock_status)

        total = query.count()
        products = (
            query.options(joinedload(Product.category))
            .order_by(Product.created_at.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return products, total

    @staticmethod
    def create(db: Session, **product_data) -> Product:
        product = Product(**product_data)
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    @staticmethod
    def update(db: Session, product: Product, **updates) -> Product:
        for key, value in updates.items():
            if hasattr(product, key):
                setattr(product, key, value)
        db.commit()
        db.refresh(product)
        return product

    @staticmethod
    def delete(db: Session, product: Product) -> None:
        db.delete(product)
        db.commit()

    @staticmethod
    def count_order_items(db: Session, product_ids: list[str]) -> int:
        return db.query(func.count(OrderItem.id)).filter(OrderItem.product_id.in_(product_ids)).scalar() or 0

    @staticmethod
    def bulk_set_active(db: Session, product_ids: list[str], is_active: bool) -> int:
        count = (
            db.query(Product)
            .filter(Product.id.in_(product_ids))
            .update({Product.is_active: is_active}, synchronize_session=False)
        )
        db.commit()
        return count

    @staticmethod
    def bulk_delete(db: Session, product_ids: list[str]) -> int:
        products = db.query(Product).filter(Product.id.in_(product_ids)).all()
        for product in products:
            db.delete(product)
        db.commit()
        return len(products)

    @staticmethod
    def category_exists(db: Session, category_id: str) -> bool:
        return db.query(Category.id).filter(Category.id == category_id).first() is not None

    @staticmethod
    def sku_taken(db: Session, sku: str, exclude_id: Optional[str] = None) -> bool:
        query = db.query(Product.id).filter(Product.sku == sku)
        if exclude_id:
            query = query.filter(Product.id != exclude_id)
        return query.first() is not None
