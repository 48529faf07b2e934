"""Product service - Business logic for catalog and admin product operations"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...audit import log_product_event
from ...cache import LATEST_PRODUCTS_TTL, build_latest_products_key, cache, invalidate_catalog_cache
from ...models import Product, User
from ...services.pusher_service import PRODUCTS_CHANNEL, broadcast
from ...utils.sanitization import sanitize_string
from ...utils.slugs import unique_slug
from .repository import ProductRepository
from .schemas import BULK_ACTIONS, ProductCard, ProductCreate, ProductListQuery, ProductUpdate

logger = logging.getLogger(__name__)

# Camel-case request fields mapped to model columns
UPDATE_FIELDS = {
    "name": "name",
    "description": "description",
    "price": "price",
    "comparePrice": "compare_price",
    "stock": "stock",
    "categoryId": "category_id",
    "images": "images",
    "sku": "sku",
    "barcode": "barcode",
    "weight": "weight",
    "dimensions": "dimensions",
    "isActive": "is_active",
    "isFeatured": "is_featured",
}
SANITIZED_FIELDS = {"name", "description", "sku", "barcode", "dimensions"}


class ProductService:
    """Service layer for product business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ProductRepository()

    # ------------------------------------------------------------------
    # Storefront
    # ------------------------------------------------------------------

    def list_products(self, query: ProductListQuery) -> tuple[list[Product], int]:
        return self.repo.list_active(
            self.db,
            category_slug=query.category,
            search=query.search,
            price_range=query.priceRange,
            stock_status=query.stockStatus,
            sort_by=query.sortBy,
            offset=(query.page - 1) * query.pageSize,
            limit=query.pageSize,
        )

    def latest_products(self, take: int, search: Optional[str] = None) -> list[dict]:
        """Newest active products; the unfiltered list is cached briefly"""
        cache_key = build_latest_products_key(take) if not search else None
        if cache_key:
            cached = cache.get(cache_key)
            if cached is not None:
                return cached

        products = [
            ProductCard.from_model(p).model_dump() for p in self.repo.list_latest(self.db, take, search)
        ]
        if cache_key:
            cache.set(cache_key, products, LATEST_PRODUCTS_TTL)
        return products

    def get_product(self, slug: str) -> Product:
        product = self.repo.get_by_slug(self.db, slug)
        if not product:
            raise HTTPException(status_code=404, detail="Product not found")
        return product

    def related_products(self, slug: str) -> list[Product]:
        product = self.get_product(slug)
        return self.repo.list_related(self.db, product)

    def update_stock(self, slug: str, stock: int, admin: User) -> Product:
        product = self.get_product(slug)
        product = self.repo.update(self.db, product, stock=stock)
        log_product_event("stock_updated", product.id, admin.id, stock=stock)
        invalidate_catalog_cache()
        broadcast(
            PRODUCTS_CHANNEL,
            "stock-updated",
            {"id": product.id, "name": product.name, "stock": product.stock, "slug": product.slug},
        )
        return product

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------

    def admin_list(
        self,
        page: int,
        page_size: int,
        search: Optional[str],
        category_id: Optional[str],
        status: Optional[str],
        stock_status: Optional[str],
    ) -> tuple[list[Product], int]:
        return self.repo.list_admin(
            self.db,
            search=search,
            category_id=category_id,
            status=status,
            stock_status=stock_status,
            offset=(page - 1) * page_size,
            limit=page_size,
        )

    def get_by_id(self, product_id: str) -> Product:
        product = self.repo.get_by_id(self.db, product_id)
        if not product:
            raise HTTPException(status_code=404, detail="Product not found")
        return product

    def create_product(self, data: ProductCreate, admin: User) -> Product:
        logger.info(f"📥 Creating product '{data.name}' for admin {admin.id}")

        if not self.repo.category_exists(self.db, data.categoryId):
            raise HTTPException(status_code=400, detail="Category not found")

        sku = sanitize_string(data.sku)
        if self.repo.sku_taken(self.db, sku):
            raise HTTPException(status_code=400, detail="SKU already exists")

        name = sanitize_string(data.name)
        product = self.repo.create(
            self.db,
            name=name,
            slug=unique_slug(name),
            description=sanitize_string(data.description) if data.description else "",
            price=data.price,
            compare_price=data.comparePrice,
            stock=data.stock,
            category_id=data.categoryId,
            images=data.images,
            sku=sku,
            weight=data.weight,
            dimensions=sanitize_string(data.dimensions) if data.dimensions else "",
            is_active=True,
            is_featured=False,
        )
        log_product_event("created", product.id, admin.id)
        invalidate_catalog_cache()
        return product

    def update_product(self, product_id: str, data: ProductUpdate, admin: User) -> Product:
        product = self.get_by_id(product_id)

        updates = {}
        for field, value in data.model_dump(exclude_unset=True).items():
            if value is None:
                continue
            if field in SANITIZED_FIELDS:
                value = sanitize_string(value)
            updates[UPDATE_FIELDS[field]] = value

        if "category_id" in updates and not self.repo.category_exists(self.db, updates["category_id"]):
            raise HTTPException(status_code=400, detail="Category not found")
        if "sku" in updates and self.repo.sku_taken(self.db, updates["sku"], exclude_id=product.id):
            raise HTTPException(status_code=400, detail="SKU already exists")

        product = self.repo.update(self.db, product, **updates)
        log_product_event("updated", product.id, admin.id, fields=sorted(updates))
        invalidate_catalog_cache()
        return product

    def delete_product(self, product_id: str, admin: User) -> None:
        product = self.get_by_id(product_id)
        if self.repo.count_order_items(self.db, [product.id]) > 0:
            raise HTTPException(status_code=400, detail="Cannot delete product with existing orders")
        self.repo.delete(self.db, product)
        log_product_event("deleted", product_id, admin.id)
        invalidate_catalog_cache()

    def bulk_action(self, action: Optional[str], ids: Optional[list[str]], admin: User) -> int:
        if not ids:
            raise HTTPException(status_code=400, detail="No product IDs provided")
        if action not in BULK_ACTIONS:
            raise HTTPException(status_code=400, detail="Invalid action")

        if action == "delete":
            if self.repo.count_order_items(self.db, ids) > 0:
                raise HTTPException(status_code=400, detail="Cannot delete products with existing orders")
            count = self.repo.bulk_delete(self.db, ids)
        else:
            count = self.repo.bulk_set_active(self.db, ids, action == "activate")

        log_product_event(f"bulk_{action}", ",".join(ids), admin.id, count=count)
        invalidate_catalog_cache()
        return count
