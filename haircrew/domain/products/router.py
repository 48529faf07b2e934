"""Product router - storefront catalog and admin product endpoints"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import ValidationError
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from ...models import User
from ...pagination import total_pages
from .schemas import (
    AdminProductListResponse,
    BulkActionRequest,
    ProductCard,
    ProductCreate,
    ProductListQuery,
    ProductListResponse,
    ProductResponse,
    ProductUpdate,
    StockUpdate,
)
from .service import ProductService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["Products"])
admin_router = APIRouter(prefix="/admin/products", tags=["Admin Products"])


def get_product_service(db: Session = Depends(get_db)) -> ProductService:
    """Dependency injection for ProductService"""
    return ProductService(db)


# ============================================================================
# STOREFRONT
# ============================================================================


@router.get("", response_model=ProductListResponse)
async def list_products(request: Request, service: ProductService = Depends(get_product_service)):
    """Active products with category, search, price, stock filters and sorting"""
    try:
        query = ProductListQuery(**dict(request.query_params))
    except ValidationError as e:
        logger.warning(f"⚠️ Invalid product query params: {dict(request.query_params)}")
        raise HTTPException(status_code=400, detail="Invalid query params") from e

    products, total = service.list_products(query)
    return ProductListResponse(products=[ProductResponse.from_model(p) for p in products], total=total)


@router.get("/latest", response_model=list[ProductCard])
async def latest_products(
    take: int = Query(6, ge=1, le=50),
    search: Optional[str] = Query(None),
    service: ProductService = Depends(get_product_service),
):
    return service.latest_products(take, search)


@router.get("/{slug}", response_model=ProductResponse)
async def get_product(slug: str, service: ProductService = Depends(get_product_service)):
    return ProductResponse.from_model(service.get_product(slug), include_category=True)


@router.patch("/{slug}", response_model=ProductResponse)
async def update_product_stock(
    slug: str,
    data: StockUpdate,
    admin: User = Depends(require_admin),
    service: ProductService = Depends(get_product_service),
):
    """Set stock level and push the change to storefront subscribers"""
    return ProductResponse.from_model(service.update_stock(slug, data.stock, admin))


@router.get("/{slug}/related", response_model=list[ProductCard])
async def related_products(slug: str, service: ProductService = Depends(get_product_service)):
    return [ProductCard.from_model(p) for p in service.related_products(slug)]


# ============================================================================
# ADMIN
# ============================================================================


@admin_router.get("", response_model=AdminProductListResponse)
async def admin_list_products(
    page: int = Query(1, ge=1),
    pageSize: int = Query(50, ge=1, le=100),
    search: Optional[str] = Query(None),
    categoryId: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    stockStatus: Optional[str] = Query(None),
    admin: User = Depends(require_admin),
    service: ProductService = Depends(get_product_service),
):
    products, total = service.admin_list(page, pageSize, search, categoryId, status, stockStatus)
    return AdminProductListResponse(
        products=[ProductResponse.from_model(p, include_category=True) for p in products],
        total=total,
        page=page,
        pageSize=pageSize,
        totalPages=total_pages(total, pageSize),
    )


@admin_router.post("", status_code=201)
async def admin_create_product(
    data: ProductCreate,
    admin: User = Depends(require_admin),
    service: ProductService = Depends(get_product_service),
):
    product = service.create_product(data, admin)
    return {"data": ProductResponse.from_model(product)}


@admin_router.post("/bulk")
async def admin_bulk_action(
    data: BulkActionRequest,
    admin: User = Depends(require_admin),
    service: ProductService = Depends(get_product_service),
):
    """Delete, activate or deactivate several products at once"""
    count = service.bulk_action(data.action, data.ids, admin)
    return {"success": True, "result": {"count": count}}


@admin_router.patch("/{product_id}")
async def admin_update_product(
    product_id: str,
    data: ProductUpdate,
    admin: User = Depends(require_admin),
    service: ProductService = Depends(get_product_service),
):
    product = service.update_product(product_id, data, admin)
    return {"data": ProductResponse.from_model(product, include_category=True)}


@admin_router.delete("/{product_id}")
async def admin_delete_product(
    product_id: str,
    admin: User = Depends(require_admin),
    service: ProductService = Depends(get_product_service),
):
    service.delete_product(product_id, admin)
    return {"success": True}
