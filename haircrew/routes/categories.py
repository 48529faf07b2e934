"""Category routes - cached storefront listing and admin management"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, field_validator
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ..audit import log_product_event
from ..auth import require_admin
from ..cache import CATEGORIES_TTL, build_categories_key, cache, invalidate_catalog_cache
from ..database import get_db
from ..models import Category, Product, User
from ..pagination import total_pages
from ..utils.sanitization import sanitize_string
from ..utils.slugs import unique_slug

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/categories", tags=["Categories"])
admin_router = APIRouter(prefix="/admin/categories", tags=["Admin Categories"])


def validate_category_name(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Category name is required")
    if len(v) > 100:
        raise ValueError("Category name must be less than 100 characters")
    return v


class CategoryCreate(BaseModel):
    name: str
    description: Optional[str] = None
    image: Optional[str] = None
    isActive: bool = True

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return validate_category_name(v)


class CategoryUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    isActive: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if v is None:
            return v
        return validate_category_name(v)


def serialize_category(category: Category, product_count: Optional[int] = None) -> dict:
    data = {
        "id": category.id,
        "name": category.name,
        "slug": category.slug,
        "description": category.description,
        "image": category.image,
        "isActive": category.is_active,
        "createdAt": category.created_at.isoformat() if category.created_at else None,
        "updatedAt": category.updated_at.isoformat() if category.updated_at else None,
    }
    if product_count is not None:
        data["_count"] = {"products": product_count}
    return data


def _get_category_or_404(db: Session, category_id: str) -> Category:
    category = db.query(Category).filter(Category.id == category_id).first()
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


@router.get("")
async def list_categories(
    page: int = Query(1, ge=1),
    pageSize: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """Active categories by name (cached 5 minutes)"""
    cache_key = build_categories_key(page, pageSize)
    cached = cache.get(cache_key)
    if cached is not None:
        return cached

    query = db.query(Category).filter(Category.is_active.is_(True))
    total = query.count()
    categories = query.order_by(Category.name.asc()).offset((page - 1) * pageSize).limit(pageSize).all()

    result = {
        "categories": [{"id": c.id, "name": c.name, "slug": c.slug} for c in categories],
        "total": total,
    }
    cache.set(cache_key, result, CATEGORIES_TTL)
    return result


# ============================================================================
# ADMIN
# ============================================================================


@admin_router.get("")
async def admin_list_categories(
    page: int = Query(1, ge=1),
    pageSize: int = Query(50, ge=1, le=100),
    search: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    query = db.query(Category)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(Category.name.ilike(pattern), Category.description.ilike(pattern)))
    if status == "active":
        query = query.filter(Category.is_active.is_(True))
    elif status == "inactive":
        query = query.filter(Category.is_active.is_(False))

    total = query.count()
    categories = query.order_by(Category.created_at.desc()).offset((page - 1) * pageSize).limit(pageSize).all()

    counts = dict(
        db.query(Product.category_id, func.count(Product.id))
        .filter(Product.category_id.in_([c.id for c in categories]))
        .group_by(Product.category_id)
        .all()
    )

    return {
        "categories": [serialize_category(c, counts.get(c.id, 0)) for c in categories],
        "total": total,
        "page": page,
        "pageSize": pageSize,
        "totalPages": total_pages(total, pageSize),
    }


@admin_router.post("", status_code=201)
async def admin_create_category(
    data: CategoryCreate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    name = sanitize_string(data.name)
    category = Category(
        name=name,
        slug=unique_slug(name),
        description=sanitize_string(data.description) if data.description else None,
        image=data.image or None,
        is_active=data.isActive,
    )
    db.add(category)
    db.commit()
    db.refresh(category)

    invalidate_catalog_cache()
    log_product_event("category_created", category.id, admin.id)
    return {"data": serialize_category(category)}


@admin_router.patch("/{category_id}")
async def admin_update_category(
    category_id: str,
    data: CategoryUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    category = _get_category_or_404(db, category_id)

    updates = data.model_dump(exclude_unset=True)
    if updates.get("name"):
        category.name = sanitize_string(updates["name"])
    if updates.get("description"):
        category.description = sanitize_string(updates["description"])
    if "image" in updates:
        category.image = updates["image"] or None
    if updates.get("isActive") is not None:
        category.is_active = updates["isActive"]

    db.commit()
    db.refresh(category)

    invalidate_catalog_cache()
    log_product_event("category_updated", category.id, admin.id, fields=sorted(updates))
    return {"data": serialize_category(category)}


@admin_router.delete("/{category_id}")
async def admin_delete_category(
    category_id: str,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    category = _get_category_or_404(db, category_id)

    if db.query(Product).filter(Product.category_id == category.id).count() > 0:
        raise HTTPException(status_code=400, detail="Cannot delete category with existing products")

    db.delete(category)
    db.commit()

    invalidate_catalog_cache()
    log_product_event("category_deleted", category_id, admin.id)
    return {"success": True}
