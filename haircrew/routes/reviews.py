import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session, joinedload

from ..auth import get_current_user, require_admin
from ..database import get_db
from ..models import Product, Review, User
from ..utils.sanitization import sanitize_string

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["Reviews"])
admin_router = APIRouter(prefix="/admin/reviews", tags=["Admin Reviews"])


class ReviewCreate(BaseModel):
    rating: int
    title: str
    comment: str

    @field_validator("rating")
    @classmethod
    def validate_rating(cls, v):
        if v < 1:
            raise ValueError("Rating must be at least 1")
        if v > 5:
            raise ValueError("Rating must be at most 5")
        return v

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        v = v.strip()
        if len(v) < 3:
            raise ValueError("Review title must be at least 3 characters")
        if len(v) > 100:
            raise ValueError("Review title must be less than 100 characters")
        return v

    @field_validator("comment")
    @classmethod
    def validate_comment(cls, v):
        v = v.strip()
        if len(v) < 10:
            raise ValueError("Review comment must be at least 10 characters")
        if len(v) > 500:
            raise ValueError("Review comment must be less than 500 characters")
        return v


def serialize_review(review: Review, include_email: bool = False, include_product: bool = False) -> dict:
    user = {"name": review.user.name if review.user else None}
    if include_email:
        user["email"] = review.user.email if review.user else None

    data = {
        "id": review.id,
        "userId": review.user_id,
        "productId": review.product_id,
        "rating": review.rating,
        "title": review.title,
        "comment": review.comment,
        "isVerified": review.is_verified,
        "createdAt": review.created_at.isoformat() if review.created_at else None,
        "user": user,
    }
    if include_product:
        data["product"] = (
            {"name": review.product.name, "slug": review.product.slug} if review.product else None
        )
    return data


def _get_product_id(db: Session, slug: str) -> str:
    product = db.query(Product.id).filter(Product.slug == slug).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product.id


@router.get("/{slug}/reviews")
async def list_reviews(
    slug: str,
    page: int = Query(1, ge=1),
    pageSize: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    product_id = _get_product_id(db, slug)
    query = db.query(Review).filter(Review.product_id == product_id)
    total = query.count()
    reviews = (
        query.options(joinedload(Review.user))
        .order_by(Review.created_at.desc())
        .offset((page - 1) * pageSize)
        .limit(pageSize)
        .all()
    )
    return {"reviews": [serialize_review(r) for r in reviews], "total": total}


@router.post("/{slug}/reviews", status_code=201)
async def create_review(
    slug: str,
    data: ReviewCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    product_id = _get_product_id(db, slug)

    existing = (
        db.query(Review).filter(Review.user_id == current_user.id, Review.product_id == product_id).first()
    )
    if existing:
        logger.warning(f"⚠️ Duplicate review attempt by {current_user.id} on product {product_id}")
        raise HTTPException(status_code=400, detail="You have already reviewed this product")

    review = Review(
        user_id=current_user.id,
        product_id=product_id,
        rating=data.rating,
        title=sanitize_string(data.title),
        comment=sanitize_string(data.comment),
    )
    db.add(review)
    db.commit()
    db.refresh(review)

    logger.info(f"✅ Review {review.id} created by {current_user.id} for product {product_id}")
    return serialize_review(review)


@admin_router.get("")
async def admin_list_reviews(admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    reviews = (
        db.query(Review)
        .options(joinedload(Review.user), joinedload(Review.product))
        .order_by(Review.created_at.desc())
        .all()
    )
    return [serialize_review(r, include_email=True, include_product=True) for r in reviews]
