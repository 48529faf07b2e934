import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from ..auth import get_optional_user
from ..database import get_db
from ..models import CarouselImage, User
from ..shared.validators import validate_image_url
from ..utils.sanitization import sanitize_string

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/carousel", tags=["Carousel"])


class CarouselImageCreate(BaseModel):
    url: str
    altText: Optional[str] = None

    @field_validator("url")
    @classmethod
    def validate_url(cls, v):
        return validate_image_url(v)


def serialize_carousel_image(image: CarouselImage) -> dict:
    return {
        "id": image.id,
        "url": image.url,
        "altText": image.alt_text,
        "order": image.order,
        "createdBy": image.created_by,
        "createdAt": image.created_at.isoformat() if image.created_at else None,
    }


def _require_carousel_admin(user: Optional[User]) -> User:
    # Carousel management answers 403 (not 401) to anyone but an admin
    if not user or user.role != "ADMIN":
        raise HTTPException(status_code=403, detail="Unauthorized")
    return user


@router.get("")
async def list_carousel_images(db: Session = Depends(get_db)):
    images = db.query(CarouselImage).order_by(CarouselImage.order.asc(), CarouselImage.created_at.asc()).all()
    return [serialize_carousel_image(image) for image in images]


@router.post("")
async def add_carousel_image(
    data: CarouselImageCreate,
    user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    admin = _require_carousel_admin(user)
    image = CarouselImage(url=data.url, alt_text=sanitize_string(data.altText) or "", created_by=admin.id)
    db.add(image)
    db.commit()
    db.refresh(image)
    logger.info(f"✅ Carousel image {image.id} added by admin {admin.id}")
    return serialize_carousel_image(image)


@router.delete("", status_code=204)
async def delete_carousel_image(
    id: Optional[str] = Query(None),
    user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    admin = _require_carousel_admin(user)
    if not id:
        raise HTTPException(status_code=400, detail="Missing id")

    image = db.query(CarouselImage).filter(CarouselImage.id == id).first()
    if not image:
        raise HTTPException(status_code=404, detail="Carousel image not found")

    db.delete(image)
    db.commit()
    logger.info(f"🗑️ Carousel image {id} removed by admin {admin.id}")
    return Response(status_code=204)
