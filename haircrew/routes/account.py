"""Customer account routes - wishlist and saved shipping addresses"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session, joinedload

from ..auth import get_current_user, get_optional_user
from ..database import get_db
from ..domain.orders.schemas import ShippingInfo
from ..domain.products.schemas import ProductResponse
from ..models import Address, Product, User, Wishlist
from ..shared.validators import (
    validate_indian_phone,
    validate_person_name,
    validate_pincode,
    validate_street_address,
)
from ..utils.sanitization import sanitize_dict

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/user", tags=["Account"])


class WishlistRequest(BaseModel):
    productId: Optional[str] = None


class AddressCreate(ShippingInfo):
    isDefault: bool = False


class AddressUpdate(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    country: Optional[str] = None
    isDefault: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return validate_person_name(v, "Name") if v is not None else v

    @field_validator("city")
    @classmethod
    def validate_city(cls, v):
        return validate_person_name(v, "City") if v is not None else v

    @field_validator("state")
    @classmethod
    def validate_state(cls, v):
        return validate_person_name(v, "State") if v is not None else v

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        return validate_indian_phone(v) if v is not None else v

    @field_validator("pincode")
    @classmethod
    def validate_pincode(cls, v):
        return validate_pincode(v) if v is not None else v

    @field_validator("address")
    @classmethod
    def validate_address(cls, v):
        return validate_street_address(v) if v is not None else v


class AddressDelete(BaseModel):
    id: Optional[str] = None


ADDRESS_FIELDS = {
    "name": "name",
    "phone": "phone",
    "address": "address",
    "city": "city",
    "state": "state",
    "pincode": "pincode",
    "country": "country",
    "isDefault": "is_default",
}


def serialize_address(address: Address) -> dict:
    return {
        "id": address.id,
        "userId": address.user_id,
        "name": address.name,
        "phone": address.phone,
        "address": address.address,
        "city": address.city,
        "state": address.state,
        "pincode": address.pincode,
        "country": address.country,
        "isDefault": address.is_default,
        "createdAt": address.created_at.isoformat() if address.created_at else None,
    }


def _clear_other_defaults(db: Session, user_id: str, keep_id: Optional[str] = None) -> None:
    query = db.query(Address).filter(Address.user_id == user_id, Address.is_default.is_(True))
    if keep_id:
        query = query.filter(Address.id != keep_id)
    for other in query.all():
        other.is_default = False


# ============================================================================
# WISHLIST
# ============================================================================


@router.get("/wishlist")
async def get_wishlist(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    items = (
        db.query(Wishlist)
        .options(joinedload(Wishlist.product))
        .filter(Wishlist.user_id == current_user.id)
        .order_by(Wishlist.created_at.desc())
        .all()
    )
    return [
        {
            "id": item.id,
            "userId": item.user_id,
            "productId": item.product_id,
            "createdAt": item.created_at.isoformat() if item.created_at else None,
            "product": ProductResponse.from_model(item.product).model_dump(mode="json") if item.product else None,
        }
        for item in items
    ]


@router.post("/wishlist")
async def add_to_wishlist(
    data: WishlistRequest, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    if not data.productId:
        raise HTTPException(status_code=400, detail="Product ID required")

    if not db.query(Product.id).filter(Product.id == data.productId).first():
        raise HTTPException(status_code=404, detail="Product not found")

    exists = (
        db.query(Wishlist)
        .filter(Wishlist.user_id == current_user.id, Wishlist.product_id == data.productId)
        .first()
    )
    if exists:
        raise HTTPException(status_code=400, detail="Already in wishlist")

    db.add(Wishlist(user_id=current_user.id, product_id=data.productId))
    db.commit()
    return {"success": True}


@router.delete("/wishlist")
async def remove_from_wishlist(
    data: WishlistRequest, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    if not data.productId:
        raise HTTPException(status_code=400, detail="Product ID required")

    db.query(Wishlist).filter(
        Wishlist.user_id == current_user.id, Wishlist.product_id == data.productId
    ).delete(synchronize_session=False)
    db.commit()
    return {"success": True}


# ============================================================================
# ADDRESSES
# ============================================================================


@router.get("/addresses")
async def list_addresses(user: Optional[User] = Depends(get_optional_user), db: Session = Depends(get_db)):
    """Signed-out visitors simply have no saved addresses"""
    if not user:
        return []
    addresses = (
        db.query(Address)
        .filter(Address.user_id == user.id)
        .order_by(Address.is_default.desc(), Address.created_at.asc())
        .all()
    )
    return [serialize_address(a) for a in addresses]


@router.post("/addresses")
async def create_address(
    data: AddressCreate, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    values = sanitize_dict(data.model_dump(exclude={"isDefault"}))
    if data.isDefault:
        _clear_other_defaults(db, current_user.id)

    address = Address(user_id=current_user.id, is_default=data.isDefault, **values)
    db.add(address)
    db.commit()
    db.refresh(address)
    return serialize_address(address)


@router.put("/addresses")
async def update_address(
    data: AddressUpdate, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    if not data.id:
        raise HTTPException(status_code=400, detail="Address ID required")

    address = db.query(Address).filter(Address.id == data.id, Address.user_id == current_user.id).first()
    if not address:
        raise HTTPException(status_code=404, detail="Address not found or not yours")

    updates = sanitize_dict(data.model_dump(exclude_unset=True, exclude={"id"}))
    for field, column in ADDRESS_FIELDS.items():
        if field in updates and updates[field] is not None:
            setattr(address, column, updates[field])
    if updates.get("isDefault"):
        _clear_other_defaults(db, current_user.id, keep_id=address.id)

    db.commit()
    db.refresh(address)
    return serialize_address(address)


@router.delete("/addresses")
async def delete_address(
    data: AddressDelete, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    if not data.id:
        raise HTTPException(status_code=400, detail="Address ID required")

    deleted = (
        db.query(Address)
        .filter(Address.id == data.id, Address.user_id == current_user.id)
        .delete(synchronize_session=False)
    )
    db.commit()
    if deleted == 0:
        raise HTTPException(status_code=404, detail="Address not found or not yours")
    return {"success": True}
