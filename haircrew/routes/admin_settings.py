"""Admin settings - the admin's own profile plus key/value store settings"""

import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from ..auth import require_admin
from ..database import get_db
from ..models import Setting, User
from ..security_utils import hash_password
from ..shared.validators import validate_email
from ..utils.sanitization import sanitize_dict, sanitize_string

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/settings", tags=["Admin Settings"])

SETTING_SECTIONS = ("store", "payment", "notifications")


def _bounded(value: Optional[str], label: str, minimum: int, maximum: int) -> Optional[str]:
    if value is None:
        return value
    if len(value) < minimum:
        raise ValueError(f"{label} must be at least {minimum} characters")
    if len(value) > maximum:
        raise ValueError(f"{label} must be less than {maximum} characters")
    return value


class ProfileSettings(BaseModel):
    name: str
    email: str
    password: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return _bounded(v.strip(), "Name", 1, 100)

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v):
        return validate_email(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        return _bounded(v, "Password", 6, 100)


class StoreSettings(BaseModel):
    storeName: str
    storeLogo: Optional[str] = None
    storeContact: str
    storeAddress: str

    @field_validator("storeName")
    @classmethod
    def validate_store_name(cls, v):
        return _bounded(v.strip(), "Store name", 1, 100)

    @field_validator("storeContact")
    @classmethod
    def validate_store_contact(cls, v):
        return validate_email(v)

    @field_validator("storeAddress")
    @classmethod
    def validate_store_address(cls, v):
        return _bounded(v, "Store address", 0, 300)


class PaymentSettings(BaseModel):
    upiId: Optional[str] = None
    stripeKey: Optional[str] = None
    stripePublishable: Optional[str] = None

    @field_validator("upiId")
    @classmethod
    def validate_upi_id(cls, v):
        return _bounded(v, "UPI ID", 0, 100)

    @field_validator("stripeKey", "stripePublishable")
    @classmethod
    def validate_keys(cls, v):
        return _bounded(v, "Key", 0, 200)


class NotificationSettings(BaseModel):
    orderNotifications: bool
    stockAlerts: bool
    emailNotifications: bool


class SettingsUpdate(BaseModel):
    profile: Optional[ProfileSettings] = None
    store: Optional[StoreSettings] = None
    payment: Optional[PaymentSettings] = None
    notifications: Optional[NotificationSettings] = None


def load_settings(db: Session) -> dict:
    """Decode the key/value rows; values that are not JSON come back as raw text"""
    settings = {}
    for row in db.query(Setting).all():
        try:
            settings[row.key] = json.loads(row.value)
        except (TypeError, ValueError):
            settings[row.key] = row.value
    return settings


def save_settings(db: Session, updates: dict) -> None:
    for key, value in updates.items():
        encoded = json.dumps(value)
        row = db.query(Setting).filter(Setting.key == key).first()
        if row:
            row.value = encoded
        else:
            db.add(Setting(key=key, value=encoded))


@router.get("")
async def get_settings(admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    settings = load_settings(db)
    return {
        "profile": {"name": admin.name, "email": admin.email},
        "store": settings.get("store") or {},
        "payment": settings.get("payment") or {},
        "notifications": settings.get("notifications") or {},
    }


@router.patch("")
async def update_settings(
    data: SettingsUpdate, admin: User = Depends(require_admin), db: Session = Depends(get_db)
):
    if data.profile:
        email = data.profile.email
        if email != admin.email and db.query(User).filter(User.email == email, User.id != admin.id).first():
            raise HTTPException(status_code=400, detail="Email already in use.")
        admin.name = sanitize_string(data.profile.name)
        admin.email = email
        if data.profile.password:
            admin.password_hash = hash_password(data.profile.password)

    updates = {}
    for section in SETTING_SECTIONS:
        value = getattr(data, section)
        if value is not None:
            updates[section] = sanitize_dict(value.model_dump())
    save_settings(db, updates)

    db.commit()
    sections = (["profile"] if data.profile else []) + sorted(updates)
    logger.info(f"✅ Admin {admin.id} updated settings: {sections}")
    return {"success": True}
