import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, field_validator
from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..audit import log_security_event
from ..auth import require_admin
from ..database import get_db
from ..models import User
from ..pagination import clamp_page, clamp_page_size, total_pages
from ..rate_limiter import get_client_ip

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/users", tags=["Admin Users"])


class UserRoleUpdate(BaseModel):
    id: str
    role: Optional[Literal["USER", "ADMIN"]] = None

    @field_validator("id")
    @classmethod
    def validate_id(cls, v):
        if not v:
            raise ValueError("User ID required")
        return v


class UserDelete(BaseModel):
    id: str

    @field_validator("id")
    @classmethod
    def validate_id(cls, v):
        if not v:
            raise ValueError("User ID required")
        return v


def serialize_admin_user(user: User) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "image": user.image,
        "createdAt": user.created_at.isoformat() if user.created_at else None,
        "updatedAt": user.updated_at.isoformat() if user.updated_at else None,
    }


@router.get("")
async def list_users(
    search: Optional[str] = Query(None),
    page: int = Query(1),
    pageSize: int = Query(20),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Users newest first; out-of-range page/pageSize are clamped rather than rejected"""
    page = clamp_page(page)
    pageSize = clamp_page_size(pageSize, default=20)

    query = db.query(User)
    if search and search.strip():
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(User.name.ilike(pattern), User.email.ilike(pattern)))

    total = query.count()
    users = query.order_by(User.created_at.desc()).offset((page - 1) * pageSize).limit(pageSize).all()
    return {
        "users": [serialize_admin_user(u) for u in users],
        "total": total,
        "page": page,
        "pageSize": pageSize,
        "totalPages": total_pages(total, pageSize),
    }


@router.patch("")
async def update_user_role(
    data: UserRoleUpdate,
    request: Request,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    if data.id == admin.id and data.role == "USER":
        log_security_event("self_demotion_blocked", admin.id, get_client_ip(request))
        raise HTTPException(status_code=400, detail="Cannot demote yourself")

    user = db.query(User).filter(User.id == data.id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    if data.role:
        previous = user.role
        user.role = data.role
        db.commit()
        db.refresh(user)
        logger.info(f"✅ Admin {admin.id} changed role of {user.id}: {previous} → {user.role}")

    return {
        "data": {
            "id": user.id,
            "name": user.name,
            "email": user.email,
            "role": user.role,
            "updatedAt": user.updated_at.isoformat() if user.updated_at else None,
        }
    }


@router.delete("")
async def delete_user(
    data: UserDelete,
    request: Request,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    if data.id == admin.id:
        log_security_event("self_deletion_blocked", admin.id, get_client_ip(request))
        raise HTTPException(status_code=400, detail="Cannot delete yourself")

    user = db.query(User).filter(User.id == data.id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    # Orders and carousel images outlive their owner
    for order in user.orders:
        order.user_id = None
    for image in user.carousel_images:
        image.created_by = None
    db.delete(user)
    db.commit()

    logger.info(f"🗑️ Admin {admin.id} deleted user {data.id}")
    return {"success": True}
