"""Newsletter signups, help requests and web-vitals collection"""

import logging
from datetime import datetime, timezone
from typing import Any, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from ..auth import require_admin
from ..database import get_db
from ..models import HelpRequest, NewsletterSignup, User, WebVital, utcnow
from ..services.notification_service import notify_admins
from ..shared.validators import validate_email
from ..utils.sanitization import validate_and_sanitize_input

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Community"])
admin_router = APIRouter(prefix="/admin", tags=["Admin Community"])


class NewsletterRequest(BaseModel):
    email: Optional[str] = None


class HelpRequestCreate(BaseModel):
    name: str
    email: str
    message: str
    type: Literal["QUERY", "COMPLAINT"]

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        v = validate_and_sanitize_input(v, max_length=100)
        if len(v) < 2:
            raise ValueError("Name must be at least 2 characters")
        return v

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v):
        return validate_email(v)

    @field_validator("message")
    @classmethod
    def validate_message(cls, v):
        v = validate_and_sanitize_input(v, max_length=2000)
        if len(v) < 5:
            raise ValueError("Message must be at least 5 characters")
        return v


class WebVitalReport(BaseModel):
    name: Optional[str] = None
    value: Any = None
    id: Optional[str] = None
    delta: Optional[float] = None
    url: Optional[str] = None
    userAgent: Optional[str] = None
    timestamp: Optional[float] = None  # epoch ms


def serialize_signup(signup: NewsletterSignup) -> dict:
    return {
        "id": signup.id,
        "email": signup.email,
        "createdAt": signup.created_at.isoformat() if signup.created_at else None,
    }


def serialize_help_request(help_request: HelpRequest) -> dict:
    return {
        "id": help_request.id,
        "name": help_request.name,
        "email": help_request.email,
        "message": help_request.message,
        "type": help_request.type,
        "createdAt": help_request.created_at.isoformat() if help_request.created_at else None,
    }


def serialize_web_vital(vital: WebVital) -> dict:
    return {
        "id": vital.id,
        "name": vital.name,
        "value": vital.value,
        "metricId": vital.metric_id,
        "delta": vital.delta,
        "url": vital.url,
        "userAgent": vital.user_agent,
        "timestamp": vital.timestamp.isoformat() if vital.timestamp else None,
    }


def _list_signups(db: Session) -> list[dict]:
    signups = db.query(NewsletterSignup).order_by(NewsletterSignup.created_at.desc()).all()
    return [serialize_signup(s) for s in signups]


# ============================================================================
# NEWSLETTER
# ============================================================================


@router.post("/newsletter", status_code=201)
async def newsletter_signup(data: NewsletterRequest, db: Session = Depends(get_db)):
    try:
        email = validate_email(data.email)
    except ValueError:
        email = None
    if not email:
        raise HTTPException(status_code=400, detail="Invalid email.")

    if db.query(NewsletterSignup).filter(NewsletterSignup.email == email).first():
        raise HTTPException(status_code=409, detail="Email already signed up.")

    signup = NewsletterSignup(email=email)
    db.add(signup)
    db.commit()
    db.refresh(signup)
    logger.info(f"📧 Newsletter signup: {email}")
    return serialize_signup(signup)


@router.get("/newsletter")
async def list_newsletter_signups(admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    return _list_signups(db)


@admin_router.get("/newsletter")
async def admin_list_newsletter_signups(admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    return _list_signups(db)


# ============================================================================
# HELP / COMPLAINTS
# ============================================================================


@router.post("/help", status_code=201)
async def submit_help_request(data: HelpRequestCreate, db: Session = Depends(get_db)):
    """Store a query or complaint; complaints are pushed to the admin dashboard"""
    help_request = HelpRequest(name=data.name, email=data.email, message=data.message, type=data.type)
    db.add(help_request)
    db.commit()
    db.refresh(help_request)

    if data.type == "COMPLAINT":
        try:
            notify_admins(
                db,
                "NEW_COMPLAINT",
                f"New complaint from {data.name}",
                {"name": data.name, "email": data.email, "message": data.message},
            )
        except Exception as e:
            db.rollback()
            logger.error(f"❌ Failed to record complaint notification: {e}")

    return serialize_help_request(help_request)


@admin_router.get("/complaints")
async def admin_list_complaints(admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    complaints = (
        db.query(HelpRequest)
        .filter(HelpRequest.type == "COMPLAINT")
        .order_by(HelpRequest.created_at.desc())
        .all()
    )
    return [serialize_help_request(c) for c in complaints]


# ============================================================================
# WEB VITALS
# ============================================================================


@router.post("/analytics/web-vitals")
async def record_web_vital(data: WebVitalReport, db: Session = Depends(get_db)):
    numeric = isinstance(data.value, (int, float)) and not isinstance(data.value, bool)
    if not data.name or not numeric:
        raise HTTPException(status_code=400, detail="Invalid data")

    timestamp = utcnow()
    if data.timestamp is not None:
        try:
            timestamp = datetime.fromtimestamp(data.timestamp / 1000, tz=timezone.utc).replace(tzinfo=None)
        except (OverflowError, OSError, ValueError) as e:
            raise HTTPException(status_code=400, detail="Invalid data") from e

    db.add(
        WebVital(
            name=data.name[:20],
            value=float(data.value),
            metric_id=data.id,
            delta=data.delta,
            url=(data.url or "")[:500],
            user_agent=(data.userAgent or "")[:500],
            timestamp=timestamp,
        )
    )
    db.commit()
    return {"success": True}


@router.get("/analytics/web-vitals")
async def list_web_vitals(
    limit: int = Query(100, ge=1, le=1000),
    metric: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    query = db.query(WebVital)
    if metric:
        query = query.filter(WebVital.name == metric)
    vitals = query.order_by(WebVital.timestamp.desc()).limit(limit).all()
    return {"vitals": [serialize_web_vital(v) for v in vitals]}
