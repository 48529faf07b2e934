import logging
from datetime import timedelta
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, Response
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from .. import email_service
from ..audit import log_auth_event
from ..auth import clear_session_cookie, get_optional_user, set_session_cookie
from ..config import BASE_URL, PASSWORD_RESET_TTL_MINUTES
from ..database import get_db
from ..models import PasswordResetToken, User, utcnow
from ..rate_limiter import get_client_ip, sensitive_rate_limiter
from ..security_utils import create_session_token, generate_reset_token, hash_password, verify_password
from ..services.notification_service import send_notification
from ..shared.validators import validate_email, validate_password_strength, validate_person_name
from ..utils.sanitization import sanitize_string

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


class RegisterRequest(BaseModel):
    name: str
    email: str
    password: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return validate_person_name(v, "Name")

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v):
        v = validate_email(v)
        if not v or len(v) < 5:
            raise ValueError("Email must be at least 5 characters")
        if len(v) > 100:
            raise ValueError("Email must be less than 100 characters")
        return v

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        return validate_password_strength(v)


class LoginRequest(BaseModel):
    email: str
    password: str


class ResetPasswordRequest(BaseModel):
    email: Optional[str] = None


class ResetPasswordConfirm(BaseModel):
    email: str
    token: str
    password: str

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        return validate_password_strength(v)


def serialize_session_user(user: User) -> dict:
    return {"id": user.id, "name": user.name, "email": user.email, "role": user.role, "image": user.image}


@router.post("/register")
async def register(
    data: RegisterRequest, request: Request, background_tasks: BackgroundTasks, db: Session = Depends(get_db)
):
    """Create a customer account; the welcome email is best effort"""
    ip = get_client_ip(request)
    email = sanitize_string(data.email).lower()

    if db.query(User).filter(User.email == email).first():
        log_auth_event("failed_register", None, ip, email=email, reason="duplicate")
        raise HTTPException(status_code=400, detail="Email already in use.")

    user = User(name=sanitize_string(data.name), email=email, password_hash=hash_password(data.password), role="USER")
    db.add(user)
    db.commit()
    db.refresh(user)
    log_auth_event("register", user.id, ip)

    background_tasks.add_task(
        send_notification,
        notification_type="welcome",
        channel=None,
        event=None,
        payload=None,
        recipient_email=user.email,
        email_func=email_service.send_welcome_email,
        email_kwargs={"to": user.email, "user_name": user.name or ""},
    )
    return {"success": True}


@router.post("/login")
async def login(data: LoginRequest, request: Request, response: Response, db: Session = Depends(get_db)):
    ip = get_client_ip(request)
    email = data.email.strip().lower()
    user = db.query(User).filter(User.email == email).first()

    if not user or not verify_password(data.password, user.password_hash):
        log_auth_event("failed_login", user.id if user else None, ip, email=email)
        raise HTTPException(status_code=401, detail="Invalid email or password")

    token = create_session_token(user)
    set_session_cookie(response, token)
    log_auth_event("login", user.id, ip)
    return {"token": token, "user": serialize_session_user(user)}


@router.post("/logout")
async def logout(
    request: Request, response: Response, user: Optional[User] = Depends(get_optional_user)
):
    clear_session_cookie(response)
    if user:
        log_auth_event("logout", user.id, get_client_ip(request))
    return {"success": True}


@router.get("/session")
async def session(user: Optional[User] = Depends(get_optional_user)):
    return {"user": serialize_session_user(user) if user else None}


@router.post("/reset-password")
async def request_password_reset(
    data: ResetPasswordRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    _: None = Depends(sensitive_rate_limiter),
):
    """
    Issue a one-hour reset token and email the link.
    Always answers success so the endpoint does not reveal which emails exist.
    """
    if not data.email or not data.email.strip():
        raise HTTPException(status_code=400, detail="Email is required.")

    email = data.email.strip().lower()
    user = db.query(User).filter(User.email == email).first()
    if user:
        token = generate_reset_token()
        expires = utcnow() + timedelta(minutes=PASSWORD_RESET_TTL_MINUTES)
        record = db.query(PasswordResetToken).filter(PasswordResetToken.user_id == user.id).first()
        if record:
            record.token = token
            record.expires = expires
        else:
            db.add(PasswordResetToken(user_id=user.id, token=token, expires=expires))
        db.commit()

        reset_link = f"{BASE_URL}/auth/reset-password?token={token}"
        log_auth_event("password_reset_requested", user.id, get_client_ip(request))
        background_tasks.add_task(
            send_notification,
            notification_type="password_reset",
            channel=None,
            event=None,
            payload=None,
            recipient_email=user.email,
            email_func=email_service.send_password_reset_email,
            email_kwargs={"to": user.email, "user_name": user.name or "", "reset_link": reset_link},
        )
    else:
        logger.info("Password reset requested for unknown email")

    return {"success": True}


@router.post("/reset-password/confirm")
async def confirm_password_reset(data: ResetPasswordConfirm, request: Request, db: Session = Depends(get_db)):
    record = db.query(PasswordResetToken).filter(PasswordResetToken.token == data.token).first()
    if (
        not record
        or record.user is None
        or record.user.email != data.email.strip().lower()
        or record.expires < utcnow()
    ):
        log_auth_event("failed_password_reset", record.user_id if record else None, get_client_ip(request))
        raise HTTPException(status_code=400, detail="Invalid or expired reset token")

    user = record.user
    user.password_hash = hash_password(data.password)
    db.delete(record)
    db.commit()
    log_auth_event("password_reset", user.id, get_client_ip(request))
    return {"success": True}
