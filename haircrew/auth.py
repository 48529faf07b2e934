import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request, Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .config import IS_PRODUCTION, SESSION_COOKIE_NAME, SESSION_MAX_AGE_DAYS
from .database import get_db
from .models import User
from .security_utils import verify_jwt_token

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_session_token(
    request: Request, credentials: Optional[HTTPAuthorizationCredentials]
) -> Optional[str]:
    """Bearer header wins over the session cookie"""
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(SESSION_COOKIE_NAME)


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=token,
        max_age=SESSION_MAX_AGE_DAYS * 24 * 60 * 60,
        httponly=True,
        secure=IS_PRODUCTION,
        samesite="lax",
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(key=SESSION_COOKIE_NAME, path="/")


def _resolve_user(token: Optional[str], db: Session) -> Optional[User]:
    if not token:
        return None
    payload = verify_jwt_token(token)
    if not payload or not payload.get("sub"):
        return None
    return db.query(User).filter(User.id == payload["sub"]).first()


async def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Current user if the request carries a valid session, otherwise None"""
    return _resolve_user(get_session_token(request, credentials), db)


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Get current user from the session token"""
    token = get_session_token(request, credentials)
    if not token:
        raise HTTPException(status_code=401, detail="Unauthorized")

    payload = verify_jwt_token(token)
    if not payload or not payload.get("sub"):
        logger.warning("⚠️ Rejected invalid or expired session token")
        raise HTTPException(status_code=401, detail="Unauthorized")

    user = db.query(User).filter(User.id == payload["sub"]).first()
    if not user:
        # Session outlived the account (deleted user)
        logger.warning(f"⚠️ Session for missing user {payload['sub']}")
        raise HTTPException(status_code=401, detail="User not found. Please sign in again.")

    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """Admin-only routes answer 401 to signed-in customers as well"""
    if user.role != "ADMIN":
        logger.warning(f"⚠️ Non-admin {user.id} attempted admin access")
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user
