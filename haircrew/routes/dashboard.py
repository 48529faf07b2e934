"""Admin dashboard, analytics and best-seller endpoints"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..audit import log_security_event
from ..auth import get_optional_user, require_admin
from ..database import get_db
from ..errors import DashboardError
from ..models import User
from ..pagination import parse_pagination_params
from ..rate_limiter import get_client_ip, metrics_rate_limiter
from ..services.analytics_service import get_analytics, get_dashboard, get_top_products

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin Dashboard"])


def _internal_error(context: str, error: Exception) -> JSONResponse:
    logger.error(f"❌ {context} failed: {error}", exc_info=True)
    return JSONResponse(status_code=500, content={"error": "Internal server error", "code": "INTERNAL_ERROR"})


@router.get("/dashboard")
async def dashboard(
    request: Request,
    page: Optional[str] = Query(None),
    pageSize: Optional[str] = Query(None),
    filter: Optional[str] = Query(None),
    _: None = Depends(metrics_rate_limiter),
    user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    """
    Dashboard metrics, charts and paginated tables.
    The rate limit applies before the admin check so anonymous polling is throttled too.
    """
    if not user or user.role != "ADMIN":
        log_security_event("unauthorized_dashboard_access", user.id if user else None, get_client_ip(request))
        return JSONResponse(status_code=401, content={"error": "Unauthorized", "code": "UNAUTHORIZED"})

    try:
        params = parse_pagination_params(page, pageSize, filter)
        return get_dashboard(db, params)
    except (DashboardError, HTTPException):
        raise
    except Exception as e:
        return _internal_error("Dashboard", e)


@router.get("/analytics")
async def analytics(
    dateRange: Optional[str] = Query(None),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        return get_analytics(db, dateRange)
    except (DashboardError, HTTPException):
        raise
    except Exception as e:
        return _internal_error("Analytics", e)


@router.get("/top-products")
async def top_products(admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    return get_top_products(db, limit=10)
