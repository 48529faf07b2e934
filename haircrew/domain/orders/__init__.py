"""Orders domain - checkout, order history, status transitions and CSV export"""

from .router import admin_router, router

__all__ = ["router", "admin_router"]
