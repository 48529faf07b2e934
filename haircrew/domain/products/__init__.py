"""Products domain - storefront catalog and admin product management"""

from .router import admin_router, router

__all__ = ["router", "admin_router"]
