"""
API route modules.

Each module defines routes for one domain area.
"""

from routes.lookup import router as lookup_router
from routes.products import router as products_router
from routes.manuals import router as manuals_router
from routes.logs import router as logs_router
from routes.dashboard import router as dashboard_router

__all__ = [
    "lookup_router",
    "products_router",
    "manuals_router",
    "logs_router",
    "dashboard_router",
]
