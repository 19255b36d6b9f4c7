# Back-office Routes

from .auth import router as auth_router
from .resources import router as resources_router
from .orders import router as orders_router
from .catalog import router as catalog_router
from .settings import router as settings_router

__all__ = [
    "auth_router",
    "resources_router",
    "orders_router",
    "catalog_router",
    "settings_router",
]
