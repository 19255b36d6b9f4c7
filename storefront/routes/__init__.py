# Storefront Service Routes

from .session import router as session_router
from .auth import router as auth_router
from .catalog import router as catalog_router
from .cart import router as cart_router
from .checkout import router as checkout_router
from .orders import router as orders_router
from .profile import router as profile_router
from .custom_orders import router as custom_orders_router

__all__ = [
    "session_router",
    "auth_router",
    "catalog_router",
    "cart_router",
    "checkout_router",
    "orders_router",
    "profile_router",
    "custom_orders_router",
]
