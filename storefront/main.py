"""
Storefront Service Application

Session backend for the Avangard storefront: guest and signed-in carts,
checkout, orders and customer profile on top of the shop API.
"""

import os
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

from shop_api.handlers import SESSION_HEADER, register_exception_handlers
from .core.config import settings
from .core.session import SessionManager
from .routes import (
    session_router,
    auth_router,
    catalog_router,
    cart_router,
    checkout_router,
    orders_router,
    profile_router,
    custom_orders_router,
)

# Load environment variables
load_dotenv(os.path.join(os.path.dirname(__file__), "..", "config", ".env"))

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info("Storefront starting up...")
    logger.info(f"Shop API URL: {settings.api_base_url}")
    if settings.session_store_dir:
        logger.info(f"Session stores in {settings.session_store_dir}")

    app.state.session_manager = SessionManager(settings)

    yield

    logger.info("Storefront shutting down...")
    await app.state.session_manager.close()


# Create FastAPI app
app = FastAPI(
    title="Avangard Storefront",
    description="Storefront sessions, cart and checkout for the Avangard shop",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[SESSION_HEADER],
)

register_exception_handlers(app)

# Include routers
app.include_router(session_router)
app.include_router(auth_router)
app.include_router(catalog_router)
app.include_router(cart_router)
app.include_router(checkout_router)
app.include_router(orders_router)
app.include_router(profile_router)
app.include_router(custom_orders_router)


@app.get("/")
async def home():
    return {
        "message": "Avangard Storefront API",
        "docs": "/docs",
        "endpoints": {
            "session": "/api/session",
            "auth": "/api/auth",
            "catalog": "/api/catalog",
            "cart": "/api/cart",
            "checkout": "/api/checkout",
            "orders": "/api/orders",
            "profile": "/api/profile",
            "custom_orders": "/api/custom-orders",
        },
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    manager = getattr(app.state, "session_manager", None)
    return {
        "status": "healthy",
        "service": "storefront",
        "api_base_url": settings.api_base_url,
        "active_sessions": len(manager.sessions) if manager else 0,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "storefront.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
