"""
Back-office Service Application

Administrative screens of the Avangard shop, served as JSON under /admin-ui.
"""

import os
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

from shop_api.handlers import register_exception_handlers
from .core.config import settings
from .core.context import AdminContext
from .routes.deps import register_auth_redirect
from .routes import (
    auth_router,
    resources_router,
    orders_router,
    catalog_router,
    settings_router,
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
    logger.info("Back office starting up...")
    logger.info(f"Shop API URL: {settings.api_base_url}")

    app.state.admin = AdminContext(settings)

    yield

    logger.info("Back office shutting down...")
    await app.state.admin.close()


# Create FastAPI app
app = FastAPI(
    title="Avangard Admin",
    description="Back-office screens for the Avangard shop",
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
)

# Error envelopes; lost auth answers with a login redirect
register_exception_handlers(app)
register_auth_redirect(app)

# Include routers
app.include_router(auth_router)
app.include_router(resources_router)
app.include_router(orders_router)
app.include_router(catalog_router)
app.include_router(settings_router)


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    admin = getattr(app.state, "admin", None)
    return {
        "status": "healthy",
        "service": "backoffice",
        "api_base_url": settings.api_base_url,
        "authenticated": bool(admin and admin.auth.check().authenticated),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "backoffice.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
