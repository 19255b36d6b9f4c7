"""Loyalty settings, content blocks and dashboard analytics"""

from typing import Any

from fastapi import APIRouter, Depends

from ..core.context import AdminContext
from .deps import UI_PREFIX, action_response, require_auth

router = APIRouter(prefix=UI_PREFIX, tags=["Settings"])


# ==================== Loyalty ====================


@router.get("/loyalty/settings")
async def get_loyalty_settings(context: AdminContext = Depends(require_auth)):
    settings = await context.loyalty.get_settings()
    return settings.model_dump(by_alias=True)


@router.put("/loyalty/settings")
async def update_loyalty_settings(values: dict[str, Any], context: AdminContext = Depends(require_auth)):
    return action_response(await context.loyalty.update_settings(values))


# ==================== Content ====================


@router.get("/content")
async def get_content_blocks(context: AdminContext = Depends(require_auth)):
    """Hero and footer blocks; a block never saved is null"""
    return await context.content.get_blocks()


@router.get("/content/{slug}")
async def get_content_block(slug: str, context: AdminContext = Depends(require_auth)):
    return {"data": await context.content.get_block(slug)}


@router.put("/content/{slug}")
async def update_content_block(
    slug: str,
    values: dict[str, Any],
    context: AdminContext = Depends(require_auth),
):
    return action_response(await context.content.update_block(slug, values))


# ==================== Analytics ====================


@router.get("/analytics/dashboard")
async def get_dashboard(context: AdminContext = Depends(require_auth)):
    metrics = await context.analytics.dashboard()
    return metrics.model_dump(by_alias=True)


@router.get("/analytics/chart")
async def get_chart(period: str = "month", context: AdminContext = Depends(require_auth)):
    points = await context.analytics.chart(period)
    return [p.model_dump(by_alias=True) for p in points]
