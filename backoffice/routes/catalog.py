"""Category, product, promo code and review screens"""

from typing import Any, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile
from pydantic import BaseModel, Field

from shop_api.uploads import UploadFile as PendingUpload
from ..core.context import AdminContext
from ..services.categories import DropEvent
from ..services.promos import PromoForm
from .deps import UI_PREFIX, action_response, page_response, require_auth

router = APIRouter(prefix=UI_PREFIX, tags=["Catalog"])


class MoveRequest(BaseModel):
    """Drop event of the category tree"""
    drag_id: int
    drop_id: int
    drop_to_gap: bool
    drop_position: int


class DeactivateRequest(BaseModel):
    product_ids: list[int] = Field(default_factory=list)


class ToggleRequest(BaseModel):
    active: bool


# ==================== Categories ====================


@router.get("/categories")
async def get_category_tree(context: AdminContext = Depends(require_auth)):
    return {"data": await context.categories.tree()}


@router.post("/categories")
async def create_category(values: dict[str, Any], context: AdminContext = Depends(require_auth)):
    return action_response(await context.categories.save(values))


@router.put("/categories/{category_id}")
async def update_category(
    category_id: int,
    values: dict[str, Any],
    context: AdminContext = Depends(require_auth),
):
    return action_response(await context.categories.save(values, category_id))


@router.delete("/categories/{category_id}")
async def delete_category(category_id: int, context: AdminContext = Depends(require_auth)):
    return action_response(await context.categories.delete(category_id))


@router.post("/categories/move")
async def move_category(request: MoveRequest, context: AdminContext = Depends(require_auth)):
    """Apply a drag-and-drop of the category tree"""
    event = DropEvent(
        drag_id=request.drag_id,
        drop_id=request.drop_id,
        drop_to_gap=request.drop_to_gap,
        drop_position=request.drop_position,
    )
    return action_response(await context.categories.move(event))


# ==================== Products ====================


@router.get("/products")
async def list_products(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=200),
    search: Optional[str] = None,
    category: Optional[int] = None,
    sort: Optional[str] = None,
    order: str = Query("asc", pattern="^(asc|desc)$"),
    context: AdminContext = Depends(require_auth),
):
    records, total = await context.products.list_products(page, page_size, search, category, sort, order)
    return page_response(records, total)


@router.get("/products/{product_id}")
async def get_product(product_id: int, context: AdminContext = Depends(require_auth)):
    return {"data": await context.products.get(product_id)}


@router.post("/products")
async def create_product(values: dict[str, Any], context: AdminContext = Depends(require_auth)):
    return action_response(await context.products.save(values))


@router.put("/products/{product_id}")
async def update_product(
    product_id: int,
    values: dict[str, Any],
    context: AdminContext = Depends(require_auth),
):
    return action_response(await context.products.save(values, product_id))


@router.delete("/products/{product_id}")
async def delete_product(product_id: int, context: AdminContext = Depends(require_auth)):
    return action_response(await context.products.delete(product_id))


@router.post("/products/deactivate")
async def deactivate_products(request: DeactivateRequest, context: AdminContext = Depends(require_auth)):
    """Bulk-hide products from the storefront"""
    result = await context.products.deactivate(request.product_ids)
    if result is None:
        return {"ok": True, "message": "", "data": None}
    return action_response(result)


@router.post("/products/{product_id}/images")
async def upload_product_images(
    product_id: int,
    files: list[UploadFile] = File(...),
    context: AdminContext = Depends(require_auth),
):
    pending = [
        PendingUpload(
            filename=f.filename or "image",
            content=await f.read(),
            content_type=f.content_type or "application/octet-stream",
        )
        for f in files
    ]
    return await context.products.upload_images(product_id, pending)


@router.put("/products/{product_id}/images/{image_id}/main")
async def set_main_image(product_id: int, image_id: int, context: AdminContext = Depends(require_auth)):
    return action_response(await context.products.set_main_image(product_id, image_id))


@router.delete("/products/{product_id}/images/{image_id}")
async def delete_image(product_id: int, image_id: int, context: AdminContext = Depends(require_auth)):
    return action_response(await context.products.delete_image(product_id, image_id))


# ==================== Promo codes ====================


@router.get("/promo-codes")
async def list_promos(context: AdminContext = Depends(require_auth)):
    records, total = await context.promos.list_promos()
    return page_response(records, total)


@router.get("/promo-codes/{promo_id}")
async def get_promo(promo_id: int, context: AdminContext = Depends(require_auth)):
    return {"data": await context.promos.get(promo_id)}


@router.post("/promo-codes")
async def create_promo(form: PromoForm, context: AdminContext = Depends(require_auth)):
    return action_response(await context.promos.save(form))


@router.put("/promo-codes/{promo_id}")
async def update_promo(promo_id: int, form: PromoForm, context: AdminContext = Depends(require_auth)):
    return action_response(await context.promos.save(form, promo_id))


@router.put("/promo-codes/{promo_id}/active")
async def toggle_promo(promo_id: int, request: ToggleRequest, context: AdminContext = Depends(require_auth)):
    return action_response(await context.promos.toggle(promo_id, request.active))


@router.delete("/promo-codes/{promo_id}")
async def delete_promo(promo_id: int, context: AdminContext = Depends(require_auth)):
    return action_response(await context.promos.delete(promo_id))


# ==================== Reviews ====================


@router.get("/reviews")
async def list_reviews(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=200),
    status: Optional[str] = None,
    context: AdminContext = Depends(require_auth),
):
    records, total = await context.reviews.list_reviews(page, page_size, status)
    return page_response(records, total)


@router.put("/reviews/{review_id}/approve")
async def approve_review(review_id: int, context: AdminContext = Depends(require_auth)):
    return action_response(await context.reviews.approve(review_id))


@router.put("/reviews/{review_id}/reject")
async def reject_review(review_id: int, context: AdminContext = Depends(require_auth)):
    return action_response(await context.reviews.reject(review_id))


@router.delete("/reviews/{review_id}")
async def delete_review(review_id: int, context: AdminContext = Depends(require_auth)):
    return action_response(await context.reviews.delete(review_id))
