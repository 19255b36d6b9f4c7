"""Order and custom order screens"""

from typing import Any, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile
from pydantic import BaseModel, Field

from shop_api.uploads import UploadFile as PendingUpload
from ..core.context import AdminContext
from .deps import UI_PREFIX, action_response, page_response, require_auth

router = APIRouter(prefix=UI_PREFIX, tags=["Orders"])


class StatusRequest(BaseModel):
    status: str


class TrackingRequest(BaseModel):
    tracking_number: str


class ConfirmRequest(BaseModel):
    total_price: float = Field(ge=1)
    admin_notes: Optional[str] = None


class NotesRequest(BaseModel):
    admin_notes: Optional[str] = None


class FileDeleteRequest(BaseModel):
    url: str


# ==================== Orders ====================


@router.get("/orders")
async def list_orders(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=200),
    status: Optional[str] = None,
    context: AdminContext = Depends(require_auth),
):
    records, total = await context.orders.list_orders(page, page_size, status)
    return page_response(records, total)


@router.get("/orders/{order_id}")
async def get_order(order_id: int, context: AdminContext = Depends(require_auth)):
    """Order with the actions legal for its status"""
    return await context.orders.detail(order_id)


@router.post("/orders/{order_id}/status")
async def change_order_status(
    order_id: int,
    request: StatusRequest,
    context: AdminContext = Depends(require_auth),
):
    return action_response(await context.orders.change_status(order_id, request.status))


@router.put("/orders/{order_id}/tracking")
async def set_tracking(
    order_id: int,
    request: TrackingRequest,
    context: AdminContext = Depends(require_auth),
):
    result = await context.orders.set_tracking(order_id, request.tracking_number)
    if result is None:
        return {"ok": True, "message": "", "data": None}
    return action_response(result)


# ==================== Custom orders ====================


@router.get("/custom-orders")
async def list_custom_orders(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=200),
    status: Optional[str] = None,
    context: AdminContext = Depends(require_auth),
):
    records, total = await context.custom_orders.list_orders(page, page_size, status)
    return page_response(records, total)


@router.post("/custom-orders")
async def create_custom_order(values: dict[str, Any], context: AdminContext = Depends(require_auth)):
    return action_response(await context.custom_orders.create(values))


@router.get("/custom-orders/{order_id}")
async def get_custom_order(order_id: int, context: AdminContext = Depends(require_auth)):
    return await context.custom_orders.detail(order_id)


@router.post("/custom-orders/{order_id}/confirm")
async def confirm_custom_order(
    order_id: int,
    request: ConfirmRequest,
    context: AdminContext = Depends(require_auth),
):
    """Confirm a new request and set its price"""
    result = await context.custom_orders.confirm(order_id, request.total_price, request.admin_notes)
    return action_response(result)


@router.put("/custom-orders/{order_id}")
async def update_custom_order(
    order_id: int,
    request: NotesRequest,
    context: AdminContext = Depends(require_auth),
):
    return action_response(await context.custom_orders.update_details(order_id, request.admin_notes))


@router.post("/custom-orders/{order_id}/send-payment")
async def send_payment_link(order_id: int, context: AdminContext = Depends(require_auth)):
    return action_response(await context.custom_orders.send_payment_link(order_id))


@router.post("/custom-orders/{order_id}/mark-paid")
async def mark_paid(order_id: int, context: AdminContext = Depends(require_auth)):
    return action_response(await context.custom_orders.mark_paid(order_id))


@router.post("/custom-orders/{order_id}/status")
async def change_custom_order_status(
    order_id: int,
    request: StatusRequest,
    context: AdminContext = Depends(require_auth),
):
    return action_response(await context.custom_orders.change_status(order_id, request.status))


@router.post("/custom-orders/{order_id}/files")
async def upload_custom_order_files(
    order_id: int,
    files: list[UploadFile] = File(...),
    context: AdminContext = Depends(require_auth),
):
    """Upload files one at a time, reporting each"""
    pending = [
        PendingUpload(
            filename=f.filename or "file",
            content=await f.read(),
            content_type=f.content_type or "application/octet-stream",
        )
        for f in files
    ]
    return await context.custom_orders.upload_files(order_id, pending)


@router.delete("/custom-orders/{order_id}/files")
async def delete_custom_order_file(
    order_id: int,
    request: FileDeleteRequest,
    context: AdminContext = Depends(require_auth),
):
    return action_response(await context.custom_orders.delete_file(order_id, request.url))
