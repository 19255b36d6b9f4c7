"""Generic list/detail/form routes over admin resources"""

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query, Request

from ..core.context import AdminContext
from ..services.actions import run_action
from ..services.resources import ListQuery
from .deps import UI_PREFIX, action_response, page_response, require_auth

router = APIRouter(prefix=f"{UI_PREFIX}/resources", tags=["Resources"])

# Query parameters that are not resource filters
RESERVED_PARAMS = {"page", "page_size", "sort", "order"}


@router.get("/{resource}")
async def get_list(
    resource: str,
    request: Request,
    page: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, ge=1, le=200),
    sort: Optional[str] = None,
    order: str = Query("asc", pattern="^(asc|desc)$"),
    context: AdminContext = Depends(require_auth),
):
    """List records; any other query parameter is passed on as a filter"""
    filters = {k: v for k, v in request.query_params.items() if k not in RESERVED_PARAMS}
    query = ListQuery(
        page=page,
        page_size=page_size or context.settings.default_page_size,
        sort_field=sort,
        sort_order=order,
        filters=filters,
    )
    records, total = await context.resources.get_list(resource, query)
    return page_response(records, total)


@router.get("/{resource}/{record_id}")
async def get_one(resource: str, record_id: int, context: AdminContext = Depends(require_auth)):
    return {"data": await context.resources.get_one(resource, record_id)}


@router.post("/{resource}")
async def create(
    resource: str,
    variables: dict[str, Any] = Body(...),
    context: AdminContext = Depends(require_auth),
):
    result = await run_action(
        f"Create {resource}",
        lambda: context.resources.create(resource, variables),
        success="Запись создана",
        failure="Ошибка сохранения",
    )
    return action_response(result)


@router.put("/{resource}/{record_id}")
async def update(
    resource: str,
    record_id: int,
    variables: dict[str, Any] = Body(...),
    context: AdminContext = Depends(require_auth),
):
    result = await run_action(
        f"Update {resource} {record_id}",
        lambda: context.resources.update(resource, record_id, variables),
        success="Запись обновлена",
        failure="Ошибка сохранения",
        refetch=lambda: context.resources.get_one(resource, record_id),
    )
    return action_response(result)


@router.delete("/{resource}/{record_id}")
async def delete_one(resource: str, record_id: int, context: AdminContext = Depends(require_auth)):
    result = await run_action(
        f"Delete {resource} {record_id}",
        lambda: context.resources.delete_one(resource, record_id),
        success="Запись удалена",
        failure="Не удалось удалить запись",
        refetch=lambda: context.resources.get_page(resource),
    )
    return action_response(result)
