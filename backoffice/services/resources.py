"""
Generic resource provider

Binds the back-office list/detail/form screens to the admin CRUD endpoints
(`/admin/{resource}`). Categories are special: the admin reads them from
the public category tree.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from shop_api.client import ApiClient
from shop_api.errors import BusinessError

logger = logging.getLogger(__name__)

CATEGORIES = "categories"


@dataclass
class ListQuery:
    """Pagination, sorting and filters of a list screen"""
    page: Optional[int] = 1
    page_size: Optional[int] = 20
    sort_field: Optional[str] = None
    sort_order: str = "asc"
    filters: dict[str, Any] = field(default_factory=dict)

    def to_params(self) -> dict[str, Any]:
        params: dict[str, Any] = {}
        if self.page:
            params["page"] = self.page
        if self.page_size:
            params["limit"] = self.page_size
        if self.sort_field:
            params["sort"] = f"-{self.sort_field}" if self.sort_order == "desc" else self.sort_field
        for name, value in self.filters.items():
            if value is None or value == "":
                continue
            params[name] = value
        return params


def flatten_tree(nodes: list[dict]) -> list[dict]:
    """Depth-first, parents before their children"""
    result = []
    for node in nodes:
        result.append(node)
        if node.get("children"):
            result.extend(flatten_tree(node["children"]))
    return result


def find_in_tree(nodes: list[dict], node_id: int) -> Optional[dict]:
    for node in nodes:
        if node.get("id") == node_id:
            return node
        if node.get("children"):
            found = find_in_tree(node["children"], node_id)
            if found:
                return found
    return None


class ResourceProvider:
    """CRUD over admin resources"""

    def __init__(self, api: ApiClient, default_page_size: int = 20):
        self.api = api
        self.default_page_size = default_page_size

    async def get_category_tree(self) -> list[dict]:
        return await self.api.get("/categories") or []

    async def get_list(
        self,
        resource: str,
        query: Optional[ListQuery] = None,
    ) -> tuple[list[dict], int]:
        """Returns (records, total)"""
        if resource == CATEGORIES:
            flat = flatten_tree(await self.get_category_tree())
            return flat, len(flat)

        query = query or ListQuery(page_size=self.default_page_size)
        body = await self.api.get(f"/admin/{resource}", params=query.to_params(), envelope=True)
        if not isinstance(body, dict):
            return [], 0

        records = body.get("data") or []
        meta = body.get("meta") or {}
        total = meta.get("total")
        return records, total if total is not None else len(records)

    async def get_one(self, resource: str, record_id: Any) -> dict:
        if resource == CATEGORIES:
            found = find_in_tree(await self.get_category_tree(), int(record_id))
            if found is None:
                raise BusinessError("Запись не найдена", status_code=404, code="NOT_FOUND")
            return found
        return await self.api.get(f"/admin/{resource}/{record_id}")

    async def create(self, resource: str, variables: dict[str, Any]) -> Any:
        logger.info(f"Creating {resource}")
        return await self.api.post(f"/admin/{resource}", json=variables)

    async def update(self, resource: str, record_id: Any, variables: dict[str, Any]) -> Any:
        logger.info(f"Updating {resource} {record_id}")
        return await self.api.put(f"/admin/{resource}/{record_id}", json=variables)

    async def delete_one(self, resource: str, record_id: Any) -> dict[str, Any]:
        logger.info(f"Deleting {resource} {record_id}")
        await self.api.delete(f"/admin/{resource}/{record_id}")
        return {"id": record_id}

    async def get_page(self, resource: str, query: Optional[ListQuery] = None) -> dict[str, Any]:
        """get_list shaped for a list screen"""
        records, total = await self.get_list(resource, query)
        return {"data": records, "total": total}
