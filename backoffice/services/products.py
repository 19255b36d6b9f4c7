"""Product catalogue management"""

import asyncio
import logging
from typing import Any, Optional

from shop_api.client import ApiClient
from shop_api.errors import ValidationError
from shop_api.uploads import UploadFile, upload_sequentially
from .actions import ActionResult, run_action
from .resources import ListQuery, ResourceProvider

logger = logging.getLogger(__name__)

RESOURCE = "products"

OPTIONAL_FIELDS = (
    "slug",
    "description",
    "shortDescription",
    "oldPrice",
    "sku",
    "weight",
    "material",
    "printTime",
    "categoryId",
    "isFeatured",
)


def build_product_payload(values: dict[str, Any], is_edit: bool = False) -> dict[str, Any]:
    """Form values to the API body; blank optional fields are left out"""
    errors = {}
    if not (values.get("name") or "").strip():
        errors["name"] = "Введите название"
    price = values.get("price")
    if price is None or price < 0:
        errors["price"] = "Укажите цену"
    stock = values.get("stockQuantity") or 0
    if stock < 0:
        errors["stockQuantity"] = "Остаток не может быть отрицательным"
    if errors:
        raise ValidationError("Проверьте данные формы", errors)

    body: dict[str, Any] = {"name": values["name"].strip(), "price": price, "stockQuantity": stock}
    for name in OPTIONAL_FIELDS:
        value = values.get(name)
        if value is not None and value != "":
            body[name] = value
    if is_edit and values.get("isActive") is not None:
        body["isActive"] = values["isActive"]

    length = values.get("dimensionLength")
    width = values.get("dimensionWidth")
    height = values.get("dimensionHeight")
    if length or width or height:
        body["dimensions"] = {"length": length or 0, "width": width or 0, "height": height or 0}
    return body


class ProductsService:
    def __init__(self, api: ApiClient, resources: ResourceProvider):
        self.api = api
        self.resources = resources

    async def list_products(
        self,
        page: int = 1,
        page_size: int = 20,
        search: Optional[str] = None,
        category: Optional[int] = None,
        sort_field: Optional[str] = None,
        sort_order: str = "asc",
    ) -> tuple[list[dict], int]:
        return await self.resources.get_list(
            RESOURCE,
            ListQuery(
                page=page,
                page_size=page_size,
                sort_field=sort_field,
                sort_order=sort_order,
                filters={"search": search, "category": category},
            ),
        )

    async def get(self, product_id: int) -> dict:
        return await self.resources.get_one(RESOURCE, product_id)

    async def save(self, values: dict[str, Any], product_id: Optional[int] = None) -> ActionResult:
        is_edit = product_id is not None

        async def call():
            body = build_product_payload(values, is_edit)
            if is_edit:
                return await self.resources.update(RESOURCE, product_id, body)
            return await self.resources.create(RESOURCE, body)

        return await run_action(
            "Product save",
            call,
            success="Товар обновлён" if is_edit else "Товар создан",
            failure="Ошибка сохранения",
        )

    async def delete(self, product_id: int) -> ActionResult:
        return await run_action(
            f"Product {product_id} delete",
            lambda: self.resources.delete_one(RESOURCE, product_id),
            success="Товар удалён",
            failure="Не удалось удалить товар",
            refetch=lambda: self.resources.get_page(RESOURCE),
        )

    async def deactivate(self, product_ids: list[int]) -> Optional[ActionResult]:
        """Hide products from the storefront without deleting them"""
        if not product_ids:
            return None

        async def call():
            await asyncio.gather(
                *(self.resources.update(RESOURCE, pid, {"isActive": False}) for pid in product_ids)
            )

        return await run_action(
            f"Deactivate {len(product_ids)} product(s)",
            call,
            success=f"Деактивировано: {len(product_ids)} товаров",
            failure="Ошибка при деактивации",
            refetch=lambda: self.resources.get_page(RESOURCE),
        )

    # ==================== Images ====================

    async def upload_images(self, product_id: int, files: list[UploadFile]) -> dict[str, Any]:
        async def upload(file: UploadFile) -> Optional[str]:
            data = await self.api.post(
                f"/admin/products/{product_id}/images",
                files={"file": (file.filename, file.content, file.content_type)},
            )
            return data.get("url") if isinstance(data, dict) else None

        outcomes = await upload_sequentially(files, upload)
        return {
            "uploads": [o.to_dict() for o in outcomes],
            "product": await self.get(product_id),
        }

    async def set_main_image(self, product_id: int, image_id: int) -> ActionResult:
        return await run_action(
            f"Product {product_id} main image",
            lambda: self.api.put(f"/admin/products/{product_id}/images/{image_id}/main"),
            success="Главное фото обновлено",
            failure="Ошибка при установке главного фото",
            refetch=lambda: self.get(product_id),
        )

    async def delete_image(self, product_id: int, image_id: int) -> ActionResult:
        return await run_action(
            f"Product image {image_id} delete",
            lambda: self.api.delete(f"/admin/products/images/{image_id}"),
            success="Изображение удалено",
            failure="Ошибка при удалении изображения",
            refetch=lambda: self.get(product_id),
        )
