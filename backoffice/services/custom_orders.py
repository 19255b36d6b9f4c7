"""
Custom order management

Made-to-order requests arrive without a price. The operator confirms them
with a price, sends a payment link, and then walks them through production
with status changes.
"""

import logging
from typing import Any, Optional

from shop_api.client import ApiClient
from shop_api.errors import ValidationError
from shop_api.models import CustomOrder
from shop_api.uploads import UploadFile, upload_sequentially
from .actions import ActionResult, run_action
from .resources import ListQuery, ResourceProvider
from .transitions import CUSTOM_ORDER_MACHINE, CustomOrderStatus

logger = logging.getLogger(__name__)

RESOURCE = "custom-orders"


class CustomOrdersService:
    def __init__(self, api: ApiClient, resources: ResourceProvider):
        self.api = api
        self.resources = resources

    async def list_orders(
        self,
        page: int = 1,
        page_size: int = 20,
        status: Optional[str] = None,
    ) -> tuple[list[dict], int]:
        if status:
            CUSTOM_ORDER_MACHINE.parse(status)
        return await self.resources.get_list(
            RESOURCE,
            ListQuery(page=page, page_size=page_size, filters={"status": status}),
        )

    async def get(self, order_id: int) -> CustomOrder:
        return CustomOrder.model_validate(await self.api.get(f"/admin/{RESOURCE}/{order_id}"))

    async def detail(self, order_id: int) -> dict[str, Any]:
        order = await self.get(order_id)
        status = CUSTOM_ORDER_MACHINE.parse(order.status)
        return {
            "order": order.model_dump(by_alias=True),
            "statusLabel": CUSTOM_ORDER_MACHINE.label(status),
            "actions": [a.to_dict() for a in CUSTOM_ORDER_MACHINE.actions(status)],
            "canConfirm": status == CustomOrderStatus.NEW,
            "canRequestPayment": self._awaits_payment(order),
        }

    @staticmethod
    def _awaits_payment(order: CustomOrder) -> bool:
        return not order.is_paid and order.status != CustomOrderStatus.CANCELLED.value

    # ==================== Create ====================

    async def create(self, values: dict[str, Any]) -> ActionResult:
        """Create an order on the customer's behalf (phone or chat requests)"""
        errors = {}
        if not (values.get("customerName") or "").strip():
            errors["customerName"] = "Введите имя"
        if not (values.get("customerPhone") or "").strip():
            errors["customerPhone"] = "Введите телефон"
        items = values.get("items") or []
        if any(not (item.get("name") or "").strip() for item in items):
            errors["items"] = "Заполните наименование для всех позиций"
        if errors:
            return ActionResult(ok=False, message=next(iter(errors.values())), field_errors=errors)

        payload = {k: v for k, v in values.items() if v not in (None, "")}
        return await run_action(
            "Custom order create",
            lambda: self.resources.create(RESOURCE, payload),
            success="Заказ создан",
            failure="Ошибка создания заказа",
        )

    # ==================== Pricing & payment ====================

    async def confirm(
        self,
        order_id: int,
        total_price: float,
        admin_notes: Optional[str] = None,
    ) -> ActionResult:
        """Confirm a new order and set its price"""
        order = await self.get(order_id)

        async def call():
            if order.status != CustomOrderStatus.NEW.value:
                raise ValidationError(
                    "Подтвердить можно только новый заказ",
                    {"status": "Заказ уже подтверждён"},
                )
            if total_price < 1:
                raise ValidationError("Укажите стоимость", {"totalPrice": "Укажите стоимость"})
            body: dict[str, Any] = {"totalPrice": total_price}
            if admin_notes:
                body["adminNotes"] = admin_notes
            return await self.api.post(f"/admin/{RESOURCE}/{order_id}/confirm", json=body)

        return await run_action(
            f"Custom order {order_id} confirm",
            call,
            success="Заказ подтверждён, цена установлена",
            failure="Ошибка подтверждения заказа",
            refetch=lambda: self.detail(order_id),
        )

    async def update_details(self, order_id: int, admin_notes: Optional[str]) -> ActionResult:
        return await run_action(
            f"Custom order {order_id} notes",
            lambda: self.api.put(f"/admin/{RESOURCE}/{order_id}", json={"adminNotes": admin_notes}),
            success="Заметки сохранены",
            failure="Ошибка сохранения",
            refetch=lambda: self.detail(order_id),
        )

    async def send_payment_link(self, order_id: int) -> ActionResult:
        order = await self.get(order_id)

        async def call():
            if not self._awaits_payment(order):
                raise ValidationError("Заказ не ожидает оплаты")
            return await self.api.post(f"/admin/{RESOURCE}/{order_id}/send-payment")

        return await run_action(
            f"Custom order {order_id} payment link",
            call,
            success="Ссылка на оплату создана",
            failure="Ошибка создания ссылки на оплату",
            refetch=lambda: self.detail(order_id),
        )

    async def mark_paid(self, order_id: int) -> ActionResult:
        order = await self.get(order_id)

        async def call():
            if not self._awaits_payment(order):
                raise ValidationError("Заказ не ожидает оплаты")
            return await self.api.post(f"/admin/{RESOURCE}/{order_id}/mark-paid")

        return await run_action(
            f"Custom order {order_id} mark paid",
            call,
            success="Заказ отмечен как оплаченный",
            failure="Ошибка",
            refetch=lambda: self.detail(order_id),
        )

    # ==================== Status ====================

    async def change_status(self, order_id: int, target: str) -> ActionResult:
        order = await self.get(order_id)

        async def call():
            status = CUSTOM_ORDER_MACHINE.ensure_transition(order.status, target)
            # Custom orders share the order status endpoint
            return await self.api.post(
                f"/admin/orders/{order_id}/status",
                json={"status": status.value},
            )

        return await run_action(
            f"Custom order {order_id} status -> {target}",
            call,
            success="Статус обновлён",
            failure="Ошибка изменения статуса",
            refetch=lambda: self.detail(order_id),
        )

    # ==================== Files ====================

    async def upload_files(self, order_id: int, files: list[UploadFile]) -> dict[str, Any]:
        """Upload files one at a time; each reports its own outcome"""

        async def upload(file: UploadFile) -> Optional[str]:
            data = await self.api.post(
                f"/admin/{RESOURCE}/{order_id}/files",
                files={"file": (file.filename, file.content, file.content_type)},
            )
            return data.get("url") if isinstance(data, dict) else None

        outcomes = await upload_sequentially(files, upload)
        uploaded = sum(1 for o in outcomes if o.ok)
        logger.info(f"Custom order {order_id}: {uploaded} of {len(outcomes)} file(s) uploaded")
        return {
            "uploads": [o.to_dict() for o in outcomes],
            "detail": await self.detail(order_id),
        }

    async def delete_file(self, order_id: int, url: str) -> ActionResult:
        return await run_action(
            f"Custom order {order_id} file delete",
            lambda: self.api.delete(f"/admin/{RESOURCE}/{order_id}/files", json={"url": url}),
            success="Файл удалён",
            failure="Ошибка удаления файла",
            refetch=lambda: self.detail(order_id),
        )
