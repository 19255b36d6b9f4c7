"""Regular order management"""

from typing import Any, Optional

from shop_api.client import ApiClient
from shop_api.models import Order
from .actions import ActionResult, run_action
from .resources import ListQuery, ResourceProvider
from .transitions import ORDER_MACHINE


class OrdersService:
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
            ORDER_MACHINE.parse(status)
        return await self.resources.get_list(
            "orders",
            ListQuery(page=page, page_size=page_size, filters={"status": status}),
        )

    async def get(self, order_id: int) -> Order:
        return Order.model_validate(await self.api.get(f"/admin/orders/{order_id}"))

    async def detail(self, order_id: int) -> dict[str, Any]:
        """Order with its status label and legal next actions"""
        order = await self.get(order_id)
        return {
            "order": order.model_dump(by_alias=True),
            "statusLabel": ORDER_MACHINE.label(order.status),
            "actions": [a.to_dict() for a in ORDER_MACHINE.actions(order.status)],
        }

    async def change_status(self, order_id: int, target: str) -> ActionResult:
        order = await self.get(order_id)

        async def call():
            status = ORDER_MACHINE.ensure_transition(order.status, target)
            return await self.api.put(
                f"/admin/orders/{order_id}/status",
                json={"status": status.value},
            )

        return await run_action(
            f"Order {order_id} status -> {target}",
            call,
            success="Статус обновлён",
            failure="Ошибка обновления статуса",
            refetch=lambda: self.detail(order_id),
        )

    async def set_tracking(self, order_id: int, tracking_number: str) -> Optional[ActionResult]:
        """Save a tracking number; a blank number is ignored"""
        tracking_number = tracking_number.strip()
        if not tracking_number:
            return None

        return await run_action(
            f"Order {order_id} tracking",
            lambda: self.api.put(
                f"/admin/orders/{order_id}/tracking",
                json={"trackingNumber": tracking_number},
            ),
            success="Трек-номер сохранён",
            failure="Не удалось сохранить трек-номер",
            refetch=lambda: self.detail(order_id),
        )
