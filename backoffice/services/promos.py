"""Promo code management"""

from datetime import date, datetime, time, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .actions import ActionResult, run_action
from .resources import ResourceProvider

RESOURCE = "promo-codes"


class PromoForm(BaseModel):
    """Promo code edit form"""
    code: str = Field(min_length=3, max_length=50)
    description: str = ""
    discount_type: str = Field(default="percent", pattern="^(percent|fixed)$")
    discount_value: float = Field(gt=0)
    min_order_amount: float = Field(default=0, ge=0)
    max_uses: int = Field(default=0, ge=0)
    is_active: bool = True
    starts_at: Optional[date] = None
    expires_at: Optional[date] = None

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        return v.strip().upper()

    @model_validator(mode="after")
    def check_limits(self) -> "PromoForm":
        if self.discount_type == "percent" and self.discount_value > 100:
            raise ValueError("Процент скидки не может быть больше 100")
        if self.starts_at and self.expires_at and self.expires_at < self.starts_at:
            raise ValueError("Дата окончания раньше даты начала")
        return self

    def to_payload(self) -> dict[str, Any]:
        payload = {
            "code": self.code,
            "description": self.description,
            "discountType": self.discount_type,
            "discountValue": self.discount_value,
            "minOrderAmount": self.min_order_amount,
            "maxUses": self.max_uses,
            "isActive": self.is_active,
        }
        # A promo runs from the start of its first day to the end of its last
        if self.starts_at:
            payload["startsAt"] = datetime.combine(self.starts_at, time.min, timezone.utc).isoformat()
        if self.expires_at:
            payload["expiresAt"] = datetime.combine(self.expires_at, time.max, timezone.utc).isoformat()
        return payload


class PromosService:
    def __init__(self, resources: ResourceProvider):
        self.resources = resources

    async def list_promos(self) -> tuple[list[dict], int]:
        return await self.resources.get_list(RESOURCE)

    async def get(self, promo_id: int) -> dict:
        return await self.resources.get_one(RESOURCE, promo_id)

    async def save(self, form: PromoForm, promo_id: Optional[int] = None) -> ActionResult:
        payload = form.to_payload()
        if promo_id is None:
            call = lambda: self.resources.create(RESOURCE, payload)
            success = "Промокод создан"
        else:
            call = lambda: self.resources.update(RESOURCE, promo_id, payload)
            success = "Промокод обновлён"

        return await run_action(
            "Promo save",
            call,
            success=success,
            failure="Ошибка сохранения",
        )

    async def toggle(self, promo_id: int, active: bool) -> ActionResult:
        return await run_action(
            f"Promo {promo_id} toggle",
            lambda: self.resources.update(RESOURCE, promo_id, {"isActive": active}),
            success="Промокод активирован" if active else "Промокод деактивирован",
            failure="Ошибка обновления статуса",
            refetch=lambda: self.resources.get_page(RESOURCE),
        )

    async def delete(self, promo_id: int) -> ActionResult:
        return await run_action(
            f"Promo {promo_id} delete",
            lambda: self.resources.delete_one(RESOURCE, promo_id),
            success="Промокод удалён",
            failure="Не удалось удалить промокод",
            refetch=lambda: self.resources.get_page(RESOURCE),
        )
