"""Referral programme settings"""

from pydantic import ValidationError as ModelValidationError

from shop_api.client import ApiClient
from shop_api.errors import ValidationError
from shop_api.models import LoyaltySettings
from .actions import ActionResult, run_action

SETTINGS_PATH = "/admin/loyalty/settings"


def parse_settings(values: dict) -> LoyaltySettings:
    try:
        return LoyaltySettings.model_validate(values)
    except ModelValidationError as e:
        fields = {}
        for error in e.errors():
            name = str(error["loc"][0]) if error["loc"] else "form"
            if name in ("referrerBonusPercent", "referrer_bonus_percent"):
                fields["referrerBonusPercent"] = "От 0 до 100%"
            elif name in ("referralWelcomeBonus", "referral_welcome_bonus"):
                fields["referralWelcomeBonus"] = "Не может быть отрицательным"
            else:
                fields[name] = "Введите значение"
        raise ValidationError("Проверьте настройки", fields) from e


class LoyaltyService:
    def __init__(self, api: ApiClient):
        self.api = api

    async def get_settings(self) -> LoyaltySettings:
        return LoyaltySettings.model_validate(await self.api.get(SETTINGS_PATH))

    async def update_settings(self, values: dict) -> ActionResult:
        async def call():
            settings = parse_settings(values)
            data = await self.api.put(SETTINGS_PATH, json=settings.model_dump(by_alias=True))
            return LoyaltySettings.model_validate(data).model_dump(by_alias=True)

        return await run_action(
            "Loyalty settings update",
            call,
            success="Настройки сохранены",
            failure="Ошибка сохранения",
        )
