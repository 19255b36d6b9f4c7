"""Dashboard analytics"""

from shop_api.client import ApiClient
from shop_api.errors import ValidationError
from shop_api.models import ChartPoint, DashboardMetrics

CHART_PERIODS = ("week", "month", "year")


class AnalyticsService:
    def __init__(self, api: ApiClient):
        self.api = api

    async def dashboard(self) -> DashboardMetrics:
        return DashboardMetrics.model_validate(await self.api.get("/admin/analytics/dashboard"))

    async def chart(self, period: str = "month") -> list[ChartPoint]:
        """Revenue and order count per day for the period"""
        if period not in CHART_PERIODS:
            raise ValidationError(
                f"Неизвестный период: {period}",
                {"period": "Выберите неделю, месяц или год"},
            )
        data = await self.api.get("/admin/analytics/chart", params={"period": period})
        return [ChartPoint.model_validate(p) for p in data or []]
