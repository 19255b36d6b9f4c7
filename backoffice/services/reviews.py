"""Review moderation"""

from typing import Optional

from shop_api.errors import ValidationError
from .actions import ActionResult, run_action
from .resources import ListQuery, ResourceProvider

RESOURCE = "reviews"
REVIEW_STATUSES = ("pending", "approved", "rejected")


class ReviewsService:
    def __init__(self, resources: ResourceProvider):
        self.resources = resources

    def _query(self, page: int, page_size: int, status: Optional[str]) -> ListQuery:
        if status and status not in REVIEW_STATUSES:
            raise ValidationError(f"Неизвестный статус отзыва: {status}", {"status": "Неизвестный статус"})
        return ListQuery(page=page, page_size=page_size, filters={"status": status})

    async def list_reviews(
        self,
        page: int = 1,
        page_size: int = 20,
        status: Optional[str] = None,
    ) -> tuple[list[dict], int]:
        return await self.resources.get_list(RESOURCE, self._query(page, page_size, status))

    async def _moderate(self, review_id: int, verdict: str, success: str, failure: str) -> ActionResult:
        return await run_action(
            f"Review {review_id} {verdict}",
            lambda: self.resources.api.put(f"/admin/{RESOURCE}/{review_id}/{verdict}"),
            success=success,
            failure=failure,
            refetch=lambda: self.resources.get_page(RESOURCE),
        )

    async def approve(self, review_id: int) -> ActionResult:
        return await self._moderate(review_id, "approve", "Отзыв одобрен", "Ошибка при одобрении")

    async def reject(self, review_id: int) -> ActionResult:
        return await self._moderate(review_id, "reject", "Отзыв отклонён", "Ошибка при отклонении")

    async def delete(self, review_id: int) -> ActionResult:
        return await run_action(
            f"Review {review_id} delete",
            lambda: self.resources.delete_one(RESOURCE, review_id),
            success="Отзыв удалён",
            failure="Ошибка при удалении",
            refetch=lambda: self.resources.get_page(RESOURCE),
        )
