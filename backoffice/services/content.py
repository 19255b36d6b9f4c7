"""Editable storefront content blocks"""

import logging
from typing import Any, Optional

from shop_api.client import ApiClient
from shop_api.errors import ApiError, AuthError, ValidationError
from .actions import ActionResult, run_action

logger = logging.getLogger(__name__)

BLOCKS = {
    "hero": "Главный экран обновлён",
    "footer": "Подвал обновлён",
}


class ContentService:
    def __init__(self, api: ApiClient):
        self.api = api

    @staticmethod
    def _check(slug: str) -> None:
        if slug not in BLOCKS:
            raise ValidationError(f"Неизвестный блок: {slug}", {"slug": "Неизвестный блок"})

    async def get_block(self, slug: str) -> Optional[dict[str, Any]]:
        """Block data, None when the block has never been saved"""
        self._check(slug)
        try:
            # Public block endpoint answers with the raw block, no envelope
            body = await self.api.get(f"/content/{slug}", envelope=True)
        except AuthError:
            raise
        except ApiError as e:
            logger.info(f"Content block {slug} unavailable: {e.message}")
            return None
        return body if isinstance(body, dict) else None

    async def get_blocks(self) -> dict[str, Optional[dict[str, Any]]]:
        return {slug: await self.get_block(slug) for slug in BLOCKS}

    async def update_block(self, slug: str, values: dict[str, Any]) -> ActionResult:
        self._check(slug)
        return await run_action(
            f"Content block {slug} update",
            lambda: self.api.put(f"/admin/content/{slug}", json={"data": values}),
            success=BLOCKS[slug],
            failure="Ошибка сохранения",
            refetch=lambda: self.get_block(slug),
        )
