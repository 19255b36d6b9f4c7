"""Back-office client context"""

import logging
from typing import Optional

import httpx

from shop_api.client import ApiClient
from shop_api.storage import LocalStore
from shop_api.tokens import AdminTokenStore
from ..services.analytics import AnalyticsService
from ..services.auth import AdminAuthProvider
from ..services.categories import CategoriesService
from ..services.content import ContentService
from ..services.custom_orders import CustomOrdersService
from ..services.loyalty import LoyaltyService
from ..services.orders import OrdersService
from ..services.products import ProductsService
from ..services.promos import PromosService
from ..services.resources import ResourceProvider
from ..services.reviews import ReviewsService
from .config import AdminSettings, get_settings

logger = logging.getLogger(__name__)


class AdminContext:
    """
    Operator session of the back office: token storage, the API client and
    one service per screen, all built once at application start.
    """

    def __init__(
        self,
        settings: Optional[AdminSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self.store = LocalStore(self.settings.store_path)
        self.tokens = AdminTokenStore(self.store)
        # Set when a refresh failed; the next screen load goes to the login page
        self.auth_lost = False

        self.api = ApiClient(
            self.settings.api_base_url,
            self.tokens,
            timeout=self.settings.request_timeout,
            transport=transport,
            on_auth_lost=self._on_auth_lost,
        )

        self.auth = AdminAuthProvider(self.api, self.tokens)
        self.resources = ResourceProvider(self.api, self.settings.default_page_size)
        self.orders = OrdersService(self.api, self.resources)
        self.custom_orders = CustomOrdersService(self.api, self.resources)
        self.categories = CategoriesService(self.resources)
        self.products = ProductsService(self.api, self.resources)
        self.promos = PromosService(self.resources)
        self.reviews = ReviewsService(self.resources)
        self.loyalty = LoyaltyService(self.api)
        self.content = ContentService(self.api)
        self.analytics = AnalyticsService(self.api)

    def _on_auth_lost(self) -> None:
        logger.warning("Admin session expired, login required")
        self.auth_lost = True

    async def close(self) -> None:
        await self.api.close()
