"""
Storefront Shop Client

Typed wrappers for the storefront endpoints of the shop API.
"""

import logging
from typing import Any, Optional

from shop_api.client import ApiClient
from shop_api.models import (
    AuthUser,
    BonusTransaction,
    Category,
    CreateOrderInput,
    CustomOrder,
    DeliveryCalculation,
    Order,
    Page,
    PickupPoint,
    Product,
    Profile,
    PromoValidationResult,
    ReferralInfo,
    Review,
    ServerCart,
    SubmitCustomOrderInput,
)

logger = logging.getLogger(__name__)


class ShopClient:
    """Client for the customer-facing shop API"""

    def __init__(self, api: ApiClient, upload_timeout: float = 60.0):
        self.api = api
        self.upload_timeout = upload_timeout

    # ==================== Catalog APIs ====================

    async def get_products(
        self,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        category: Optional[str] = None,
        sort: Optional[str] = None,
        search: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        material: Optional[str] = None,
    ) -> Page[Product]:
        """List catalog products"""
        body = await self.api.get(
            "/products",
            params={
                "page": page,
                "limit": limit,
                "category": category,
                "sort": sort,
                "search": search,
                "min_price": min_price,
                "max_price": max_price,
                "material": material,
            },
            envelope=True,
        )
        return Page[Product].model_validate(body)

    async def get_product(self, slug: str) -> Product:
        """Get product details by slug"""
        return Product.model_validate(await self.api.get(f"/products/{slug}"))

    async def get_categories(self) -> list[Category]:
        """Get the category tree"""
        data = await self.api.get("/categories")
        return [Category.model_validate(c) for c in data or []]

    async def get_search_suggestions(self, query: str) -> list[str]:
        return await self.api.get("/search/suggestions", params={"q": query}) or []

    # ==================== Server cart APIs ====================

    async def get_cart(self) -> ServerCart:
        return ServerCart.model_validate(await self.api.get("/cart"))

    async def add_cart_item(self, product_id: int, quantity: int) -> ServerCart:
        data = await self.api.post(
            "/cart/items",
            json={"productId": product_id, "quantity": quantity},
        )
        return ServerCart.model_validate(data)

    async def update_cart_item(self, item_id: int, quantity: int) -> ServerCart:
        data = await self.api.put(f"/cart/items/{item_id}", json={"quantity": quantity})
        return ServerCart.model_validate(data)

    async def remove_cart_item(self, item_id: int) -> ServerCart:
        return ServerCart.model_validate(await self.api.delete(f"/cart/items/{item_id}"))

    async def clear_cart(self) -> None:
        await self.api.delete("/cart")

    # ==================== Checkout APIs ====================

    async def validate_promo(self, code: str, order_total: float) -> PromoValidationResult:
        data = await self.api.post(
            "/promo/validate",
            json={"code": code, "orderTotal": order_total},
        )
        return PromoValidationResult.model_validate(data)

    async def calculate_delivery(
        self,
        city: str,
        order_total: float,
        total_weight: Optional[float] = None,
    ) -> DeliveryCalculation:
        data = await self.api.post(
            "/delivery/calculate",
            json={"city": city, "orderTotal": order_total, "totalWeight": total_weight},
        )
        return DeliveryCalculation.model_validate(data)

    async def get_pickup_points(self, city: str) -> list[PickupPoint]:
        data = await self.api.get("/delivery/pickup-points", params={"city": city})
        return [PickupPoint.model_validate(p) for p in data or []]

    async def create_order(self, order: CreateOrderInput) -> Order:
        """Place an order"""
        data = await self.api.post(
            "/orders",
            json=order.model_dump(by_alias=True, exclude_none=True),
        )
        return Order.model_validate(data)

    async def get_order(self, order_number: str) -> Order:
        return Order.model_validate(await self.api.get(f"/orders/{order_number}"))

    async def get_my_orders(self) -> list[Order]:
        data = await self.api.get("/orders/my")
        return [Order.model_validate(o) for o in data or []]

    # ==================== Auth APIs ====================

    async def login(self, email: str, password: str) -> dict[str, Any]:
        return await self.api.post(
            "/auth/login",
            json={"email": email, "password": password},
            auth=False,
        )

    async def register(self, payload: dict[str, str]) -> dict[str, Any]:
        return await self.api.post("/auth/register", json=payload, auth=False)

    async def login_telegram(self, init_data: str) -> dict[str, Any]:
        return await self.api.post("/auth/telegram", json={"initData": init_data}, auth=False)

    async def login_telegram_widget(self, payload: dict[str, Any]) -> dict[str, Any]:
        return await self.api.post("/auth/telegram-widget", json=payload, auth=False)

    # ==================== Profile APIs ====================

    async def get_profile(self) -> Profile:
        return Profile.model_validate(await self.api.get("/users/me"))

    async def get_me(self) -> AuthUser:
        return AuthUser.model_validate(await self.api.get("/users/me"))

    async def update_profile(self, changes: dict[str, Any]) -> Profile:
        return Profile.model_validate(await self.api.put("/users/me", json=changes))

    async def get_referral_info(self) -> ReferralInfo:
        return ReferralInfo.model_validate(await self.api.get("/users/me/referral"))

    async def apply_referral_code(self, code: str) -> None:
        await self.api.post("/users/me/referral/apply", json={"code": code})

    async def get_bonus_history(self) -> list[BonusTransaction]:
        data = await self.api.get("/users/me/bonuses")
        return [BonusTransaction.model_validate(b) for b in data or []]

    async def send_verification_code(self) -> None:
        await self.api.post("/users/me/email/verify")

    async def confirm_verification_code(self, code: str) -> None:
        await self.api.post("/users/me/email/confirm", json={"code": code})

    # ==================== Review APIs ====================

    async def get_product_reviews(self, product_id: int) -> list[Review]:
        data = await self.api.get(f"/products/{product_id}/reviews")
        return [Review.model_validate(r) for r in data or []]

    async def create_review(
        self,
        product_id: int,
        order_id: int,
        rating: int,
        comment: Optional[str] = None,
    ) -> Review:
        """Review a product from a delivered order"""
        data = await self.api.post(
            f"/products/{product_id}/reviews",
            json={"orderId": order_id, "rating": rating, "comment": comment},
        )
        return Review.model_validate(data)

    async def get_my_reviews(self) -> list[Review]:
        data = await self.api.get("/reviews/my")
        return [Review.model_validate(r) for r in data or []]

    # ==================== Content & custom orders ====================

    async def get_content_block(self, slug: str) -> dict[str, Any]:
        # Content blocks are not wrapped in a data envelope
        return await self.api.get(f"/content/{slug}", envelope=True)

    async def submit_custom_order(self, order: SubmitCustomOrderInput) -> CustomOrder:
        data = await self.api.post(
            "/custom-orders",
            json=order.model_dump(by_alias=True, exclude_none=True),
        )
        return CustomOrder.model_validate(data)

    async def upload_custom_order_file(
        self,
        order_id: int,
        filename: str,
        content: bytes,
        content_type: str = "application/octet-stream",
    ) -> str:
        """Attach a model file to a custom order, returns its URL"""
        data = await self.api.post(
            f"/custom-orders/{order_id}/files",
            files={"file": (filename, content, content_type)},
            timeout=self.upload_timeout,
        )
        return data["url"]
