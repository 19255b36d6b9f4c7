"""Shop API data models, mirroring the server's JSON resources"""

from datetime import datetime
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class ApiModel(BaseModel):
    """Base for server resources: camelCase on the wire, snake_case in Python"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# ==================== Catalog ====================


class ProductImage(ApiModel):
    id: int
    product_id: Optional[int] = None
    url: str
    url_large: Optional[str] = None
    url_medium: Optional[str] = None
    url_thumbnail: Optional[str] = None
    is_main: bool = False
    display_order: int = 0


class Category(ApiModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    parent_id: Optional[int] = None
    display_order: int = 0
    image_url: Optional[str] = None
    is_active: bool = True
    children: list["Category"] = []


class Product(ApiModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    short_description: Optional[str] = None
    price: float
    old_price: Optional[float] = None
    stock_quantity: int = Field(default=0, ge=0)
    sku: Optional[str] = None
    weight: Optional[float] = None
    material: Optional[str] = None
    category_id: Optional[int] = None
    images: list[ProductImage] = []
    is_active: bool = True
    is_featured: bool = False
    rating: float = 0.0

    def thumbnail(self) -> Optional[str]:
        """Main image thumbnail, falling back to the first image"""
        main = next((img for img in self.images if img.is_main), None)
        if main:
            return main.url_thumbnail or main.url
        if self.images:
            return self.images[0].url_thumbnail or self.images[0].url
        return None


class PaginationMeta(ApiModel):
    page: int = 1
    limit: int = 20
    total: int = 0
    total_pages: int = 0


class Page(ApiModel, Generic[T]):
    data: list[T] = []
    meta: PaginationMeta = PaginationMeta()


# ==================== Cart ====================


class ServerCartItem(ApiModel):
    id: int
    product_id: int
    quantity: int
    product: Product


class ServerCart(ApiModel):
    items: list[ServerCartItem] = []
    total_items: int = 0
    total_price: float = 0.0


# ==================== Checkout ====================


class PromoValidationResult(ApiModel):
    valid: bool
    code: str
    discount_type: str  # "percent" | "fixed"
    discount_value: float
    discount_amount: float
    message: Optional[str] = None


class DeliveryOption(ApiModel):
    type: str
    name: str
    cost: float
    original_cost: float = 0.0
    estimated_days_min: int = 0
    estimated_days_max: int = 0
    is_free_delivery: bool = False
    provider_name: str = ""


class PickupPoint(ApiModel):
    id: int
    name: str
    address: str
    city: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    phone: Optional[str] = None
    working_hours: str = ""


class DeliveryCalculation(ApiModel):
    courier_options: list[DeliveryOption] = []
    pickup_points: list[PickupPoint] = []
    has_pickup_points: bool = False


class OrderItemProduct(ApiModel):
    id: int
    name: str
    slug: str
    images: list[ProductImage] = []


class OrderItem(ApiModel):
    id: int
    product_id: Optional[int] = None
    quantity: int
    unit_price: float
    total_price: float
    product: Optional[OrderItemProduct] = None


class Order(ApiModel):
    id: int
    order_number: str
    order_type: str = "regular"
    status: str
    subtotal: float
    discount_amount: float = 0.0
    bonus_discount: float = 0.0
    delivery_cost: float = 0.0
    total_price: float
    promo_code: Optional[str] = None
    customer_name: str
    customer_phone: str
    customer_email: Optional[str] = None
    delivery_method: str
    delivery_address: Optional[str] = None
    payment_method: str
    is_paid: bool = False
    tracking_number: Optional[str] = None
    notes: Optional[str] = None
    items: list[OrderItem] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CreateOrderItem(ApiModel):
    product_id: int
    quantity: int


class CreateOrderInput(ApiModel):
    items: list[CreateOrderItem]
    customer_name: str
    customer_phone: str
    customer_email: Optional[str] = None
    delivery_method: str
    delivery_address: Optional[str] = None
    payment_method: str
    promo_code: Optional[str] = None
    bonus_amount: Optional[float] = None
    notes: Optional[str] = None
    telegram_id: Optional[int] = None
    pickup_point_id: Optional[int] = None
    city: Optional[str] = None


# ==================== Custom orders ====================


class CustomOrderDetails(ApiModel):
    id: Optional[int] = None
    client_description: Optional[str] = None
    admin_notes: Optional[str] = None
    file_urls: list[str] = []
    print_settings: dict[str, Any] = {}


class CustomOrder(ApiModel):
    id: int
    order_number: str
    status: str
    order_type: str = "custom"
    subtotal: float = 0.0
    total_price: float = 0.0
    is_paid: bool = False
    payment_method: Optional[str] = None
    payment_link: Optional[str] = None
    delivery_method: Optional[str] = None
    delivery_address: Optional[str] = None
    customer_name: str
    customer_phone: str
    customer_email: Optional[str] = None
    notes: Optional[str] = None
    custom_details: Optional[CustomOrderDetails] = None
    created_at: Optional[datetime] = None


class SubmitCustomOrderInput(ApiModel):
    customer_name: str
    customer_phone: str
    customer_email: Optional[str] = None
    client_description: Optional[str] = None
    payment_method: str = "card"
    delivery_method: str = "pickup"
    delivery_address: Optional[str] = None
    notes: Optional[str] = None


# ==================== Users, reviews, loyalty ====================


class AuthUser(ApiModel):
    id: int
    first_name: str = ""
    email: Optional[str] = None
    telegram_id: Optional[int] = None
    role: str = "customer"


class Profile(ApiModel):
    id: int
    email: Optional[str] = None
    email_verified: bool = False
    phone: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    username: Optional[str] = None
    telegram_id: Optional[int] = None
    role: str = "customer"


class ReferralInfo(ApiModel):
    referral_code: str
    referral_link: str
    referrals_count: int = 0
    bonus_balance: float = 0.0


class BonusTransaction(ApiModel):
    id: int
    amount: float
    type: str
    reference_id: Optional[int] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None


class Review(ApiModel):
    id: int
    user_id: Optional[int] = None
    product_id: int
    order_id: int
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = None
    status: str = "pending"
    created_at: Optional[datetime] = None


class LoyaltySettings(ApiModel):
    referrer_bonus_percent: float = Field(ge=0, le=100)
    referral_welcome_bonus: float = Field(ge=0)
    is_active: bool = True


class PromoCode(ApiModel):
    id: Optional[int] = None
    code: str
    discount_type: str = "percent"
    discount_value: float
    min_order_amount: float = 0.0
    max_uses: Optional[int] = None
    used_count: int = 0
    is_active: bool = True
    starts_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    description: Optional[str] = None


# ==================== Analytics ====================


class PeriodMetric(ApiModel):
    today: float = 0.0
    week: float = 0.0
    month: float = 0.0
    prev_week: float = 0.0
    prev_month: float = 0.0
    week_change: float = 0.0
    month_change: float = 0.0


class TopProduct(ApiModel):
    product_id: int
    name: str
    slug: str
    total_sold: int
    revenue: float
    image_url: Optional[str] = None


class LowStockProduct(ApiModel):
    id: int
    name: str
    slug: str
    stock_quantity: int


class PendingOrder(ApiModel):
    id: int
    order_number: str
    total_price: float
    hours_pending: float


class DashboardMetrics(ApiModel):
    revenue: PeriodMetric = PeriodMetric()
    orders_count: PeriodMetric = PeriodMetric()
    avg_check: PeriodMetric = PeriodMetric()
    new_customers: PeriodMetric = PeriodMetric()
    top_products: list[TopProduct] = []
    low_stock: list[LowStockProduct] = []
    pending_orders: list[PendingOrder] = []


class ChartPoint(ApiModel):
    date: str
    revenue: float
    orders_count: int
