"""
Checkout

Computes the payable total from the cart subtotal, the delivery method and
an optional promo code, and looks up delivery options as the customer
types a city.
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from shop_api.errors import ApiError, ValidationError, user_message
from shop_api.models import (
    CreateOrderInput,
    CreateOrderItem,
    DeliveryCalculation,
    Order,
    PromoValidationResult,
)
from .cart import CartService
from .shop_client import ShopClient
from .telegram import TelegramContext, normalize_contact_phone

logger = logging.getLogger(__name__)

PROMO_NOT_FOUND = "Промокод не найден"
ORDER_FAILED = "Ошибка при оформлении заказа"
DELIVERY_FAILED = "Не удалось рассчитать доставку"

CONTACT_FIELDS = ("name", "phone", "email", "address", "notes")


class DeliveryMethod(str, Enum):
    PICKUP = "pickup"
    COURIER = "courier"
    PICKUP_POINT = "pickup_point"


class PaymentMethod(str, Enum):
    CARD = "card"
    CASH = "cash"


@dataclass
class CheckoutForm:
    """Contact and delivery fields entered by the customer"""
    name: str = ""
    phone: str = ""
    email: str = ""
    address: str = ""
    city: str = ""
    notes: str = ""
    delivery_method: DeliveryMethod = DeliveryMethod.PICKUP
    payment_method: PaymentMethod = PaymentMethod.CARD
    pickup_point_id: Optional[int] = None


@dataclass
class CheckoutResult:
    """A placed order and where to send the customer next"""
    order: Order
    confirmation_path: str


def phone_digits(phone: str) -> str:
    return re.sub(r"\D", "", phone)


class CheckoutFlow:
    """Checkout state for one storefront session"""

    def __init__(
        self,
        cart: CartService,
        shop: ShopClient,
        telegram: Optional[TelegramContext] = None,
        debounce_seconds: float = 0.5,
    ):
        self.cart = cart
        self.shop = shop
        self.telegram = telegram or TelegramContext()
        self.debounce_seconds = debounce_seconds
        self.form = CheckoutForm()
        self.field_errors: dict[str, str] = {}

        # Promo
        self.promo_code = ""
        self.promo_result: Optional[PromoValidationResult] = None
        self.promo_error = ""
        self.promo_loading = False

        # Delivery lookup
        self.delivery: Optional[DeliveryCalculation] = None
        self.delivery_loading = False
        self.delivery_error = ""
        self._debounce_task: Optional[asyncio.Future] = None
        self._lookup_task: Optional[asyncio.Future] = None
        self._lookup_seq = 0

        # Submission
        self.submitting = False
        self.submit_error = ""
        self.order: Optional[Order] = None

    # ==================== Totals ====================

    @property
    def subtotal(self) -> float:
        return self.cart.total_price

    @property
    def discount_amount(self) -> float:
        return self.promo_result.discount_amount if self.promo_result else 0.0

    @property
    def delivery_cost(self) -> float:
        if self.form.delivery_method == DeliveryMethod.COURIER:
            if self.delivery and self.delivery.courier_options:
                return self.delivery.courier_options[0].cost
        # Pickup is free; pickup point cost is informational only
        return 0.0

    @property
    def final_total(self) -> float:
        return max(0.0, round(self.subtotal - self.discount_amount + self.delivery_cost, 2))

    # ==================== Form ====================

    def update_contact(self, **fields: Any) -> None:
        """Set form fields; editing a field clears its error"""
        for name, value in fields.items():
            if value is None:
                continue
            if name == "payment_method":
                try:
                    self.form.payment_method = PaymentMethod(value)
                except ValueError:
                    raise ValidationError(
                        "Неизвестный способ оплаты",
                        {"paymentMethod": "Выберите способ оплаты"},
                    )
                continue
            if name not in CONTACT_FIELDS:
                raise ValueError(f"Unknown checkout field: {name}")
            setattr(self.form, name, value)
            self.field_errors.pop(name, None)

    def apply_telegram_prefill(self) -> None:
        """Fill empty name/phone from the Telegram host"""
        if not self.telegram.is_telegram:
            return
        if not self.form.name and self.telegram.full_name:
            self.form.name = self.telegram.full_name
        if not self.form.phone and self.telegram.contact_phone:
            self.form.phone = normalize_contact_phone(self.telegram.contact_phone)

    def set_delivery_method(self, method: str) -> None:
        try:
            new_method = DeliveryMethod(method)
        except ValueError:
            raise ValidationError(
                "Неизвестный способ доставки",
                {"deliveryMethod": "Выберите способ доставки"},
            )

        if new_method != DeliveryMethod.PICKUP_POINT:
            self.form.pickup_point_id = None
            self.field_errors.pop("pickupPoint", None)
        if new_method != DeliveryMethod.COURIER:
            self.field_errors.pop("address", None)
        self.form.delivery_method = new_method

    def select_pickup_point(self, point_id: int) -> None:
        points = self.delivery.pickup_points if self.delivery else []
        if not any(p.id == point_id for p in points):
            raise ValidationError(
                "Пункт выдачи не найден",
                {"pickupPoint": "Выберите пункт выдачи из списка"},
            )
        self.form.pickup_point_id = point_id
        self.field_errors.pop("pickupPoint", None)

    # ==================== Delivery lookup ====================

    def set_city(self, city: str) -> None:
        """
        Record the city and (re)start the settle timer. Only the timer is
        reset; a lookup already in flight keeps running and its result is
        dropped if a newer lookup has started since.
        """
        self.form.city = city
        if self._debounce_task and not self._debounce_task.done():
            self._debounce_task.cancel()
        self._debounce_task = asyncio.ensure_future(self._settle(city))

    async def _settle(self, city: str) -> None:
        await asyncio.sleep(self.debounce_seconds)
        self._lookup_task = asyncio.ensure_future(self.lookup_delivery(city))

    async def wait_for_delivery(self) -> None:
        """Wait until the pending timer and lookup, if any, have finished"""
        timer = self._debounce_task
        if timer and not timer.done():
            try:
                await timer
            except asyncio.CancelledError:
                pass
        if self._lookup_task:
            await self._lookup_task

    async def lookup_delivery(self, city: str) -> Optional[DeliveryCalculation]:
        city = city.strip()
        subtotal = self.subtotal
        self._lookup_seq += 1
        seq = self._lookup_seq
        if not city or subtotal <= 0:
            # Results of earlier lookups still in flight no longer apply
            self.delivery_loading = False
            return None

        self.delivery_loading = True
        self.delivery_error = ""
        try:
            result = await self.shop.calculate_delivery(city, subtotal)
        except ApiError as e:
            logger.error(f"Delivery lookup for {city!r} failed: {e.message}")
            if seq == self._lookup_seq:
                self.delivery = None
                self.delivery_error = user_message(e, DELIVERY_FAILED)
            return None
        finally:
            if seq == self._lookup_seq:
                self.delivery_loading = False

        if seq != self._lookup_seq:
            logger.debug(f"Discarding stale delivery lookup for {city!r}")
            return None

        self.delivery = result
        selected = self.form.pickup_point_id
        if selected is not None and not any(p.id == selected for p in result.pickup_points):
            self.form.pickup_point_id = None
        return result

    # ==================== Promo ====================

    async def apply_promo(self, code: str) -> Optional[PromoValidationResult]:
        """
        Validate a promo code for the current subtotal. A rejected code only
        sets the inline error; a previously applied promo stays in effect.
        """
        code = code.strip()
        if not code:
            return None

        self.promo_code = code
        self.promo_loading = True
        self.promo_error = ""
        try:
            result = await self.shop.validate_promo(code, self.subtotal)
        except ApiError as e:
            self.promo_error = user_message(e, PROMO_NOT_FOUND)
            return None
        finally:
            self.promo_loading = False

        if not result.valid:
            self.promo_error = result.message or PROMO_NOT_FOUND
            return None

        self.promo_result = result
        return result

    def remove_promo(self) -> None:
        self.promo_result = None
        self.promo_code = ""
        self.promo_error = ""

    # ==================== Submission ====================

    def validate(self) -> bool:
        """Check required fields; sets field_errors"""
        form = self.form
        errors: dict[str, str] = {}

        if not form.name.strip():
            errors["name"] = "Введите имя"
        if not form.phone.strip():
            errors["phone"] = "Введите телефон"
        elif len(phone_digits(form.phone)) < 10:
            errors["phone"] = "Некорректный номер телефона"
        if form.delivery_method == DeliveryMethod.COURIER and not form.address.strip():
            errors["address"] = "Введите адрес доставки"
        if form.delivery_method == DeliveryMethod.PICKUP_POINT and form.pickup_point_id is None:
            errors["pickupPoint"] = "Выберите пункт выдачи"

        self.field_errors = errors
        return not errors

    def build_order_input(self) -> CreateOrderInput:
        form = self.form
        method = form.delivery_method
        return CreateOrderInput(
            items=[
                CreateOrderItem(product_id=item.product_id, quantity=item.quantity)
                for item in self.cart.items
            ],
            customer_name=form.name.strip(),
            customer_phone=form.phone.strip(),
            customer_email=form.email.strip() or None,
            delivery_method=method.value,
            delivery_address=form.address.strip() if method == DeliveryMethod.COURIER else None,
            pickup_point_id=form.pickup_point_id if method == DeliveryMethod.PICKUP_POINT else None,
            city=(form.city.strip() or None) if method != DeliveryMethod.PICKUP else None,
            payment_method=form.payment_method.value,
            promo_code=self.promo_result.code if self.promo_result else None,
            notes=form.notes.strip() or None,
            telegram_id=self.telegram.user_id,
        )

    async def submit(self) -> Optional[CheckoutResult]:
        """
        Place the order. Nothing is sent when validation fails or a
        submission is already in flight.
        """
        if self.submitting:
            return None
        if not self.validate():
            return None
        if not self.cart.items:
            self.submit_error = "Корзина пуста"
            return None

        self.submitting = True
        self.submit_error = ""
        try:
            order = await self.shop.create_order(self.build_order_input())
        except ApiError as e:
            logger.error(f"Order submission failed: {e.message}")
            self.submit_error = user_message(e, ORDER_FAILED)
            return None
        finally:
            self.submitting = False

        self.order = order
        logger.info(f"Order {order.order_number} placed: {order.total_price}")
        await self.cart.clear()
        self.remove_promo()
        return CheckoutResult(order=order, confirmation_path=f"/order/{order.order_number}")

    def to_dict(self) -> dict[str, Any]:
        form = self.form
        return {
            "form": {
                "name": form.name,
                "phone": form.phone,
                "email": form.email,
                "address": form.address,
                "city": form.city,
                "notes": form.notes,
                "deliveryMethod": form.delivery_method.value,
                "paymentMethod": form.payment_method.value,
                "pickupPointId": form.pickup_point_id,
            },
            "fieldErrors": dict(self.field_errors),
            "promo": {
                "code": self.promo_code,
                "result": self.promo_result.model_dump(by_alias=True) if self.promo_result else None,
                "error": self.promo_error,
                "loading": self.promo_loading,
            },
            "delivery": {
                "options": self.delivery.model_dump(by_alias=True) if self.delivery else None,
                "loading": self.delivery_loading,
                "error": self.delivery_error,
            },
            "totals": {
                "subtotal": self.subtotal,
                "discountAmount": self.discount_amount,
                "deliveryCost": self.delivery_cost,
                "finalTotal": self.final_total,
            },
            "submitting": self.submitting,
            "submitError": self.submit_error,
        }
