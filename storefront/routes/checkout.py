"""Checkout routes"""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from shop_api.errors import BusinessError, ValidationError
from ..core.session import StorefrontSession
from ..services.checkout import ORDER_FAILED
from .deps import get_loaded_session

router = APIRouter(prefix="/api/checkout", tags=["Checkout"])


class ContactRequest(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    payment_method: Optional[str] = None


class DeliveryMethodRequest(BaseModel):
    method: str


class CityRequest(BaseModel):
    city: str


class PickupPointRequest(BaseModel):
    pickup_point_id: int


class PromoRequest(BaseModel):
    code: str


@router.get("")
async def get_checkout(session: StorefrontSession = Depends(get_loaded_session)):
    """Checkout form, delivery options, promo state and totals"""
    session.checkout.apply_telegram_prefill()
    return session.checkout.to_dict()


@router.put("/contact")
async def update_contact(
    request: ContactRequest,
    session: StorefrontSession = Depends(get_loaded_session),
):
    session.checkout.update_contact(**request.model_dump(exclude_none=True))
    return session.checkout.to_dict()


@router.put("/delivery-method")
async def set_delivery_method(
    request: DeliveryMethodRequest,
    session: StorefrontSession = Depends(get_loaded_session),
):
    session.checkout.set_delivery_method(request.method)
    return session.checkout.to_dict()


@router.put("/city")
async def set_city(
    request: CityRequest,
    wait: bool = False,
    session: StorefrontSession = Depends(get_loaded_session),
):
    """
    Record the delivery city. The options lookup runs after the settle
    delay; pass wait=true to answer with its result.
    """
    session.checkout.set_city(request.city)
    if wait:
        await session.checkout.wait_for_delivery()
    return session.checkout.to_dict()


@router.put("/pickup-point")
async def select_pickup_point(
    request: PickupPointRequest,
    session: StorefrontSession = Depends(get_loaded_session),
):
    session.checkout.select_pickup_point(request.pickup_point_id)
    return session.checkout.to_dict()


@router.post("/promo")
async def apply_promo(
    request: PromoRequest,
    session: StorefrontSession = Depends(get_loaded_session),
):
    """Validate a promo code; a rejection is reported in promo.error"""
    await session.checkout.apply_promo(request.code)
    return session.checkout.to_dict()


@router.delete("/promo")
async def remove_promo(session: StorefrontSession = Depends(get_loaded_session)):
    session.checkout.remove_promo()
    return session.checkout.to_dict()


@router.post("/submit")
async def submit_order(session: StorefrontSession = Depends(get_loaded_session)):
    """Place the order"""
    checkout = session.checkout
    if checkout.submitting:
        raise BusinessError("Заказ уже оформляется", status_code=409, code="SUBMIT_IN_PROGRESS")

    result = await checkout.submit()
    if result is None:
        if checkout.field_errors:
            raise ValidationError("Проверьте данные формы", checkout.field_errors)
        raise BusinessError(checkout.submit_error or ORDER_FAILED, code="ORDER_FAILED")

    return {
        "order": result.order.model_dump(by_alias=True),
        "redirect": result.confirmation_path,
        "cart": session.cart.to_dict(),
    }
