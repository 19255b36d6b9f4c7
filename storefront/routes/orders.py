"""Order tracking routes"""

from fastapi import APIRouter, Depends

from ..core.session import StorefrontSession
from .deps import get_session, require_user

router = APIRouter(prefix="/api/orders", tags=["Orders"])


@router.get("/my")
async def get_my_orders(session: StorefrontSession = Depends(require_user)):
    """Orders of the signed-in customer"""
    orders = await session.shop.get_my_orders()
    return [o.model_dump(by_alias=True) for o in orders]


@router.get("/{order_number}")
async def get_order(order_number: str, session: StorefrontSession = Depends(get_session)):
    """Order confirmation and status page"""
    order = await session.shop.get_order(order_number)
    return order.model_dump(by_alias=True)
