"""Cart routes"""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ..core.session import StorefrontSession
from .deps import get_loaded_session

router = APIRouter(prefix="/api/cart", tags=["Cart"])


class AddToCartRequest(BaseModel):
    """Products are added by slug so the current price and stock are used"""
    slug: str
    quantity: int = Field(default=1, ge=1)


class UpdateQuantityRequest(BaseModel):
    quantity: int


@router.get("")
async def get_cart(session: StorefrontSession = Depends(get_loaded_session)):
    """Get the cart for the current auth state"""
    return session.cart.to_dict()


@router.post("/items")
async def add_to_cart(
    request: AddToCartRequest,
    session: StorefrontSession = Depends(get_loaded_session),
):
    """Add a product to the cart"""
    product = await session.shop.get_product(request.slug)
    added = await session.cart.add_item(product, request.quantity)
    return {"added": added, "cart": session.cart.to_dict()}


@router.put("/items/{product_id}")
async def update_cart_item(
    product_id: int,
    request: UpdateQuantityRequest,
    session: StorefrontSession = Depends(get_loaded_session),
):
    if session.cart.get_item_quantity(product_id) == 0:
        raise HTTPException(status_code=404, detail="Item not in cart")
    updated = await session.cart.update_quantity(product_id, request.quantity)
    return {"updated": updated, "cart": session.cart.to_dict()}


@router.delete("/items/{product_id}")
async def remove_cart_item(
    product_id: int,
    session: StorefrontSession = Depends(get_loaded_session),
):
    if session.cart.get_item_quantity(product_id) == 0:
        raise HTTPException(status_code=404, detail="Item not in cart")
    removed = await session.cart.remove_item(product_id)
    return {"removed": removed, "cart": session.cart.to_dict()}


@router.delete("")
async def clear_cart(session: StorefrontSession = Depends(get_loaded_session)):
    cleared = await session.cart.clear()
    return {"cleared": cleared, "cart": session.cart.to_dict()}
