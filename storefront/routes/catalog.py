"""Catalog routes: products, categories, search and content blocks"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..core.session import StorefrontSession
from .deps import get_loaded_session, get_session

router = APIRouter(prefix="/api/catalog", tags=["Catalog"])


@router.get("/products")
async def list_products(
    page: Optional[int] = Query(None, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=100),
    category: Optional[str] = None,
    sort: Optional[str] = None,
    search: Optional[str] = None,
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    material: Optional[str] = None,
    session: StorefrontSession = Depends(get_session),
):
    """List products with filters and pagination"""
    result = await session.shop.get_products(
        page=page,
        limit=limit,
        category=category,
        sort=sort,
        search=search,
        min_price=min_price,
        max_price=max_price,
        material=material,
    )
    return result.model_dump(by_alias=True)


@router.get("/products/{slug}")
async def get_product(slug: str, session: StorefrontSession = Depends(get_loaded_session)):
    product = await session.shop.get_product(slug)
    return {
        **product.model_dump(by_alias=True),
        "inCart": session.cart.get_item_quantity(product.id),
    }


@router.get("/products/{product_id}/reviews")
async def get_product_reviews(product_id: int, session: StorefrontSession = Depends(get_session)):
    reviews = await session.shop.get_product_reviews(product_id)
    return [r.model_dump(by_alias=True) for r in reviews]


@router.get("/categories")
async def get_categories(session: StorefrontSession = Depends(get_session)):
    """Category tree"""
    categories = await session.shop.get_categories()
    return [c.model_dump(by_alias=True) for c in categories]


@router.get("/suggestions")
async def get_suggestions(
    q: str = Query(..., min_length=2),
    session: StorefrontSession = Depends(get_session),
):
    return {"suggestions": await session.shop.get_search_suggestions(q)}


@router.get("/content/{slug}")
async def get_content(slug: str, session: StorefrontSession = Depends(get_session)):
    """Editable content block (hero, footer)"""
    return await session.shop.get_content_block(slug)
