"""Profile, referral, bonus and review routes for signed-in customers"""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from ..core.session import StorefrontSession
from .deps import require_user

router = APIRouter(prefix="/api/profile", tags=["Profile"])


class ProfileUpdateRequest(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None


class CodeRequest(BaseModel):
    code: str = Field(min_length=1)


class ReviewRequest(BaseModel):
    product_id: int
    order_id: int
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = None


@router.get("")
async def get_profile(session: StorefrontSession = Depends(require_user)):
    profile = await session.shop.get_profile()
    return profile.model_dump(by_alias=True)


@router.put("")
async def update_profile(
    request: ProfileUpdateRequest,
    session: StorefrontSession = Depends(require_user),
):
    changes = {to_camel(k): v for k, v in request.model_dump(exclude_none=True).items()}
    profile = await session.shop.update_profile(changes)
    return profile.model_dump(by_alias=True)


# ==================== Referral & bonuses ====================


@router.get("/referral")
async def get_referral(session: StorefrontSession = Depends(require_user)):
    info = await session.shop.get_referral_info()
    return info.model_dump(by_alias=True)


@router.post("/referral/apply")
async def apply_referral(request: CodeRequest, session: StorefrontSession = Depends(require_user)):
    await session.shop.apply_referral_code(request.code.strip())
    return {"status": "applied"}


@router.get("/bonuses")
async def get_bonuses(session: StorefrontSession = Depends(require_user)):
    history = await session.shop.get_bonus_history()
    return [t.model_dump(by_alias=True) for t in history]


# ==================== Email verification ====================


@router.post("/email/verify")
async def send_verification(session: StorefrontSession = Depends(require_user)):
    await session.shop.send_verification_code()
    return {"status": "sent"}


@router.post("/email/confirm")
async def confirm_email(request: CodeRequest, session: StorefrontSession = Depends(require_user)):
    await session.shop.confirm_verification_code(request.code.strip())
    return {"status": "confirmed"}


# ==================== Reviews ====================


@router.get("/reviews")
async def get_my_reviews(session: StorefrontSession = Depends(require_user)):
    reviews = await session.shop.get_my_reviews()
    return [r.model_dump(by_alias=True) for r in reviews]


@router.post("/reviews")
async def create_review(request: ReviewRequest, session: StorefrontSession = Depends(require_user)):
    """Review a product from a delivered order"""
    review = await session.shop.create_review(
        request.product_id, request.order_id, request.rating, request.comment
    )
    return review.model_dump(by_alias=True)
