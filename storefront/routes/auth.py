"""Storefront authentication routes"""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..core.session import StorefrontSession
from ..services.auth import AuthService
from .deps import get_session, require_user

router = APIRouter(prefix="/api/auth", tags=["Auth"])


class LoginRequest(BaseModel):
    email: str
    password: str


class RegisterRequest(BaseModel):
    name: str = Field(min_length=1)
    email: str
    password: str = Field(min_length=6)
    referral_code: Optional[str] = None


class TelegramLoginRequest(BaseModel):
    init_data: str


class TelegramWidgetRequest(BaseModel):
    """Payload of the Telegram login widget callback"""
    id: int
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    username: Optional[str] = None
    photo_url: Optional[str] = None
    auth_date: int
    hash: str


def _signed_in(session: StorefrontSession) -> dict:
    user = session.user
    return {
        "session_id": session.session_id,
        "user": user.model_dump(by_alias=True) if user else None,
        "cart": session.cart.to_dict(),
    }


@router.post("/login")
async def login(request: LoginRequest, session: StorefrontSession = Depends(get_session)):
    """Sign in with email and password"""
    await AuthService(session).login_with_email(request.email, request.password)
    return _signed_in(session)


@router.post("/register")
async def register(request: RegisterRequest, session: StorefrontSession = Depends(get_session)):
    await AuthService(session).register(
        request.name, request.email, request.password, request.referral_code
    )
    return _signed_in(session)


@router.post("/telegram")
async def login_telegram(
    request: TelegramLoginRequest,
    session: StorefrontSession = Depends(get_session),
):
    await AuthService(session).login_with_telegram(request.init_data)
    return _signed_in(session)


@router.post("/telegram-widget")
async def login_telegram_widget(
    request: TelegramWidgetRequest,
    session: StorefrontSession = Depends(get_session),
):
    await AuthService(session).login_with_telegram_widget(request.model_dump())
    return _signed_in(session)


@router.post("/logout")
async def logout(session: StorefrontSession = Depends(get_session)):
    """Sign out and drop the guest cart"""
    AuthService(session).logout()
    return {"status": "logged_out", "session_id": session.session_id}


@router.get("/me")
async def get_me(session: StorefrontSession = Depends(require_user)):
    return {"user": session.user.model_dump(by_alias=True)}
