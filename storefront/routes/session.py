"""Session routes: create, inspect and drop storefront sessions"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ..core.session import SessionManager, StorefrontSession
from ..services.auth import AuthService
from ..services.telegram import NAV_TABS, active_tab, parse_init_data, show_back_button
from .deps import get_session, get_session_manager

router = APIRouter(prefix="/api/session", tags=["Session"])


class SessionInitRequest(BaseModel):
    """Sent once when the storefront opens"""
    init_data: Optional[str] = None
    color_scheme: str = "dark"
    contact_phone: Optional[str] = None


@router.post("")
async def init_session(
    request: SessionInitRequest,
    session: StorefrontSession = Depends(get_session),
):
    """
    Attach the Telegram host context, if any, and load the cart.

    Inside Telegram the customer is signed in silently; outside it the
    session stays a guest until an explicit login.
    """
    if request.init_data:
        session.telegram = parse_init_data(request.init_data, request.color_scheme)
        session.telegram.contact_phone = request.contact_phone
        session.checkout.telegram = session.telegram
        await AuthService(session).auto_login()

    if not session.cart.loaded:
        await session.cart.load()
    session.checkout.apply_telegram_prefill()

    return {**session.to_dict(), "cart": session.cart.to_dict()}


@router.get("")
async def get_session_details(session: StorefrontSession = Depends(get_session)):
    """Get session details"""
    return session.to_dict()


@router.get("/chrome")
async def get_chrome(path: str = "/", session: StorefrontSession = Depends(get_session)):
    """Navigation chrome for a page when running inside Telegram"""
    telegram = session.telegram
    return {
        "isTelegram": telegram.is_telegram,
        "colorScheme": telegram.color_scheme,
        "showBackButton": telegram.is_telegram and show_back_button(path),
        "activeTab": active_tab(path),
        "tabs": [{"href": href, "label": label} for href, label in NAV_TABS],
    }


@router.delete("/{session_id}")
async def delete_session(
    session_id: str,
    manager: SessionManager = Depends(get_session_manager),
):
    """Delete a session"""
    if not manager.delete_session(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return {"status": "deleted", "session_id": session_id}
