"""Shared route dependencies"""

from typing import Optional

from fastapi import Depends, Header, Request, Response

from shop_api.errors import AuthError
from shop_api.handlers import SESSION_HEADER
from ..core.session import SessionManager, StorefrontSession


def get_session_manager(request: Request) -> SessionManager:
    return request.app.state.session_manager


def get_session(
    request: Request,
    response: Response,
    x_session_id: Optional[str] = Header(None),
    manager: SessionManager = Depends(get_session_manager),
) -> StorefrontSession:
    """Session named by the X-Session-Id header, created when absent or unknown"""
    session = manager.get_or_create_session(x_session_id)
    session.touch()
    request.state.session_id = session.session_id
    response.headers[SESSION_HEADER] = session.session_id
    return session


async def get_loaded_session(
    session: StorefrontSession = Depends(get_session),
) -> StorefrontSession:
    """Session whose cart has been loaded at least once"""
    if not session.cart.loaded:
        await session.cart.load()
    return session


def require_user(
    session: StorefrontSession = Depends(get_session),
) -> StorefrontSession:
    if not session.is_authenticated:
        raise AuthError("Требуется авторизация", status_code=401)
    return session
