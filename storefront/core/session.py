"""Storefront session management"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

import httpx

from shop_api.client import ApiClient
from shop_api.models import AuthUser
from shop_api.storage import CART_KEY, LocalStore
from shop_api.tokens import StorefrontTokenStore
from ..services.cart import CartService
from ..services.checkout import CheckoutFlow
from ..services.shop_client import ShopClient
from ..services.telegram import TelegramContext
from .config import Settings, get_settings

logger = logging.getLogger(__name__)


def is_valid_session_id(session_id: Optional[str]) -> bool:
    """Session ids double as store file names, so only UUIDs are accepted"""
    if not session_id:
        return False
    try:
        uuid.UUID(session_id)
    except ValueError:
        return False
    return True


@dataclass
class StorefrontSession:
    """
    Everything one browser session shares between pages: the local store,
    auth tokens, the cart and the checkout form.
    """
    session_id: str
    created_at: datetime
    updated_at: datetime
    store: LocalStore
    tokens: StorefrontTokenStore
    shop: Optional[ShopClient] = None
    telegram: TelegramContext = field(default_factory=TelegramContext)
    # Guest cart already merged into the server cart for this sign-in
    cart_merged: bool = False
    cart: Optional[CartService] = None
    checkout: Optional[CheckoutFlow] = None

    @property
    def user(self) -> Optional[AuthUser]:
        raw = self.tokens.load_user()
        return AuthUser.model_validate(raw) if raw else None

    @property
    def is_authenticated(self) -> bool:
        return self.tokens.load() is not None and self.tokens.load_user() is not None

    def touch(self) -> None:
        self.updated_at = datetime.now()

    def on_auth_lost(self) -> None:
        """Refresh failed and the client dropped the tokens"""
        logger.info(f"Session {self.session_id} lost its sign-in")
        self.cart_merged = False

    def teardown(self) -> None:
        """Log out: purge tokens and the guest cart"""
        self.tokens.clear()
        self.store.remove(CART_KEY)
        self.cart_merged = False
        if self.cart:
            self.cart.reset()
        self.touch()

    def to_dict(self) -> dict[str, Any]:
        user = self.user
        return {
            "session_id": self.session_id,
            "authenticated": self.is_authenticated,
            "user": user.model_dump(by_alias=True) if user else None,
            "telegram": self.telegram.is_telegram,
            "cart_merged": self.cart_merged,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


class SessionManager:
    """
    Creates and tracks storefront sessions.

    Constructed once at application start and handed to the routes; all
    sessions share one connection pool to the shop API.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self.sessions: dict[str, StorefrontSession] = {}
        self._http_client = httpx.AsyncClient(
            timeout=self.settings.request_timeout,
            transport=transport,
        )

    def create_session(self, session_id: Optional[str] = None) -> StorefrontSession:
        """Create a new session, reading any persisted auth record and guest cart"""
        self.cleanup_old_sessions()
        now = datetime.now()
        if not is_valid_session_id(session_id):
            session_id = str(uuid.uuid4())
        store = LocalStore(self.settings.store_path(session_id))
        session = StorefrontSession(
            session_id=session_id,
            created_at=now,
            updated_at=now,
            store=store,
            tokens=StorefrontTokenStore(store),
        )

        api = ApiClient(
            self.settings.api_base_url,
            session.tokens,
            on_auth_lost=session.on_auth_lost,
            http_client=self._http_client,
        )
        session.shop = ShopClient(api, upload_timeout=self.settings.upload_timeout)
        session.cart = CartService(session, session.shop)
        session.checkout = CheckoutFlow(
            session.cart,
            session.shop,
            session.telegram,
            debounce_seconds=self.settings.delivery_debounce_seconds,
        )

        self.sessions[session.session_id] = session
        logger.debug(f"Created session {session.session_id}")
        return session

    def get_session(self, session_id: str) -> Optional[StorefrontSession]:
        """Get session by ID"""
        return self.sessions.get(session_id)

    def get_or_create_session(self, session_id: Optional[str] = None) -> StorefrontSession:
        """Get existing session or create new one"""
        if session_id and session_id in self.sessions:
            return self.sessions[session_id]
        return self.create_session(session_id)

    def delete_session(self, session_id: str) -> bool:
        """Delete a session"""
        if session_id in self.sessions:
            del self.sessions[session_id]
            return True
        return False

    def cleanup_old_sessions(self, max_age_hours: Optional[int] = None) -> int:
        """Remove sessions idle longer than max_age_hours"""
        max_age_hours = max_age_hours or self.settings.session_max_age_hours
        now = datetime.now()
        old_sessions = [
            sid for sid, session in self.sessions.items()
            if (now - session.updated_at).total_seconds() > max_age_hours * 3600
        ]
        for sid in old_sessions:
            del self.sessions[sid]
        if old_sessions:
            logger.info(f"Dropped {len(old_sessions)} idle session(s)")
        return len(old_sessions)

    async def close(self) -> None:
        await self._http_client.aclose()
