"""Storefront sign-in, registration and logout"""

import logging
from typing import TYPE_CHECKING, Any, Optional

from shop_api.errors import ApiError, UnknownError
from shop_api.models import AuthUser
from shop_api.tokens import TokenPair

if TYPE_CHECKING:
    from ..core.session import StorefrontSession

logger = logging.getLogger(__name__)

# Stored until /users/me answers after an email login
PLACEHOLDER_USER = {"id": 0, "firstName": "", "role": "customer"}


def _token_pair(data: Any) -> TokenPair:
    if not isinstance(data, dict) or not data.get("accessToken"):
        raise UnknownError("Сервер вернул некорректный ответ авторизации")
    return TokenPair(access_token=data["accessToken"], refresh_token=data.get("refreshToken"))


class AuthService:
    """Auth actions for one storefront session"""

    def __init__(self, session: "StorefrontSession"):
        self.session = session
        self.shop = session.shop

    async def login_with_email(self, email: str, password: str) -> AuthUser:
        data = await self.shop.login(email, password)
        pair = _token_pair(data)

        # Login does not return the user, fetch the profile with the new token
        self.session.tokens.save_session(pair, PLACEHOLDER_USER)
        try:
            user = await self.shop.get_me()
        except ApiError:
            self.session.tokens.clear()
            raise

        await self._signed_in(pair, user)
        return user

    async def register(
        self,
        name: str,
        email: str,
        password: str,
        referral_code: Optional[str] = None,
    ) -> AuthUser:
        payload = {"name": name, "email": email, "password": password}
        if referral_code:
            payload["referralCode"] = referral_code
        return await self._sign_in_with(await self.shop.register(payload))

    async def login_with_telegram(self, init_data: str) -> AuthUser:
        return await self._sign_in_with(await self.shop.login_telegram(init_data))

    async def login_with_telegram_widget(self, widget: dict[str, Any]) -> AuthUser:
        payload = {
            "id": widget["id"],
            "firstName": widget.get("first_name") or "",
            "lastName": widget.get("last_name") or "",
            "username": widget.get("username") or "",
            "photoUrl": widget.get("photo_url") or "",
            "authDate": widget["auth_date"],
            "hash": widget["hash"],
        }
        return await self._sign_in_with(await self.shop.login_telegram_widget(payload))

    async def auto_login(self) -> Optional[AuthUser]:
        """Sign in silently when opened inside Telegram"""
        telegram = self.session.telegram
        if not telegram.is_telegram or not telegram.init_data:
            return None
        if self.session.is_authenticated:
            return self.session.user

        try:
            return await self.login_with_telegram(telegram.init_data)
        except ApiError as e:
            logger.warning(f"Telegram auto-login failed: {e.message}")
            return None

    def logout(self) -> None:
        self.session.teardown()
        logger.info(f"Session {self.session.session_id} logged out")

    async def _sign_in_with(self, data: Any) -> AuthUser:
        pair = _token_pair(data)
        user = AuthUser.model_validate(data.get("user") or PLACEHOLDER_USER)
        await self._signed_in(pair, user)
        return user

    async def _signed_in(self, pair: TokenPair, user: AuthUser) -> None:
        self.session.tokens.save_session(pair, user.model_dump(by_alias=True, exclude_none=True))
        self.session.cart_merged = False
        self.session.touch()
        logger.info(f"Session {self.session.session_id} signed in as user {user.id}")
        # First authenticated load merges the guest cart
        await self.session.cart.load()
