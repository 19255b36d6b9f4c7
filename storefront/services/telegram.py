"""
Telegram Mini-App bridge

When the storefront is opened inside Telegram, the host passes an
URL-encoded `initData` payload. It only changes presentation (navigation
chrome) and checkout pre-fills; authentication is done server-side.
"""

import json
import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import parse_qsl

logger = logging.getLogger(__name__)

NAV_TABS = [
    ("/", "Главная"),
    ("/catalog", "Каталог"),
    ("/cart", "Корзина"),
    ("/orders", "Заказы"),
    ("/profile", "Профиль"),
]


@dataclass
class TelegramContext:
    """What the storefront knows about the Telegram host"""
    is_telegram: bool = False
    init_data: Optional[str] = None
    user_id: Optional[int] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    username: Optional[str] = None
    color_scheme: str = "dark"
    contact_phone: Optional[str] = None

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)


def parse_init_data(init_data: Optional[str], color_scheme: str = "dark") -> TelegramContext:
    """Build a context from the bridge's initData string"""
    if not init_data:
        return TelegramContext(color_scheme=color_scheme)

    fields = dict(parse_qsl(init_data, keep_blank_values=True))
    user: dict = {}
    if fields.get("user"):
        try:
            user = json.loads(fields["user"])
        except json.JSONDecodeError:
            logger.warning("Telegram initData carries an unreadable user field")

    return TelegramContext(
        is_telegram=True,
        init_data=init_data,
        user_id=user.get("id"),
        first_name=user.get("first_name"),
        last_name=user.get("last_name"),
        username=user.get("username"),
        color_scheme=color_scheme,
    )


def normalize_contact_phone(phone: str) -> str:
    """Telegram shares numbers without the leading plus"""
    phone = phone.strip()
    return phone if phone.startswith("+") else f"+{phone}"


def show_back_button(path: str) -> bool:
    return path not in ("/", "")


def active_tab(path: str) -> Optional[str]:
    """Bottom navigation tab highlighted for a path"""
    for href, _ in NAV_TABS:
        if href == "/":
            if path == "/":
                return href
        elif path.startswith(href):
            return href
    return None
