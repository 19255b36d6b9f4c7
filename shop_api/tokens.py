"""Access/refresh token persistence"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

import jwt

from .storage import LocalStore, AUTH_KEY, ADMIN_ACCESS_KEY, ADMIN_REFRESH_KEY

logger = logging.getLogger(__name__)


@dataclass
class TokenPair:
    """Bearer access token and the refresh token paired with it"""
    access_token: str
    refresh_token: Optional[str] = None


def decode_claims(access_token: Optional[str]) -> Optional[dict[str, Any]]:
    """
    Decode a JWT payload without verifying its signature.

    Only used to label the UI (user id, role); the server validates every
    request on its own.
    """
    if not access_token:
        return None

    try:
        return jwt.decode(
            access_token,
            options={"verify_signature": False, "verify_exp": False},
            algorithms=["HS256", "RS256"],
        )
    except jwt.PyJWTError as e:
        logger.debug(f"Could not decode access token: {e}")
        return None


class TokenStore:
    """Where the HTTP client reads and writes the current token pair"""

    def load(self) -> Optional[TokenPair]:
        raise NotImplementedError

    def save(self, pair: TokenPair) -> None:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError


class StorefrontTokenStore(TokenStore):
    """
    Storefront auth record: one JSON object holding both tokens and the
    signed-in user, stored under a single key.
    """

    def __init__(self, store: LocalStore):
        self.store = store

    def _record(self) -> dict[str, Any]:
        raw = self.store.get(AUTH_KEY)
        return raw if isinstance(raw, dict) else {}

    def load(self) -> Optional[TokenPair]:
        record = self._record()
        if not record.get("accessToken"):
            return None
        return TokenPair(
            access_token=record["accessToken"],
            refresh_token=record.get("refreshToken"),
        )

    def save(self, pair: TokenPair) -> None:
        record = self._record()
        record["accessToken"] = pair.access_token
        record["refreshToken"] = pair.refresh_token
        self.store.set(AUTH_KEY, record)

    def clear(self) -> None:
        self.store.remove(AUTH_KEY)

    def load_user(self) -> Optional[dict[str, Any]]:
        user = self._record().get("user")
        return user if isinstance(user, dict) else None

    def save_session(self, pair: TokenPair, user: dict[str, Any]) -> None:
        self.store.set(
            AUTH_KEY,
            {
                "accessToken": pair.access_token,
                "refreshToken": pair.refresh_token,
                "user": user,
            },
        )


class AdminTokenStore(TokenStore):
    """Admin tokens, kept under two separate keys"""

    def __init__(self, store: LocalStore):
        self.store = store

    def load(self) -> Optional[TokenPair]:
        access = self.store.get(ADMIN_ACCESS_KEY)
        if not access:
            return None
        return TokenPair(access_token=access, refresh_token=self.store.get(ADMIN_REFRESH_KEY))

    def save(self, pair: TokenPair) -> None:
        self.store.set(ADMIN_ACCESS_KEY, pair.access_token)
        self.store.set(ADMIN_REFRESH_KEY, pair.refresh_token)

    def clear(self) -> None:
        self.store.remove(ADMIN_ACCESS_KEY)
        self.store.remove(ADMIN_REFRESH_KEY)
