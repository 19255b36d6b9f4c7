"""Admin auth provider: login, logout, identity and auth-error handling"""

import logging
from dataclasses import asdict, dataclass
from typing import Any, Optional

from shop_api.client import ApiClient
from shop_api.errors import ApiError, ErrorKind
from shop_api.tokens import AdminTokenStore, TokenPair, decode_claims

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"
HOME_PATH = "/"


@dataclass
class AuthResult:
    success: bool
    redirect_to: Optional[str] = None
    error_name: Optional[str] = None
    error_message: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class CheckResult:
    authenticated: bool
    redirect_to: Optional[str] = None


@dataclass
class Identity:
    id: Any
    name: str
    role: Optional[str]


@dataclass
class ErrorOutcome:
    """What the screen should do after a failed call"""
    logout: bool = False
    redirect_to: Optional[str] = None
    error: Optional[ApiError] = None


class AdminAuthProvider:
    """Token-based session of the back-office operator"""

    def __init__(self, api: ApiClient, tokens: AdminTokenStore):
        self.api = api
        self.tokens = tokens

    async def login(self, email: str, password: str) -> AuthResult:
        try:
            data = await self.api.post(
                "/auth/login",
                json={"email": email, "password": password},
                auth=False,
            )
            pair = TokenPair(access_token=data["accessToken"], refresh_token=data.get("refreshToken"))
        except ApiError as e:
            logger.warning(f"Admin login failed for {email}: {e.code or e.kind.value}")
            if e.code == "ACCOUNT_DISABLED":
                return AuthResult(
                    success=False,
                    error_name="Аккаунт деактивирован",
                    error_message=e.server_message or "Обратитесь к администратору",
                )
            return AuthResult(
                success=False,
                error_name="Ошибка входа",
                error_message=e.server_message or "Неверный email или пароль",
            )
        except (KeyError, TypeError):
            logger.error("Login response carried no tokens")
            return AuthResult(
                success=False,
                error_name="Ошибка входа",
                error_message="Неверный email или пароль",
            )

        self.tokens.save(pair)
        logger.info(f"Admin {email} signed in")
        return AuthResult(success=True, redirect_to=HOME_PATH)

    def logout(self) -> AuthResult:
        self.tokens.clear()
        return AuthResult(success=True, redirect_to=LOGIN_PATH)

    def check(self) -> CheckResult:
        """Authenticated when an access token is stored; the server decides the rest"""
        if self.tokens.load() is None:
            return CheckResult(authenticated=False, redirect_to=LOGIN_PATH)
        return CheckResult(authenticated=True)

    def get_identity(self) -> Optional[Identity]:
        pair = self.tokens.load()
        claims = decode_claims(pair.access_token if pair else None)
        if claims is None:
            return None

        role = claims.get("role")
        return Identity(
            id=claims.get("sub"),
            name="Администратор" if role == "admin" else "Пользователь",
            role=role,
        )

    def on_error(self, error: ApiError) -> ErrorOutcome:
        if error.kind == ErrorKind.AUTH or error.status_code == 401:
            self.tokens.clear()
            return ErrorOutcome(logout=True, redirect_to=LOGIN_PATH)
        return ErrorOutcome(error=error)
