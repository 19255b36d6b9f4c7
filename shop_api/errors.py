"""
Shop API Errors

Every failure that crosses the HTTP client boundary is normalized into one
of a small set of tagged exceptions, so callers catch a variant instead of
probing the shape of a raw response.
"""

import json
from enum import Enum
from typing import Any, Optional

import httpx

GENERIC_ERROR_MESSAGE = "Произошла ошибка. Попробуйте ещё раз"


class ErrorKind(str, Enum):
    """Tag of a normalized API failure"""
    VALIDATION = "validation"
    AUTH = "auth"
    BUSINESS = "business"
    NETWORK = "network"
    UNKNOWN = "unknown"


class ApiError(Exception):
    """Base exception for shop API errors"""

    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
        server_message: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        # Text taken from the response body, None when the server sent none
        self.server_message = server_message

    def to_dict(self) -> dict[str, Any]:
        """Error envelope in the same shape the backend uses"""
        return {
            "error": {
                "code": self.code or self.kind.value.upper(),
                "message": self.message,
            }
        }


class ValidationError(ApiError):
    """Client-side validation failed; nothing was sent"""

    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, field_errors: Optional[dict[str, str]] = None):
        super().__init__(message, code="VALIDATION_ERROR")
        self.field_errors = field_errors or {}

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        if self.field_errors:
            body["error"]["fields"] = dict(self.field_errors)
        return body


class AuthError(ApiError):
    """Missing, expired or unrefreshable credentials"""

    kind = ErrorKind.AUTH


class BusinessError(ApiError):
    """The server rejected the request (invalid promo, stock exhausted, ...)"""

    kind = ErrorKind.BUSINESS


class NetworkError(ApiError):
    """The request never produced an HTTP response"""

    kind = ErrorKind.NETWORK


class UnknownError(ApiError):
    """Anything that does not fit the other variants"""

    kind = ErrorKind.UNKNOWN


def _extract_envelope(body: Any) -> tuple[Optional[str], Optional[str]]:
    """Return (code, message) from an error body, if present"""
    if not isinstance(body, dict):
        return None, None

    error = body.get("error")
    if isinstance(error, dict):
        return error.get("code"), error.get("message")
    if isinstance(error, str) and error:
        return None, error

    message = body.get("message")
    if isinstance(message, str) and message:
        return body.get("code"), message

    return None, None


def error_from_response(
    response: httpx.Response,
    fallback: str = GENERIC_ERROR_MESSAGE,
) -> ApiError:
    """Map an unsuccessful HTTP response to a normalized error"""
    try:
        body = response.json()
    except (json.JSONDecodeError, ValueError):
        body = None

    code, message = _extract_envelope(body)
    status = response.status_code

    if status == 401:
        return AuthError(
            message or "Требуется авторизация",
            status_code=status,
            code=code,
            server_message=message,
        )

    if 400 <= status < 500 or message:
        return BusinessError(
            message or fallback,
            status_code=status,
            code=code,
            server_message=message,
        )

    return UnknownError(fallback, status_code=status, code=code)


def error_from_exception(
    exc: BaseException,
    fallback: str = GENERIC_ERROR_MESSAGE,
) -> ApiError:
    """Map an exception raised while talking to the API to a normalized error"""
    if isinstance(exc, ApiError):
        return exc

    if isinstance(exc, httpx.TimeoutException):
        return NetworkError("Сервер не отвечает, попробуйте позже")

    if isinstance(exc, httpx.TransportError):
        return NetworkError("Нет соединения с сервером")

    if isinstance(exc, httpx.HTTPStatusError):
        return error_from_response(exc.response, fallback)

    return UnknownError(fallback)


def user_message(err: BaseException, fallback: str = GENERIC_ERROR_MESSAGE) -> str:
    """Human-readable text for a toast or inline message"""
    if isinstance(err, (ValidationError, NetworkError)):
        return err.message
    if isinstance(err, ApiError) and err.server_message:
        return err.server_message
    return fallback


def http_status(err: ApiError) -> int:
    """Status code a service surface answers with for a normalized error"""
    if err.kind == ErrorKind.VALIDATION:
        return 422
    if err.kind == ErrorKind.AUTH:
        return 401
    if err.kind == ErrorKind.BUSINESS:
        if err.status_code and 400 <= err.status_code < 500 and err.status_code != 401:
            return err.status_code
        return 400
    if err.kind == ErrorKind.NETWORK:
        return 502
    return 500
