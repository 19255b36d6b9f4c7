# Shop REST API client layer

from .client import ApiClient
from .errors import (
    ApiError,
    AuthError,
    BusinessError,
    ErrorKind,
    NetworkError,
    UnknownError,
    ValidationError,
    http_status,
    user_message,
)
from .storage import LocalStore
from .uploads import UploadFile, UploadOutcome, upload_sequentially
from .tokens import AdminTokenStore, StorefrontTokenStore, TokenPair, decode_claims

__all__ = [
    "ApiClient",
    "ApiError",
    "AuthError",
    "BusinessError",
    "ErrorKind",
    "NetworkError",
    "UnknownError",
    "ValidationError",
    "http_status",
    "user_message",
    "LocalStore",
    "UploadFile",
    "UploadOutcome",
    "upload_sequentially",
    "AdminTokenStore",
    "StorefrontTokenStore",
    "TokenPair",
    "decode_claims",
]
