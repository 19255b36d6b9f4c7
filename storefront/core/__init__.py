# Core modules

from .config import settings
from .session import SessionManager, StorefrontSession

__all__ = ["settings", "SessionManager", "StorefrontSession"]
