# Core modules

from .config import settings, AdminSettings
from .context import AdminContext

__all__ = ["settings", "AdminSettings", "AdminContext"]
