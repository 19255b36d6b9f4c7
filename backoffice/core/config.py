"""Back-office Service Configuration"""

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class AdminSettings(BaseSettings):
    """Application settings loaded from environment"""

    model_config = SettingsConfigDict(
        env_file="config/.env",
        env_file_encoding="utf-8",
        env_prefix="ADMIN_",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Avangard Admin"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8002

    # Shop API
    api_base_url: str = "http://localhost:8080/api/v1"
    request_timeout: Optional[float] = None  # admin requests never time out

    # Token storage; in-memory when unset
    store_path: Optional[str] = None

    # Lists
    default_page_size: int = 20


@lru_cache()
def get_settings() -> AdminSettings:
    """Get cached settings instance"""
    return AdminSettings()


settings = get_settings()
