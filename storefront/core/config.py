"""Storefront Service Configuration"""

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment"""

    model_config = SettingsConfigDict(
        env_file="config/.env",
        env_file_encoding="utf-8",
        env_prefix="STOREFRONT_",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Avangard Storefront"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000

    # Shop API
    api_base_url: str = "http://localhost:8080/api/v1"
    request_timeout: float = 10.0
    upload_timeout: float = 60.0

    # Checkout
    delivery_debounce_seconds: float = 0.5

    # Sessions
    session_store_dir: Optional[str] = None  # file-backed local stores when set
    session_max_age_hours: int = 24

    def store_path(self, session_id: str) -> Optional[str]:
        """Local store file for a session, None for in-memory stores"""
        if not self.session_store_dir:
            return None
        return f"{self.session_store_dir.rstrip('/')}/{session_id}.json"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
