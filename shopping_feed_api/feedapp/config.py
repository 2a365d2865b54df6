"""
Configuration management for the Google Shopping Feed API.
"""

from typing import Literal, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Application settings."""

    redis_url: str = Field(default="redis://localhost:6379/0")
    storage_backend: Literal["redis", "memory"] = Field(default="redis")

    # Root URL of this API, substituted for MEDIA_BASE_URL when serving feeds
    api_root_url: Optional[str] = Field(default=None)
    # Storefront URL substituted for BASE_URL on the public feed route
    storefront_url: Optional[str] = Field(default=None)

    log_level: str = Field(default="INFO")

    default_refresh_period: str = Field(default="every 24 hours")
    default_shipping_country: str = Field(default="US")
    feed_handle: str = Field(default="google-shopping-feed.xml")

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)


_settings = Settings()


def get_settings() -> Settings:
    """Get application settings."""
    return _settings
