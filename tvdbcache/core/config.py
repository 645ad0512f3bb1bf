"""Configuration management for tvdbcache."""

from pydantic import PositiveInt, field_validator
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict
from urllib.parse import urlparse


class Settings(BaseSettings):
    """Client settings loaded from TVDB_* environment variables."""

    # TVDB
    api_key: str | None = None
    language: str = "en"  # Default Accept-Language for every read
    base_url: str = "https://api.thetvdb.com"
    image_base_url: str = "https://thetvdb.com/banners/"

    # Network settings
    request_timeout: PositiveInt = 30  # Seconds, enforced by the transport
    # Proxy configuration in the format http://host:port or socks5://host:port
    proxy: str | None = None

    @field_validator("proxy")
    @classmethod
    def validate_proxy(cls, v: str | None) -> str | None:
        if v is None:
            return v

        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https", "socks4", "socks5", "socks5h"):
            raise ValueError(
                "Proxy must be a valid URL with scheme http/https/socks4/socks5/socks5h"
            )
        if not parsed.netloc:
            raise ValueError("Proxy must have a host and port")
        return v

    @field_validator("language")
    @classmethod
    def validate_language(cls, v: str) -> str:
        v = v.strip().lower()
        if not v:
            raise ValueError("Language must not be empty")
        return v

    model_config = SettingsConfigDict(
        env_prefix="TVDB_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
