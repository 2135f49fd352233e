"""Application configuration models."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


SUPPORTED_PAGE_SIZES: tuple[int, ...] = (6, 12)


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    app_name: str = Field(default="MovieClub", alias="APP_NAME")
    server_host: str = Field(default="0.0.0.0", alias="HOST")
    server_port: int = Field(default=3000, alias="PORT")

    catalog_api_url: HttpUrl = Field(
        default="https://api.tvmaze.com", alias="CATALOG_API_URL"
    )
    catalog_timeout_seconds: float = Field(
        default=15.0, alias="CATALOG_TIMEOUT", gt=0, le=300
    )

    database_url: str = Field(
        default="sqlite+aiosqlite:///./movieclub.db", alias="DATABASE_URL"
    )
    watchlist_storage_key: str = Field(
        default="movieclub_watchlist", alias="WATCHLIST_STORAGE_KEY", min_length=1
    )

    default_query: str = Field(default="friends", alias="DEFAULT_QUERY")
    default_page_size: int = Field(default=6, alias="DEFAULT_PAGE_SIZE")

    environment: Literal["development", "production"] = Field(
        default="development", alias="ENVIRONMENT"
    )

    @field_validator("default_page_size")
    @classmethod
    def _check_page_size(cls, value: int) -> int:
        """Only the page sizes offered to users are accepted."""

        if value not in SUPPORTED_PAGE_SIZES:
            raise ValueError(
                "DEFAULT_PAGE_SIZE must be one of "
                + ", ".join(str(size) for size in SUPPORTED_PAGE_SIZES)
            )
        return value

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[call-arg]


settings = get_settings()
