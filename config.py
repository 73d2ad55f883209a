# config.py

from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings, read from BLOG_* environment variables or .env."""

    model_config = SettingsConfigDict(
        env_prefix="BLOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_title: str = Field(default="Blog API", description="OpenAPI title")

    # Database
    database_url: str = Field(default="sqlite+aiosqlite:///./blog.db")
    sql_echo: bool = Field(default=False, description="Echo SQL statements")
    sqlite_busy_timeout: float = Field(
        default=30.0, description="Seconds a SQLite connection waits on a locked database"
    )

    # Logging
    log_level: str = Field(default="INFO")
    log_file: Optional[Path] = Field(default=None)

    # HTTP
    cors_origins: List[str] = Field(default_factory=lambda: ["http://localhost:3000"])
    identity_header: str = Field(
        default="X-User-Id", description="Header carrying the upstream-verified user id"
    )

    # Query engine
    default_page_size: int = Field(default=10, ge=1)
    max_page_size: int = Field(default=100, ge=1)
    search_max_results: Optional[int] = Field(
        default=None, description="Optional cap on search results (unset = unlimited)"
    )
    category_recent_posts: int = Field(default=10, ge=0)

    # Posts
    excerpt_length: int = Field(default=150, ge=1)
    slug_max_attempts: int = Field(default=10, ge=1)

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
