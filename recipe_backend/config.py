"""
Configuration and settings for the recipe backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Database (Postgres expected). DATABASE_URL wins over the DB_* parts.
    database_url: Optional[str] = Field(default=None)
    db_host: Optional[str] = Field(default=None)
    db_port: int = Field(default=5432)
    db_user: Optional[str] = Field(default=None)
    db_password: Optional[str] = Field(default=None)
    db_name: Optional[str] = Field(default=None)
    db_sslmode: Optional[str] = Field(default="require")

    # Blob storage
    storage_connection_string: Optional[str] = Field(default=None)
    storage_container: str = Field(default="recipes")

    # Uploads
    upload_dir: str = Field(default="uploads")
    max_upload_bytes: int = Field(default=50 * 1024 * 1024)

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000)
    log_level: str = Field(default="INFO")

    # Development toggles
    use_in_memory_backends: bool = Field(
        default=False, validation_alias="RECIPES_USE_IN_MEMORY_BACKENDS"
    )

    def resolved_database_url(self) -> Optional[str]:
        """
        Return the SQLAlchemy URL to connect with, or None when the database
        is not configured.
        """
        if self.database_url:
            return self.database_url
        if not (self.db_host and self.db_name):
            return None
        query = {"sslmode": self.db_sslmode} if self.db_sslmode else {}
        url = URL.create(
            "postgresql+psycopg2",
            username=self.db_user,
            password=self.db_password,
            host=self.db_host,
            port=self.db_port,
            database=self.db_name,
            query=query,
        )
        return url.render_as_string(hide_password=False)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
