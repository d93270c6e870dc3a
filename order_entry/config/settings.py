"""
Settings
========

Every option can be set as an ``ORDER_ENTRY_``-prefixed environment
variable or in a ``.env`` file, e.g. ``ORDER_ENTRY_REMOTE_CATALOG_URL``.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Order-entry server and client options."""

    model_config = SettingsConfigDict(
        env_prefix="ORDER_ENTRY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Server
    # -------------------------------------------------------------------------
    host: str = Field(default="0.0.0.0", description="Address the catalog server binds to")
    port: int = Field(default=3000, ge=1, le=65535, description="Catalog server port")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Root log level"
    )
    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="development enables /docs; production logs JSON"
    )

    # -------------------------------------------------------------------------
    # Catalog Uploads
    # -------------------------------------------------------------------------
    max_file_size_mb: int = Field(default=10, ge=1, le=500, description="Max catalog size in MB")
    allowed_extensions: list[str] = Field(
        default=[".xlsx", ".xls", ".csv"],
        description="Accepted catalog file extensions",
    )
    catalog_profile: Literal["extended", "basic"] = Field(
        default="extended",
        description="Candidate header table: ten logical fields (extended) or four (basic)",
    )
    search_limit: int = Field(default=15, ge=1, le=500, description="Max search results")

    # -------------------------------------------------------------------------
    # Remote Catalog
    # -------------------------------------------------------------------------
    remote_catalog_url: str | None = Field(
        default=None,
        description="Base URL of a remote catalog server (None = in-process catalog)",
    )
    remote_timeout: float = Field(
        default=10.0, ge=0.5, le=300.0, description="Remote request timeout in seconds"
    )
    remote_max_retries: int = Field(
        default=3, ge=1, le=10, description="Connection attempts before falling back"
    )

    # -------------------------------------------------------------------------
    # Saved State
    # -------------------------------------------------------------------------
    state_dir: str = Field(default=".order_entry", description="Directory for saved state")
    state_key_prefix: str = Field(default="pedidomaslog", description="Prefix of state keys")

    # -------------------------------------------------------------------------
    # Export
    # -------------------------------------------------------------------------
    export_sheet_name: str = Field(default="Pedido", description="Worksheet title of exports")
    export_filename_prefix: str = Field(default="Pedido", description="Export filename prefix")

    @field_validator("allowed_extensions")
    @classmethod
    def normalize_extensions(cls, value: list[str]) -> list[str]:
        """Lower-case extensions and make sure each starts with a dot."""
        return [ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in value]

    @field_validator("remote_catalog_url")
    @classmethod
    def blank_url_is_local(cls, value: str | None) -> str | None:
        """An empty URL means the in-process catalog; trailing slashes are dropped."""
        if value is None or not value.strip():
            return None
        return value.strip().rstrip("/")

    @property
    def max_file_size_bytes(self) -> int:
        return self.max_file_size_mb * 1024 * 1024

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


@lru_cache
def get_settings() -> Settings:
    """Settings read once per process; call ``get_settings.cache_clear()`` to reload."""
    return Settings()
