"""Toolkit Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - get_settings() is cached (lru_cache), single instance per process
    - Every component also takes its values as constructor arguments,
      so settings are defaults, never hard requirements

Design Decisions:
    - Database URL assembled from discrete fields when DATABASE_URL is unset,
      so existing MySQL-style deployments keep their host/port/user variables
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL


class Settings(BaseSettings):
    """Toolkit settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Deadlines
    request_timeout_ms: int = 30_000
    query_timeout_ms: int = 120_000

    # Correlation IDs
    uuid_namespace: str = "nl.mediaserve.common"

    # HTTP server
    server_address: str = "127.0.0.1"
    server_port: int = 3080
    server_name: str = "MediaServe"
    server_secret: str = "change-me"
    body_limit_mb: int = 16
    cors_enabled: bool = False
    cors_origins: list[str] = ["*"]

    # Database
    database_url: str = ""
    database_host: str = "127.0.0.1"
    database_port: int = 3306
    database_user: str = "mediaserve"
    database_password: str = "mediaserve"
    database_name: str = "mediaserve"
    database_pool_size: int = 32
    database_max_overflow: int = 0
    database_pool_timeout_s: int = 30

    # Observability
    log_level: str = "DEBUG"
    log_format: str = "console"

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_mysql_url(cls, v: str) -> str:
        """Plain mysql:// URLs need the async driver spelled out."""
        if isinstance(v, str) and v.startswith("mysql://"):
            return v.replace("mysql://", "mysql+aiomysql://", 1)
        return v

    @property
    def database_dsn(self) -> str:
        if self.database_url:
            return self.database_url
        return URL.create(
            "mysql+aiomysql",
            username=self.database_user,
            password=self.database_password,
            host=self.database_host,
            port=self.database_port,
            database=self.database_name,
        ).render_as_string(hide_password=False)

    @property
    def body_limit_bytes(self) -> int:
        return self.body_limit_mb * 1024 * 1024


@lru_cache
def get_settings() -> Settings:
    return Settings()
