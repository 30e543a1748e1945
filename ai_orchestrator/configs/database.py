"""
Job store database configuration.

Connection parameters for the PostgreSQL database holding jobs,
taxonomies and sentences. POSTGRES_URL overrides the individual parts,
which also lets a local run point at SQLite.

Dependencies: pydantic, pydantic_settings, sqlalchemy
System role: Database connection configuration for ORM
"""

from typing import Any

from pydantic import Field
from sqlalchemy.engine import URL, make_url

from ai_orchestrator.configs.base import BaseSettings, env_config


class DatabaseSettings(BaseSettings):
    """PostgreSQL connection and pool settings (POSTGRES_* variables)."""

    model_config = env_config("POSTGRES_")

    host: str = Field(default="localhost")
    port: int = Field(default=5432)
    user: str = Field(default="postgres")
    password: str = Field(default="postgres")
    db: str = Field(default="taxonomy_labeling", description="Database name")
    require_ssl: bool = Field(default=False, description="Connect with ssl=require")

    url: str | None = Field(
        default=None,
        description="Full SQLAlchemy async URL; replaces host/port/user/password/db",
    )

    pool_size: int = Field(default=10, ge=1)
    max_overflow: int = Field(default=20, ge=0)
    pool_timeout: int = Field(default=30, description="Seconds to wait for a pooled connection")
    pool_recycle: int = Field(default=1800, description="Seconds before a connection is replaced")
    echo_sql: bool = Field(default=False, description="Echo SQL statements to logs")

    @property
    def async_database_url(self) -> URL:
        """SQLAlchemy URL for the asyncpg driver (or the override)."""
        if self.url:
            return make_url(self.url)
        return URL.create(
            "postgresql+asyncpg",
            username=self.user,
            password=self.password,
            host=self.host,
            port=self.port,
            database=self.db,
            query={"ssl": "require"} if self.require_ssl else {},
        )

    def engine_options(self) -> dict[str, Any]:
        """Keyword arguments for create_async_engine; SQLite takes no pool sizing."""
        options: dict[str, Any] = {"echo": self.echo_sql, "pool_pre_ping": True}
        if self.async_database_url.get_backend_name() != "sqlite":
            options.update(
                pool_size=self.pool_size,
                max_overflow=self.max_overflow,
                pool_timeout=self.pool_timeout,
                pool_recycle=self.pool_recycle,
            )
        return options
