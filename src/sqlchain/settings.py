"""Environment-driven settings for sqlchain.

``ChainSettings`` reads ``SQLCHAIN_*`` environment variables (and a ``.env``
file) so applications can build a factory without hard-coding URLs::

    SQLCHAIN_DATABASE_URL=postgresql://app:app@db:5432/app
    SQLCHAIN_POOL_SIZE=10
    SQLCHAIN_LOG_ERRORS=true

Examples:
    >>> from sqlchain.settings import ChainSettings
    >>> s = ChainSettings(database_url="sqlite:///orders.db")
    >>> s.engine_options()
    {'echo': False}
"""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ChainSettings(BaseSettings):
    """Database and logging configuration for a ``SqlChain`` factory.

    Fields
    ──────
    database_url : URL, path or ``memory`` passed to ``create_database``
    echo         : Log every SQL statement through SQLAlchemy
    pool_size    : Connection pool size (non-SQLite only)
    max_overflow : Connections allowed above ``pool_size``
    pool_timeout : Seconds to wait for a pooled connection
    log_level    : structlog level used by ``configure_logging``
    log_json     : JSON output; ``None`` auto-detects from the TTY
    log_errors   : Install ``StructlogErrorLogger`` as the factory's error logger
    """

    model_config = SettingsConfigDict(
        env_prefix="SQLCHAIN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Database ─────────────────────────────────────────────────
    database_url: str = "memory"
    echo: bool = False
    pool_size: int | None = Field(default=None, ge=1)
    max_overflow: int | None = Field(default=None, ge=0)
    pool_timeout: int | None = Field(default=None, ge=1)

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    log_json: bool | None = None
    log_errors: bool = False

    @field_validator("log_level")
    @classmethod
    def _normalise_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level: {value}")
        return level

    def engine_options(self) -> dict[str, Any]:
        """Keyword arguments for ``create_database`` / ``create_sa_engine``."""
        options: dict[str, Any] = {"echo": self.echo}
        if self.pool_size is not None:
            options["pool_size"] = self.pool_size
        if self.max_overflow is not None:
            options["max_overflow"] = self.max_overflow
        if self.pool_timeout is not None:
            options["pool_timeout"] = self.pool_timeout
        return options


__all__ = ["ChainSettings"]
