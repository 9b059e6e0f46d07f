"""Configuration models and helpers for pgsearch."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, SecretStr, field_validator
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from pgsearch.common.errors import InvalidArgumentError

logger = logging.getLogger(__name__)

DEFAULT_METADATA_SCHEMA = "pgsearch"
DATABASE_URL_ENV = "PGSEARCH_DATABASE_URL"

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class LogConf(BaseModel):
    """Logging configuration for the pgsearch logger tree."""

    level: str = Field(
        default="WARNING",
        description="Log level applied to the 'pgsearch' logger",
    )
    format: str = Field(
        default=_LOG_FORMAT,
        description="Format string for the attached stream handler",
    )

    @field_validator("level")
    @classmethod
    def _validate_level(cls, value: str) -> str:
        level = value.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {value}")
        return level

    def apply(self) -> None:
        """Configure the 'pgsearch' logger with this level and format."""
        root = logging.getLogger("pgsearch")
        root.setLevel(self.level)
        if not root.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter(self.format))
            root.addHandler(handler)


class SearchIndexConf(BaseModel):
    """Configuration for a pgvector-backed search index."""

    database_url: SecretStr = Field(
        ...,
        description="SQLAlchemy async database URL (postgresql+asyncpg://...)",
    )
    echo: bool = Field(
        default=False,
        description="Whether to echo SQL statements for debugging",
    )
    pool_size: int = Field(
        default=5,
        gt=0,
        description="Number of connections kept in the pool",
    )
    max_overflow: int = Field(
        default=10,
        ge=0,
        description="Connections allowed beyond pool_size",
    )
    metadata_schema: str = Field(
        default=DEFAULT_METADATA_SCHEMA,
        description="Postgres schema holding the search_indexes metadata table",
    )
    create_extension: bool = Field(
        default=False,
        description="Run CREATE EXTENSION IF NOT EXISTS vector on initialization",
    )
    log: LogConf = Field(default_factory=LogConf)

    @field_validator("database_url")
    @classmethod
    def _validate_database_url(cls, value: SecretStr) -> SecretStr:
        url = value.get_secret_value()
        if not url.startswith("postgresql"):
            raise ValueError("database_url must be a postgresql URL")
        return value

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> SearchIndexConf:
        """Build a configuration, filling database_url from the environment."""
        data = dict(data)
        if not data.get("database_url"):
            env_url = os.environ.get(DATABASE_URL_ENV)
            if env_url:
                data["database_url"] = env_url
        return cls.model_validate(data)

    @classmethod
    def from_yaml_file(cls, path: str | Path) -> SearchIndexConf:
        """Load a configuration from a YAML file."""
        text = Path(path).read_text(encoding="utf-8")
        data = yaml.safe_load(text) or {}
        if not isinstance(data, dict):
            raise InvalidArgumentError(
                f"Configuration file {path} must contain a mapping"
            )
        return cls.from_mapping(data)

    def build_engine(self) -> AsyncEngine:
        """Create the async engine described by this configuration."""
        url = self.database_url.get_secret_value()
        if url.startswith("postgresql://"):
            url = "postgresql+asyncpg://" + url.removeprefix("postgresql://")
        logger.debug("Creating async engine (pool_size=%d)", self.pool_size)
        return create_async_engine(
            url,
            echo=self.echo,
            pool_size=self.pool_size,
            max_overflow=self.max_overflow,
        )
