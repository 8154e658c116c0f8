"""
Configuration for applications that execute commands.

Nothing in the compiler or the resource runtime reads configuration; this
module only turns settings into an executor pool and a logging setup.

All fields can be set via ``RESOURCE_COMMANDS_*`` environment variables
(e.g. ``RESOURCE_COMMANDS_DATABASE_URL=postgresql://localhost/slep``) or a
``.env`` file.

Examples:
    >>> settings = get_settings()
    >>> settings.backend
    <Backend.SQLITE: 'sqlite'>
    >>> pool = create_pool(settings)
    >>> async with pool:
    ...     await commands.execute(pool)
"""

from __future__ import annotations

from urllib.parse import urlsplit

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .adapters import PostgreSQLPool, SQLitePool
from .dialect import Backend
from .errors import ConfigError
from .logging import configure_logging

_SCHEME_BACKENDS: dict[str, Backend] = {
    "sqlite": Backend.SQLITE,
    "sqlite+aiosqlite": Backend.SQLITE,
    "postgres": Backend.POSTGRES,
    "postgresql": Backend.POSTGRES,
    "postgresql+asyncpg": Backend.POSTGRES,
}


def backend_from_url(database_url: str) -> Backend:
    """Infer the backend from a database URL scheme.

    Raises:
        ConfigError: Unsupported scheme.
    """
    scheme = urlsplit(database_url).scheme.lower()
    if scheme not in _SCHEME_BACKENDS:
        raise ConfigError(
            f"Unsupported database URL scheme {scheme!r}. "
            f"Supported: {sorted(_SCHEME_BACKENDS)}"
        )
    return _SCHEME_BACKENDS[scheme]


def sqlite_path(database_url: str) -> str:
    """File path (or ``:memory:``) of a ``sqlite:///...`` URL.

    >>> sqlite_path("sqlite:///data/slep.db")
    'data/slep.db'
    >>> sqlite_path("sqlite:////var/lib/slep.db")
    '/var/lib/slep.db'
    >>> sqlite_path("sqlite://")
    ':memory:'
    """
    _, _, rest = database_url.partition("://")
    if rest.startswith("/"):
        rest = rest[1:]
    return rest or ":memory:"


class ResourceCommandsSettings(BaseSettings):
    """Settings for pools and logging."""

    model_config = SettingsConfigDict(
        env_prefix="RESOURCE_COMMANDS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Database ─────────────────────────────────────────────────
    database_url: str = Field(default="sqlite:///:memory:")
    pool_min_size: int = Field(default=1, ge=1)
    pool_max_size: int = Field(default=10, ge=1)
    command_timeout: float = Field(default=60.0, gt=0, description="Seconds, PostgreSQL only")

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_json: bool | None = Field(default=None, description="None = JSON when stderr is not a tty")

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        value = value.upper()
        if value not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"invalid log level {value!r}")
        return value

    @property
    def backend(self) -> Backend:
        return backend_from_url(self.database_url)


_settings_cache: ResourceCommandsSettings | None = None


def get_settings(*, _force_reload: bool = False) -> ResourceCommandsSettings:
    """Load and cache settings from the environment and ``.env``."""
    global _settings_cache
    if _settings_cache is None or _force_reload:
        _settings_cache = ResourceCommandsSettings()
    return _settings_cache


def create_pool(settings: ResourceCommandsSettings | None = None) -> SQLitePool | PostgreSQLPool:
    """Build (but do not connect) the executor pool described by ``settings``."""
    settings = settings or get_settings()
    if settings.pool_min_size > settings.pool_max_size:
        raise ConfigError(
            f"pool_min_size ({settings.pool_min_size}) exceeds "
            f"pool_max_size ({settings.pool_max_size})"
        )
    match settings.backend:
        case Backend.SQLITE:
            return SQLitePool(sqlite_path(settings.database_url))
        case Backend.POSTGRES:
            return PostgreSQLPool(
                settings.database_url,
                min_size=settings.pool_min_size,
                max_size=settings.pool_max_size,
                command_timeout=settings.command_timeout,
            )


def configure_from_settings(settings: ResourceCommandsSettings | None = None) -> None:
    """Apply the logging part of ``settings``."""
    settings = settings or get_settings()
    configure_logging(level=settings.log_level, json_format=settings.log_json)


__all__ = [
    "ResourceCommandsSettings",
    "backend_from_url",
    "configure_from_settings",
    "create_pool",
    "get_settings",
    "sqlite_path",
]
