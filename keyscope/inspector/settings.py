"""Inspector configuration loaded from KEYSCOPE_* environment variables."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from keyscope.inspector.namespaces import DEFAULT_SEPARATOR
from keyscope.inspector.store.redis_gateway import RedisGateway


class InspectorSettings(BaseSettings):
    """Keyscope settings.

    All fields are read from environment variables with the ``KEYSCOPE_``
    prefix.  For example, ``KEYSCOPE_PORT=6380`` maps to ``port``.
    """

    model_config = SettingsConfigDict(
        env_prefix="KEYSCOPE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # -- Logging ---------------------------------------------------------------
    log_level: str = "WARNING"

    # -- Connection defaults ---------------------------------------------------
    address: str = "127.0.0.1"
    port: int = Field(default=6379, ge=0, le=65535)
    database: int = Field(default=0, ge=0)

    username: str | None = None
    password: SecretStr | None = None

    connect_timeout: float = 5.0
    socket_timeout: float | None = None
    """Bound on every call over an open connection.  ``None`` waits indefinitely."""

    scan_count: int = Field(default=1000, gt=0)
    """COUNT hint passed to SCAN while enumerating keys."""

    # -- Presentation ----------------------------------------------------------
    separator: str = Field(default=DEFAULT_SEPARATOR, min_length=1)
    """Namespace separator used to group keys."""

    # -- Worker ----------------------------------------------------------------
    join_timeout: float = 5.0
    """Seconds to wait for the worker thread to drain on close."""

    # -- Helpers ---------------------------------------------------------------

    def create_gateway(self) -> RedisGateway:
        return RedisGateway(
            username=self.username,
            password=self.password.get_secret_value() if self.password else None,
            socket_connect_timeout=self.connect_timeout,
            socket_timeout=self.socket_timeout,
            scan_count=self.scan_count,
        )


def get_settings() -> InspectorSettings:
    """Return a cached settings instance.

    Call ``_get_settings_cached.cache_clear()`` in tests to force a re-read
    after overriding env vars.
    """
    return _get_settings_cached()


@lru_cache(maxsize=1)
def _get_settings_cached() -> InspectorSettings:
    return InspectorSettings()
