"""Unit tests for settings and logging setup."""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator

import pytest
from loguru import logger
from pydantic import ValidationError

from keyscope.inspector.log import setup_logging
from keyscope.inspector.settings import InspectorSettings, get_settings
from keyscope.inspector.store.redis_gateway import RedisGateway

# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


def test_defaults() -> None:
    settings = InspectorSettings()
    assert settings.address == "127.0.0.1"
    assert settings.port == 6379
    assert settings.database == 0
    assert settings.separator == ":"
    assert settings.socket_timeout is None


def test_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("KEYSCOPE_ADDRESS", "redis.internal")
    monkeypatch.setenv("KEYSCOPE_SOCKET_TIMEOUT", "1.5")
    monkeypatch.setenv("KEYSCOPE_SEPARATOR", "/")

    settings = get_settings()
    assert settings.address == "redis.internal"
    assert settings.socket_timeout == 1.5
    assert settings.separator == "/"
    assert get_settings() is settings


def test_invalid_port_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("KEYSCOPE_PORT", "70000")
    with pytest.raises(ValidationError):
        InspectorSettings()


def test_empty_separator_rejected() -> None:
    with pytest.raises(ValidationError):
        InspectorSettings(separator="")


def test_create_gateway_passes_options() -> None:
    settings = InspectorSettings(password="s3cret", socket_timeout=2.0, scan_count=10)
    gateway = settings.create_gateway()

    assert isinstance(gateway, RedisGateway)
    assert gateway._password == "s3cret"
    assert gateway._socket_timeout == 2.0
    assert gateway._scan_count == 10
    assert "s3cret" not in repr(settings)


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


@pytest.fixture
def restore_logging() -> Iterator[None]:
    yield
    logger.remove()
    logger.add(sys.stderr)
    logging.basicConfig(handlers=[], level=logging.WARNING, force=True)


def test_stdlib_logging_is_routed_to_loguru(restore_logging: None) -> None:
    setup_logging("debug")
    captured: list[str] = []
    logger.add(lambda message: captured.append(message.record["message"]), level="DEBUG")

    logging.getLogger("keyscope.test").info("hello from stdlib")

    assert "hello from stdlib" in captured
    assert logging.getLogger("redis").level == logging.WARNING
