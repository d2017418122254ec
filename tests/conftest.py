"""Shared test fixtures: fake store gateway, recording sink, Redis container.

Unit tests run against ``FakeGateway``, which records every call and fails
the test if two calls ever overlap.  Integration tests use a real Redis
container managed by testcontainers-python; they are marked with
``@pytest.mark.integration`` and require Docker.
"""

from __future__ import annotations

import os
import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager

import pytest

from keyscope.inspector.models.values import Absent, ValueModel
from keyscope.inspector.settings import _get_settings_cached
from keyscope.inspector.store.base import ConnectError, StoreIOError

# ---------------------------------------------------------------------------
# Fake gateway
# ---------------------------------------------------------------------------


class FakeConnection:
    def __init__(self, gateway: FakeGateway, conn_id: int) -> None:
        self.gateway = gateway
        self.conn_id = conn_id
        self.closed = False

    def list_keys(self) -> list[str]:
        with self.gateway.call("list_keys", self.conn_id):
            if self.gateway.list_failures > 0:
                self.gateway.list_failures -= 1
                msg = "connection reset by peer"
                raise StoreIOError(msg)
            return list(self.gateway.keys)

    def get_value(self, key: str) -> ValueModel:
        with self.gateway.call("get_value", self.conn_id, key):
            if self.gateway.get_failures > 0:
                self.gateway.get_failures -= 1
                msg = f"timeout reading {key}"
                raise StoreIOError(msg)
            return self.gateway.values.get(key, Absent())

    def delete_key(self, key: str) -> bool:
        with self.gateway.call("delete_key", self.conn_id, key):
            if self.gateway.delete_failures > 0:
                self.gateway.delete_failures -= 1
                msg = f"READONLY cannot delete {key}"
                raise StoreIOError(msg)
            existed = key in self.gateway.keys
            self.gateway.keys = [k for k in self.gateway.keys if k != key]
            self.gateway.values.pop(key, None)
            return existed

    def close(self) -> None:
        self.gateway.calls.append(("close", self.conn_id, None))
        self.closed = True


class FakeGateway:
    """In-memory gateway that asserts it is never entered concurrently.

    ``delay`` widens every call so overlapping callers would be caught.
    """

    def __init__(
        self,
        keys: list[str] | None = None,
        values: dict[str, ValueModel] | None = None,
        *,
        delay: float = 0.0,
    ) -> None:
        self.keys = list(keys or [])
        self.values = dict(values or {})
        self.delay = delay
        self.connect_error: str | None = None
        self.list_failures = 0
        self.get_failures = 0
        self.delete_failures = 0
        self.calls: list[tuple[str, int | None, object]] = []
        self.connections: list[FakeConnection] = []
        self.violations: list[str] = []
        self._busy = False
        self._guard = threading.Lock()

    @contextmanager
    def call(self, op: str, conn_id: int | None, arg: object = None) -> Iterator[None]:
        with self._guard:
            if self._busy:
                self.violations.append(op)
                msg = f"overlapping gateway call: {op}"
                raise AssertionError(msg)
            self._busy = True
        try:
            self.calls.append((op, conn_id, arg))
            if self.delay:
                time.sleep(self.delay)
            yield
        finally:
            with self._guard:
                self._busy = False

    def connect(self, address: str, port: int, database: int) -> FakeConnection:
        with self.call("connect", None, (address, port, database)):
            if self.connect_error is not None:
                raise ConnectError(self.connect_error)
            connection = FakeConnection(self, len(self.connections))
            self.connections.append(connection)
            return connection

    def ops(self) -> list[str]:
        return [op for op, _, _ in self.calls]


class RecordingSink:
    """Collects results in the order the worker applied them."""

    def __init__(self) -> None:
        self.results: list[object] = []
        self._lock = threading.Lock()

    def apply(self, result: object) -> None:
        with self._lock:
            self.results.append(result)

    def kinds(self) -> list[str]:
        with self._lock:
            return [r.kind for r in self.results]  # type: ignore[attr-defined]


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway(keys=["a", "b:c"])


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


# ---------------------------------------------------------------------------
# Settings isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _clear_settings_cache(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Ignore ambient KEYSCOPE_* variables and reset the cached settings."""
    for name in list(os.environ):
        if name.startswith("KEYSCOPE_"):
            monkeypatch.delenv(name)
    _get_settings_cached.cache_clear()
    yield
    _get_settings_cached.cache_clear()


# ---------------------------------------------------------------------------
# Redis container (integration)
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def redis_container():
    """Start a Redis 7 container for the test session."""
    from testcontainers.redis import RedisContainer

    with RedisContainer(image="redis:7") as r:
        yield r


@pytest.fixture(scope="session")
def redis_endpoint(redis_container) -> tuple[str, int]:
    host = redis_container.get_container_host_ip()
    port = int(redis_container.get_exposed_port(6379))
    return host, port


@pytest.fixture
def redis_client(redis_endpoint: tuple[str, int]):
    """Sync Redis client on database 0; flushed after each test."""
    import redis

    host, port = redis_endpoint
    client = redis.Redis(host=host, port=port, db=0, decode_responses=True)
    yield client
    client.flushdb()
    client.close()
