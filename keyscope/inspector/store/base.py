"""Store gateway interface.

The gateway is the only code that talks to the remote key-value store.  It is
synchronous and blocking by design: the worker owns the single connection
and calls it from one thread, so no two calls ever overlap.

Implementations translate client-library exceptions into the error classes
below; nothing from the wire client leaks past this boundary.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from keyscope.inspector.models.values import ValueModel


class StoreError(Exception):
    """Base class for gateway failures."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class ConnectError(StoreError):
    """Address unreachable, connection refused, auth rejected or invalid database."""


class StoreIOError(StoreError):
    """An operation failed on an established connection."""


class UnsupportedValueType(StoreIOError):
    """The store reported a value kind outside the normalized model."""

    def __init__(self, key: str, store_type: str) -> None:
        super().__init__(f"unsupported value type {store_type!r} for key {key!r}")
        self.key = key
        self.store_type = store_type


@runtime_checkable
class StoreConnection(Protocol):
    """An open session against one logical database."""

    def list_keys(self) -> Sequence[str]:
        """Enumerate all keys in the selected database.  No ordering guarantee."""
        ...

    def get_value(self, key: str) -> ValueModel:
        """Fetch and classify a value.  Missing keys yield ``Absent``, not an error."""
        ...

    def delete_key(self, key: str) -> bool:
        """Delete a key.  Returns ``False`` if it did not exist."""
        ...

    def close(self) -> None:
        """Release the session.  Safe to call more than once."""
        ...


@runtime_checkable
class StoreGateway(Protocol):
    def connect(self, address: str, port: int, database: int) -> StoreConnection:
        """Open a session.  Raises ``ConnectError`` on failure."""
        ...
