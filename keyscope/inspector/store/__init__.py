"""Store gateway implementations."""

from keyscope.inspector.store.base import (
    ConnectError,
    StoreConnection,
    StoreError,
    StoreGateway,
    StoreIOError,
    UnsupportedValueType,
)
from keyscope.inspector.store.redis_gateway import RedisConnection, RedisGateway

__all__ = [
    "ConnectError",
    "RedisConnection",
    "RedisGateway",
    "StoreConnection",
    "StoreError",
    "StoreGateway",
    "StoreIOError",
    "UnsupportedValueType",
]
