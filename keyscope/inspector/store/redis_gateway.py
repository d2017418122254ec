"""Redis implementation of the store gateway.

Uses the synchronous redis-py client with ``decode_responses=True``::

    TYPE key -> string | list | set | zset | hash | none

and fetches with GET / LRANGE / SMEMBERS / ZRANGE WITHSCORES / HGETALL.
Keys are enumerated with SCAN so a large keyspace does not block the server.

A key can expire between TYPE and the fetch.  A nil GET reply or an empty
collection reply at that point is reported as ``Absent``: Redis never stores
an empty list, set, sorted set or hash.
"""

from __future__ import annotations

import logging

import redis
from redis.exceptions import AuthenticationError, RedisError, ResponseError

from keyscope.inspector.models.values import (
    Absent,
    FieldMap,
    ListValue,
    RankedMember,
    RankedSet,
    Scalar,
    SetValue,
    ValueModel,
)
from keyscope.inspector.store.base import ConnectError, StoreIOError, UnsupportedValueType

logger = logging.getLogger(__name__)


class RedisConnection:
    """A single redis-py client bound to one logical database."""

    def __init__(self, client: redis.Redis, *, scan_count: int = 1000) -> None:
        self._client = client
        self._scan_count = scan_count
        self._closed = False

    def list_keys(self) -> list[str]:
        try:
            keys = list(self._client.scan_iter(count=self._scan_count))
        except RedisError as exc:
            raise StoreIOError(f"failed to list keys: {exc}") from exc
        logger.debug("Listed %d keys", len(keys))
        return keys

    def get_value(self, key: str) -> ValueModel:
        try:
            try:
                store_type, value = self._type_and_fetch(key)
            except ResponseError as exc:
                if not str(exc).startswith("WRONGTYPE"):
                    raise
                # Replaced by a value of another type between TYPE and the fetch
                store_type, value = self._type_and_fetch(key)
        except UnsupportedValueType:
            raise
        except RedisError as exc:
            raise StoreIOError(f"failed to get value for {key!r}: {exc}") from exc
        logger.debug("Fetched %r as %s", key, store_type)
        return value

    def _type_and_fetch(self, key: str) -> tuple[str, ValueModel]:
        store_type = self._client.type(key)
        return store_type, self._fetch(key, store_type)

    def _fetch(self, key: str, store_type: str) -> ValueModel:
        client = self._client
        match store_type:
            case "none":
                return Absent()
            case "string":
                raw = client.get(key)
                return Absent() if raw is None else Scalar(value=raw)
            case "list":
                items = client.lrange(key, 0, -1)
                return ListValue(items=tuple(items)) if items else Absent()
            case "set":
                members = client.smembers(key)
                return SetValue(members=frozenset(members)) if members else Absent()
            case "zset":
                pairs = client.zrange(key, 0, -1, withscores=True, score_cast_func=str)
                if not pairs:
                    return Absent()
                return RankedSet(members=tuple(RankedMember(member=m, score=s) for m, s in pairs))
            case "hash":
                entries = client.hgetall(key)
                return FieldMap(entries=dict(entries)) if entries else Absent()
            case _:
                raise UnsupportedValueType(key, store_type)

    def delete_key(self, key: str) -> bool:
        try:
            removed = self._client.delete(key)
        except RedisError as exc:
            raise StoreIOError(f"failed to delete {key!r}: {exc}") from exc
        return bool(removed)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._client.close()
        except RedisError:
            logger.debug("Error while closing Redis client", exc_info=True)


class RedisGateway:
    """Opens ``RedisConnection`` sessions.

    ``socket_timeout`` bounds every call on an open connection; ``None`` leaves
    calls unbounded.  ``socket_connect_timeout`` bounds only the TCP connect.
    """

    def __init__(
        self,
        *,
        username: str | None = None,
        password: str | None = None,
        socket_connect_timeout: float | None = 5.0,
        socket_timeout: float | None = None,
        scan_count: int = 1000,
    ) -> None:
        self._username = username
        self._password = password
        self._socket_connect_timeout = socket_connect_timeout
        self._socket_timeout = socket_timeout
        self._scan_count = scan_count

    def connect(self, address: str, port: int, database: int) -> RedisConnection:
        client = redis.Redis(
            host=address,
            port=port,
            db=database,
            username=self._username,
            password=self._password,
            socket_connect_timeout=self._socket_connect_timeout,
            socket_timeout=self._socket_timeout,
            decode_responses=True,
        )
        try:
            # Selecting the database happens on first command; PING forces it.
            client.ping()
        except AuthenticationError as exc:
            client.close()
            raise ConnectError(f"authentication rejected by {address}:{port}: {exc}") from exc
        except ResponseError as exc:
            client.close()
            raise ConnectError(f"database {database} rejected by {address}:{port}: {exc}") from exc
        except RedisError as exc:
            client.close()
            raise ConnectError(f"cannot reach {address}:{port}: {exc}") from exc

        logger.debug("Connected to %s:%d/%d", address, port, database)
        return RedisConnection(client, scan_count=self._scan_count)
