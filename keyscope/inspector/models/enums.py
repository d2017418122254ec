"""Shared enumerations used across the inspector."""

from __future__ import annotations

from enum import StrEnum

# -- Commands ----------------------------------------------------------------


class CommandKind(StrEnum):
    """Work a caller can ask the worker to perform."""

    REFRESH_KEYS = "refresh_keys"
    CONNECT = "connect"
    SELECT_VALUE = "select_value"
    DELETE_KEY = "delete_key"


# -- Results -----------------------------------------------------------------


class ResultKind(StrEnum):
    """Outcomes the worker publishes through a result sink."""

    KEYS_UPDATED = "keys_updated"
    REFRESH_FAILED = "refresh_failed"

    CONNECTION_ESTABLISHED = "connection_established"
    CONNECTION_FAILED = "connection_failed"

    VALUE_SELECTED = "value_selected"
    VALUE_FETCH_FAILED = "value_fetch_failed"

    KEY_DELETED = "key_deleted"
    DELETE_FAILED = "delete_failed"


# -- Values ------------------------------------------------------------------


class ValueKind(StrEnum):
    """Normalized value kinds.  Closed set: a new store kind is a breaking change."""

    SCALAR = "scalar"
    LIST = "list"
    SET = "set"
    RANKED_SET = "ranked_set"
    FIELD_MAP = "field_map"
    ABSENT = "absent"


# -- Connection --------------------------------------------------------------


class ConnectionStatus(StrEnum):
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
