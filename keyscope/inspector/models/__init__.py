"""Data models for the inspector."""

from keyscope.inspector.models.enums import CommandKind, ConnectionStatus, ResultKind, ValueKind
from keyscope.inspector.models.namespace import Namespace
from keyscope.inspector.models.protocol import (
    Command,
    Connect,
    ConnectionEstablished,
    ConnectionFailed,
    DeleteFailed,
    DeleteKey,
    KeyDeleted,
    KeysUpdated,
    RefreshFailed,
    RefreshKeys,
    Result,
    SelectValue,
    ValueFetchFailed,
    ValueSelected,
)
from keyscope.inspector.models.state import ConnectionInfo, ErrorNotice, ViewerState
from keyscope.inspector.models.values import (
    Absent,
    FieldMap,
    ListValue,
    RankedMember,
    RankedSet,
    Scalar,
    SetValue,
    ValueModel,
    describe_value,
    is_absent,
    value_lines,
)

__all__ = [
    # Values
    "Absent",
    # Protocol
    "Command",
    # Enums
    "CommandKind",
    "Connect",
    "ConnectionEstablished",
    "ConnectionFailed",
    # State
    "ConnectionInfo",
    "ConnectionStatus",
    "DeleteFailed",
    "DeleteKey",
    "ErrorNotice",
    "FieldMap",
    "KeyDeleted",
    "KeysUpdated",
    "ListValue",
    # Namespace
    "Namespace",
    "RankedMember",
    "RankedSet",
    "RefreshFailed",
    "RefreshKeys",
    "Result",
    "ResultKind",
    "Scalar",
    "SelectValue",
    "SetValue",
    "ValueFetchFailed",
    "ValueKind",
    "ValueModel",
    "ValueSelected",
    "ViewerState",
    "describe_value",
    "is_absent",
    "value_lines",
]
