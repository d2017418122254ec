"""Command and result envelopes exchanged with the worker.

Commands flow caller -> channel -> worker; results flow worker -> sink.
Both are immutable tagged unions keyed on ``kind``.  A ``Connect`` is
validated when it is constructed, so the worker never receives a malformed
port or database index.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from keyscope.inspector.models.enums import CommandKind, ResultKind
from keyscope.inspector.models.values import ValueModel

MAX_PORT = 65535


class _Message(BaseModel):
    model_config = ConfigDict(frozen=True)


# -- Commands ----------------------------------------------------------------


class RefreshKeys(_Message):
    kind: Literal[CommandKind.REFRESH_KEYS] = CommandKind.REFRESH_KEYS


class Connect(_Message):
    kind: Literal[CommandKind.CONNECT] = CommandKind.CONNECT
    address: str
    port: int = Field(ge=0, le=MAX_PORT)
    database: int = Field(ge=0)


class SelectValue(_Message):
    kind: Literal[CommandKind.SELECT_VALUE] = CommandKind.SELECT_VALUE
    key: str


class DeleteKey(_Message):
    kind: Literal[CommandKind.DELETE_KEY] = CommandKind.DELETE_KEY
    key: str


Command = Annotated[
    RefreshKeys | Connect | SelectValue | DeleteKey,
    Field(discriminator="kind"),
]


# -- Results -----------------------------------------------------------------


class KeysUpdated(_Message):
    kind: Literal[ResultKind.KEYS_UPDATED] = ResultKind.KEYS_UPDATED
    keys: tuple[str, ...] = ()


class RefreshFailed(_Message):
    """Key enumeration failed.  Distinct from a successful empty ``KeysUpdated``."""

    kind: Literal[ResultKind.REFRESH_FAILED] = ResultKind.REFRESH_FAILED
    reason: str


class ConnectionEstablished(_Message):
    kind: Literal[ResultKind.CONNECTION_ESTABLISHED] = ResultKind.CONNECTION_ESTABLISHED
    address: str
    port: int
    database: int


class ConnectionFailed(_Message):
    kind: Literal[ResultKind.CONNECTION_FAILED] = ResultKind.CONNECTION_FAILED
    reason: str


class ValueSelected(_Message):
    kind: Literal[ResultKind.VALUE_SELECTED] = ResultKind.VALUE_SELECTED
    key: str
    value: ValueModel


class ValueFetchFailed(_Message):
    kind: Literal[ResultKind.VALUE_FETCH_FAILED] = ResultKind.VALUE_FETCH_FAILED
    key: str
    reason: str


class KeyDeleted(_Message):
    kind: Literal[ResultKind.KEY_DELETED] = ResultKind.KEY_DELETED
    key: str


class DeleteFailed(_Message):
    kind: Literal[ResultKind.DELETE_FAILED] = ResultKind.DELETE_FAILED
    key: str
    reason: str


Result = Annotated[
    KeysUpdated
    | RefreshFailed
    | ConnectionEstablished
    | ConnectionFailed
    | ValueSelected
    | ValueFetchFailed
    | KeyDeleted
    | DeleteFailed,
    Field(discriminator="kind"),
]
