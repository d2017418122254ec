"""Consumer-owned viewer state.

A ``ViewerState`` is an immutable snapshot.  The sink replaces the whole
snapshot on every result, so an observer never sees a half-applied update.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from keyscope.inspector.models.enums import ResultKind
from keyscope.inspector.models.namespace import Namespace
from keyscope.inspector.models.values import ValueModel


class ConnectionInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    address: str
    port: int
    database: int


class ErrorNotice(BaseModel):
    """Last failure reported by the worker, tagged with the result kind."""

    model_config = ConfigDict(frozen=True)

    kind: ResultKind
    message: str
    key: str | None = None


class ViewerState(BaseModel):
    model_config = ConfigDict(frozen=True)

    # -- Keys ------------------------------------------------------------------
    keys: tuple[str, ...] = ()
    namespace: Namespace = Field(default_factory=Namespace)
    is_refreshing: bool = False

    # -- Connection ------------------------------------------------------------
    is_connection_form_showing: bool = True
    connection: ConnectionInfo | None = None

    # -- Selection -------------------------------------------------------------
    selected_key: str | None = None
    selected_value: ValueModel | None = None
    """``None`` means nothing selected; ``Absent`` means the key had no value."""

    # -- Errors ----------------------------------------------------------------
    last_error: ErrorNotice | None = None
