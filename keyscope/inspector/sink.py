"""Result sinks -- where the worker publishes outcomes.

The worker calls ``apply`` once per result, from its own thread.  A sink must
not block the worker for long: sinks that hand results to another execution
context do so fire-and-continue (``LoopSink``, ``StateSink`` with a
``dispatch`` hook).

``StateSink`` keeps a ``ViewerState`` snapshot and replaces it wholesale
under a lock, so readers on other threads only ever see complete states.
"""

from __future__ import annotations

import threading
from functools import partial
from typing import TYPE_CHECKING, Protocol, assert_never, runtime_checkable

from loguru import logger

from keyscope.inspector.models.enums import ResultKind
from keyscope.inspector.models.protocol import (
    ConnectionEstablished,
    ConnectionFailed,
    DeleteFailed,
    KeyDeleted,
    KeysUpdated,
    RefreshFailed,
    ValueFetchFailed,
    ValueSelected,
)
from keyscope.inspector.models.state import ConnectionInfo, ErrorNotice, ViewerState
from keyscope.inspector.models.values import Absent
from keyscope.inspector.namespaces import DEFAULT_SEPARATOR, group_keys

if TYPE_CHECKING:
    import asyncio
    from collections.abc import Callable

    from keyscope.inspector.models.protocol import Result

    Listener = Callable[[ViewerState], None]
    Dispatch = Callable[[Callable[[], None]], None]


@runtime_checkable
class ResultSink(Protocol):
    def apply(self, result: Result) -> None:
        """Publish one result.  Called from the worker thread."""
        ...


# ---------------------------------------------------------------------------
# State reduction
# ---------------------------------------------------------------------------


def reduce_state(state: ViewerState, result: Result, separator: str = DEFAULT_SEPARATOR) -> ViewerState:
    """Return the state after applying *result*.  Pure; never mutates *state*."""
    match result:
        case KeysUpdated():
            return state.model_copy(
                update={
                    "keys": result.keys,
                    "namespace": group_keys(result.keys, separator),
                    "is_refreshing": False,
                    "last_error": _clear_error(state, ResultKind.REFRESH_FAILED),
                }
            )
        case RefreshFailed():
            return state.model_copy(
                update={
                    "is_refreshing": False,
                    "last_error": ErrorNotice(kind=result.kind, message=result.reason),
                }
            )
        case ConnectionEstablished():
            return state.model_copy(
                update={
                    "is_connection_form_showing": False,
                    "connection": ConnectionInfo(
                        address=result.address, port=result.port, database=result.database
                    ),
                    "last_error": _clear_error(state, ResultKind.CONNECTION_FAILED),
                }
            )
        case ConnectionFailed():
            return state.model_copy(
                update={
                    "is_connection_form_showing": True,
                    "is_refreshing": False,
                    "connection": None,
                    "last_error": ErrorNotice(kind=result.kind, message=result.reason),
                }
            )
        case ValueSelected():
            return state.model_copy(
                update={
                    "selected_key": result.key,
                    "selected_value": result.value,
                    "last_error": _clear_error(state, ResultKind.VALUE_FETCH_FAILED),
                }
            )
        case ValueFetchFailed():
            return state.model_copy(
                update={
                    "selected_key": result.key,
                    "selected_value": None,
                    "last_error": ErrorNotice(kind=result.kind, message=result.reason, key=result.key),
                }
            )
        case KeyDeleted():
            keys = tuple(k for k in state.keys if k != result.key)
            update: dict[str, object] = {
                "keys": keys,
                "namespace": group_keys(keys, separator),
                "last_error": _clear_error(state, ResultKind.DELETE_FAILED),
            }
            if state.selected_key == result.key:
                update["selected_value"] = Absent()
            return state.model_copy(update=update)
        case DeleteFailed():
            return state.model_copy(
                update={"last_error": ErrorNotice(kind=result.kind, message=result.reason, key=result.key)}
            )
        case _:
            assert_never(result)


def _clear_error(state: ViewerState, kind: ResultKind) -> ErrorNotice | None:
    """Drop the last error if it was of *kind*; a success does not hide unrelated failures."""
    if state.last_error is not None and state.last_error.kind == kind:
        return None
    return state.last_error


# ---------------------------------------------------------------------------
# Sinks
# ---------------------------------------------------------------------------


class StateSink:
    """Holds the consumer-owned ``ViewerState``.

    ``dispatch`` (optional) receives a zero-argument callable per listener
    notification and must schedule it without waiting, e.g.
    ``loop.call_soon_threadsafe``.  Without it, listeners run inline on the
    worker thread.
    """

    def __init__(
        self,
        initial: ViewerState | None = None,
        *,
        separator: str = DEFAULT_SEPARATOR,
        dispatch: Dispatch | None = None,
    ) -> None:
        self._state = initial if initial is not None else ViewerState()
        self._separator = separator
        self._dispatch = dispatch
        self._lock = threading.Lock()
        self._listeners: list[Listener] = []
        # Serializes deliveries; reentrant so an inline listener may mutate state
        self._notify_lock = threading.RLock()
        self._version = 0
        self._delivered = 0

    def apply(self, result: Result) -> None:
        with self._lock:
            self._state = state = reduce_state(self._state, result, self._separator)
            version = self._bump()
        self._notify(version, state)

    def snapshot(self) -> ViewerState:
        with self._lock:
            return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that unregisters it."""
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    # -- Consumer-side mutations -----------------------------------------------

    def begin_refresh(self) -> bool:
        """Mark a refresh in flight.  Returns ``False`` if one already is."""
        with self._lock:
            if self._state.is_refreshing:
                return False
            self._state = state = self._state.model_copy(update={"is_refreshing": True})
            version = self._bump()
        self._notify(version, state)
        return True

    def show_connection_form(self) -> None:
        with self._lock:
            self._state = state = self._state.model_copy(update={"is_connection_form_showing": True})
            version = self._bump()
        self._notify(version, state)

    def _bump(self) -> int:
        self._version += 1
        return self._version

    def _notify(self, version: int, state: ViewerState) -> None:
        """Deliver *state* unless a newer one has already gone out.

        Listeners therefore never observe states out of order, even when a
        worker update races a consumer-side mutation.
        """
        with self._notify_lock:
            if version <= self._delivered:
                logger.debug("StateSink: skipping superseded state v{}", version)
                return
            self._delivered = version
            with self._lock:
                listeners = list(self._listeners)
            for listener in listeners:
                if self._delivered != version:
                    break  # an inline listener published a newer state
                if self._dispatch is not None:
                    self._dispatch(partial(listener, state))
                else:
                    listener(state)


class LoopSink:
    """Hands each result to *callback* on an asyncio event loop.

    Uses ``call_soon_threadsafe`` so the worker never waits on the loop.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop, callback: Callable[[Result], None]) -> None:
        self._loop = loop
        self._callback = callback

    def apply(self, result: Result) -> None:
        if self._loop.is_closed():
            logger.warning("LoopSink: event loop closed, dropping {}", result.kind)
            return
        self._loop.call_soon_threadsafe(self._callback, result)


class CallbackSink:
    """Adapts a plain callable.  The callable runs on the worker thread."""

    def __init__(self, callback: Callable[[Result], None]) -> None:
        self._callback = callback

    def apply(self, result: Result) -> None:
        self._callback(result)
