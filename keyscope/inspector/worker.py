"""Worker loop -- sole owner of the store connection.

The worker drains the command channel in arrival order and runs each command
to completion before taking the next, so the connection is only ever touched
from one thread.  Every outcome is published through the result sink; store
failures become failure results, never exceptions out of the loop.

State machine::

    Disconnected --Connect ok--> Connected --Connect ok--> Connected (replaced)
         ^                           |
         +-------Connect failed------+

I/O failures on refresh / select / delete leave the state unchanged.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, assert_never

from loguru import logger

from keyscope.inspector.channel import ChannelClosed
from keyscope.inspector.models.enums import ConnectionStatus
from keyscope.inspector.models.protocol import (
    Connect,
    ConnectionEstablished,
    ConnectionFailed,
    DeleteFailed,
    DeleteKey,
    KeyDeleted,
    KeysUpdated,
    RefreshFailed,
    RefreshKeys,
    SelectValue,
    ValueFetchFailed,
    ValueSelected,
)
from keyscope.inspector.models.values import Absent
from keyscope.inspector.store.base import ConnectError, StoreIOError

NO_SUCH_KEY = "no such key"

if TYPE_CHECKING:
    from keyscope.inspector.channel import CommandChannel
    from keyscope.inspector.models.protocol import Command, Result
    from keyscope.inspector.sink import ResultSink
    from keyscope.inspector.store.base import StoreConnection, StoreGateway


class Worker:
    """Single-threaded command processor.

    Call ``run`` on a dedicated thread; it returns once every producer handle
    on the channel is closed and the buffer is drained.
    """

    def __init__(self, channel: CommandChannel, gateway: StoreGateway, sink: ResultSink) -> None:
        self._channel = channel
        self._gateway = gateway
        self._sink = sink
        self._connection: StoreConnection | None = None

    @property
    def status(self) -> ConnectionStatus:
        return ConnectionStatus.DISCONNECTED if self._connection is None else ConnectionStatus.CONNECTED

    # -- Loop ------------------------------------------------------------------

    def run(self) -> None:
        logger.info("Worker: started")
        try:
            while True:
                try:
                    command = self._channel.receive()
                except ChannelClosed:
                    break
                try:
                    self.handle(command)
                except Exception:
                    logger.exception("Worker: command {} failed", command.kind)
        finally:
            self._release_connection()
            logger.info("Worker: stopped")

    def handle(self, command: Command) -> None:
        """Process one command to completion."""
        logger.debug("Worker: {} (status={})", command.kind, self.status)
        match command:
            case RefreshKeys():
                self._refresh()
            case Connect():
                self._connect(command)
            case SelectValue():
                self._select(command)
            case DeleteKey():
                self._delete(command)
            case _:
                assert_never(command)

    # -- Commands --------------------------------------------------------------

    def _connect(self, command: Connect) -> None:
        target = f"{command.address}:{command.port}/{command.database}"
        try:
            connection = self._gateway.connect(command.address, command.port, command.database)
        except ConnectError as exc:
            logger.warning("Worker: connect to {} failed: {}", target, exc.reason)
            self._release_connection()
            self._emit(ConnectionFailed(reason=exc.reason))
            return

        self._release_connection()
        self._connection = connection
        logger.info("Worker: connected to {}", target)

        self._refresh()
        self._emit(
            ConnectionEstablished(address=command.address, port=command.port, database=command.database),
        )

    def _refresh(self) -> None:
        if self._connection is None:
            self._emit(KeysUpdated(keys=()))
            return
        try:
            keys = self._connection.list_keys()
        except StoreIOError as exc:
            logger.warning("Worker: refresh failed: {}", exc.reason)
            self._emit(RefreshFailed(reason=exc.reason))
            return
        # SCAN may report a key more than once; keep the first occurrence
        self._emit(KeysUpdated(keys=tuple(dict.fromkeys(keys))))

    def _select(self, command: SelectValue) -> None:
        if self._connection is None:
            self._emit(ValueSelected(key=command.key, value=Absent()))
            return
        try:
            value = self._connection.get_value(command.key)
        except StoreIOError as exc:
            logger.warning("Worker: fetch of {!r} failed: {}", command.key, exc.reason)
            self._emit(ValueFetchFailed(key=command.key, reason=exc.reason))
            return
        self._emit(ValueSelected(key=command.key, value=value))

    def _delete(self, command: DeleteKey) -> None:
        if self._connection is None:
            self._emit(DeleteFailed(key=command.key, reason="not connected"))
            return
        try:
            existed = self._connection.delete_key(command.key)
        except StoreIOError as exc:
            logger.warning("Worker: delete of {!r} failed: {}", command.key, exc.reason)
            self._emit(DeleteFailed(key=command.key, reason=exc.reason))
            return
        if existed:
            self._emit(KeyDeleted(key=command.key))
        else:
            self._emit(DeleteFailed(key=command.key, reason=NO_SUCH_KEY))
        self._refresh()

    # -- Helpers ---------------------------------------------------------------

    def _emit(self, result: Result) -> None:
        try:
            self._sink.apply(result)
        except Exception:
            logger.exception("Worker: result sink raised on {}", result.kind)

    def _release_connection(self) -> None:
        connection, self._connection = self._connection, None
        if connection is None:
            return
        try:
            connection.close()
        except Exception:
            logger.opt(exception=True).warning("Worker: error while closing connection")
        else:
            logger.info("Worker: connection released")
