"""Inspector -- wires a command channel, a worker thread and a result sink.

Typical use::

    sink = StateSink()
    with Inspector(RedisGateway(), sink) as inspector:
        inspector.connect("127.0.0.1", 6379, 0)
        inspector.select("user:1")
    print(sink.snapshot().selected_value)

Leaving the ``with`` block closes the inspector's producer handle and waits
for the worker to drain every command already submitted.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from loguru import logger
from pydantic import ValidationError

from keyscope.inspector.channel import CommandChannel
from keyscope.inspector.models.protocol import Connect, DeleteKey, RefreshKeys, SelectValue
from keyscope.inspector.sink import StateSink
from keyscope.inspector.worker import Worker

if TYPE_CHECKING:
    from types import TracebackType

    from keyscope.inspector.channel import CommandSender
    from keyscope.inspector.models.enums import ConnectionStatus
    from keyscope.inspector.models.protocol import Command
    from keyscope.inspector.sink import ResultSink
    from keyscope.inspector.store.base import StoreGateway


class InvalidConnectionForm(ValueError):
    """Raw connection input could not be turned into a ``Connect`` command."""


def parse_connect(address: str, port_text: str, database_text: str) -> Connect:
    """Validate raw form input into a ``Connect`` command."""
    address = address.strip()
    if not address:
        msg = "address must not be empty"
        raise InvalidConnectionForm(msg)
    try:
        port = int(port_text.strip())
        database = int(database_text.strip())
    except ValueError as exc:
        msg = f"port and database must be integers (got {port_text!r}, {database_text!r})"
        raise InvalidConnectionForm(msg) from exc
    try:
        return Connect(address=address, port=port, database=database)
    except ValidationError as exc:
        msg = f"invalid connection settings: port must be 0-65535 and database >= 0 ({exc.error_count()} errors)"
        raise InvalidConnectionForm(msg) from exc


class Inspector:
    """Caller-facing facade over the worker.

    Methods only enqueue commands and return immediately; outcomes arrive
    through the sink.
    """

    def __init__(
        self,
        gateway: StoreGateway,
        sink: ResultSink,
        *,
        join_timeout: float = 5.0,
        thread_name: str = "keyscope-worker",
    ) -> None:
        self._sink = sink
        self._join_timeout = join_timeout
        self._channel = CommandChannel()
        self._sender = self._channel.sender()
        self._worker = Worker(self._channel, gateway, sink)
        self._thread = threading.Thread(target=self._worker.run, name=thread_name, daemon=True)

    # -- Lifecycle -------------------------------------------------------------

    def start(self) -> Inspector:
        if not self._thread.is_alive():
            self._thread.start()
        return self

    def close(self, timeout: float | None = None) -> bool:
        """Release this producer handle and wait for the worker to drain.

        Returns ``True`` if the worker exited.  Other open handles from
        ``sender()`` keep the worker running.
        """
        self._sender.close()
        if not self._thread.is_alive():
            return True
        self._thread.join(self._join_timeout if timeout is None else timeout)
        if self._thread.is_alive():
            logger.warning("Inspector: worker still running after close")
            return False
        return True

    @property
    def status(self) -> ConnectionStatus:
        return self._worker.status

    @property
    def is_running(self) -> bool:
        return self._thread.is_alive()

    def __enter__(self) -> Inspector:
        return self.start()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    # -- Commands --------------------------------------------------------------

    def submit(self, command: Command) -> None:
        self._sender.send(command)

    def sender(self) -> CommandSender:
        """Open an extra producer handle (e.g. for another thread)."""
        return self._sender.clone()

    def refresh(self) -> bool:
        """Request a key refresh.

        With a ``StateSink``, a refresh already in flight suppresses the new
        one and ``False`` is returned.
        """
        if isinstance(self._sink, StateSink) and not self._sink.begin_refresh():
            logger.debug("Inspector: refresh already in flight")
            return False
        self.submit(RefreshKeys())
        return True

    def connect(self, address: str, port: int, database: int) -> None:
        self.submit(Connect(address=address, port=port, database=database))

    def connect_form(self, address: str, port_text: str, database_text: str) -> None:
        """Connect from raw text input.  Raises ``InvalidConnectionForm``."""
        self.submit(parse_connect(address, port_text, database_text))

    def select(self, key: str) -> None:
        self.submit(SelectValue(key=key))

    def delete(self, key: str) -> None:
        self.submit(DeleteKey(key=key))
