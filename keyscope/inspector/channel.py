"""Command channel -- many producers, one consumer, strict FIFO.

Producers hold ``CommandSender`` handles.  The channel stays open while at
least one handle is open; once the last handle is released and the buffer is
drained, ``receive`` raises ``ChannelClosed`` and the worker shuts down.

Commands are delivered in the order ``send`` acquired the channel lock, so
each producer's own commands stay in submission order.
"""

from __future__ import annotations

import threading
import time
from collections import deque
from typing import TYPE_CHECKING

from loguru import logger

if TYPE_CHECKING:
    from types import TracebackType

    from keyscope.inspector.models.protocol import Command


class ChannelClosed(Exception):
    """No producers remain (receiver side) or the handle was closed (sender side)."""


class CommandChannel:
    def __init__(self) -> None:
        self._buffer: deque[Command] = deque()
        self._cond = threading.Condition()
        self._producers = 0

    # -- Producers -------------------------------------------------------------

    def sender(self) -> CommandSender:
        """Open a new producer handle."""
        with self._cond:
            self._producers += 1
        return CommandSender(self)

    def _release(self) -> None:
        with self._cond:
            self._producers -= 1
            if self._producers == 0:
                logger.debug("Channel: last producer released ({} buffered)", len(self._buffer))
                self._cond.notify_all()

    def _put(self, command: Command) -> None:
        with self._cond:
            self._buffer.append(command)
            self._cond.notify()

    # -- Consumer --------------------------------------------------------------

    def receive(self, timeout: float | None = None) -> Command:
        """Take the next command, blocking until one is available.

        Raises ``ChannelClosed`` once no producers remain and nothing is
        buffered, or ``TimeoutError`` if *timeout* seconds pass first.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._cond:
            while not self._buffer:
                if self._producers == 0:
                    raise ChannelClosed
                remaining = None if deadline is None else deadline - time.monotonic()
                if remaining is not None and remaining <= 0:
                    raise TimeoutError
                self._cond.wait(remaining)
            return self._buffer.popleft()

    # -- Query -----------------------------------------------------------------

    @property
    def pending(self) -> int:
        with self._cond:
            return len(self._buffer)

    @property
    def is_closed(self) -> bool:
        with self._cond:
            return self._producers == 0


class CommandSender:
    """A producer handle.  Close it (or leave its ``with`` block) when done."""

    def __init__(self, channel: CommandChannel) -> None:
        self._channel = channel
        self._lock = threading.Lock()
        self._closed = False

    def send(self, command: Command) -> None:
        with self._lock:
            if self._closed:
                raise ChannelClosed
            self._channel._put(command)

    def clone(self) -> CommandSender:
        """Open another handle on the same channel (for another producer)."""
        with self._lock:
            if self._closed:
                raise ChannelClosed
            return self._channel.sender()

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._channel._release()

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> CommandSender:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
