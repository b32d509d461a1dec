"""
Unbuffered hand-off channel between a table reader and its worker.
"""

import threading
from typing import Any, Iterator, Mapping, Optional

from .errors import StreamAbandonedError, StreamClosedError, StreamTimeoutError

Row = Mapping[str, Any]

_EMPTY = object()


class RowStream:
    """
    Rendezvous channel carrying rows of one table.

    ``send`` blocks until the consumer has taken the row and ``receive``
    blocks until a row is offered or the stream is closed, so the producer
    can never run ahead of the consumer by more than one row.
    """

    def __init__(self, table: str, send_timeout: Optional[float] = None):
        self.table = table
        self.send_timeout = send_timeout
        self._cond = threading.Condition()
        self._slot: Any = _EMPTY
        self._sent = 0
        self._received = 0
        self._closed = False
        self._abandoned: Optional[BaseException] = None

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def abandoned(self) -> bool:
        return self._abandoned is not None

    def send(self, row: Row) -> None:
        """
        Hand a row to the consumer and wait until it has been taken.

        With ``send_timeout`` set, each wait is bounded; on expiry the stream
        is abandoned so the consumer stops as well.

        Raises:
            StreamClosedError: If the stream was already closed.
            StreamAbandonedError: If the consumer stopped receiving.
            StreamTimeoutError: If the consumer did not take the row in time.
        """
        with self._cond:
            ready = self._cond.wait_for(
                lambda: self._slot is _EMPTY or self._closed or self._abandoned is not None,
                self.send_timeout
            )
            if not ready:
                self._expire()
            self._check_open()

            self._slot = row
            self._sent += 1
            ticket = self._sent
            self._cond.notify_all()

            taken = self._cond.wait_for(
                lambda: self._received >= ticket or self._abandoned is not None,
                self.send_timeout
            )
            if not taken:
                self._expire()
            if self._received < ticket:
                self._check_open()

    def receive(self) -> Row:
        """
        Wait for the next row.

        Raises:
            StopIteration: Once the stream is closed and drained.
        """
        with self._cond:
            self._cond.wait_for(lambda: self._slot is not _EMPTY or self._closed)
            if self._slot is _EMPTY:
                raise StopIteration

            row = self._slot
            self._slot = _EMPTY
            self._received += 1
            self._cond.notify_all()
            return row

    def close(self) -> None:
        """Signal that no more rows will be sent. Safe to call repeatedly."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def abandon(self, cause: BaseException) -> None:
        """Stop consuming; a blocked or later ``send`` raises StreamAbandonedError."""
        with self._cond:
            if self._abandoned is None:
                self._abandoned = cause
            self._slot = _EMPTY
            self._cond.notify_all()

    def __iter__(self) -> Iterator[Row]:
        while True:
            try:
                yield self.receive()
            except StopIteration:
                return

    def _expire(self) -> None:
        # Called with the condition held.
        error = StreamTimeoutError(
            f"stream for table '{self.table}': row not taken within {self.send_timeout}s"
        )
        self._abandoned = error
        self._slot = _EMPTY
        self._cond.notify_all()
        raise error

    def _check_open(self) -> None:
        if self._abandoned is not None:
            raise StreamAbandonedError(
                f"stream for table '{self.table}' was abandoned: {self._abandoned}"
            ) from self._abandoned
        if self._closed:
            raise StreamClosedError(f"stream for table '{self.table}' is closed")
