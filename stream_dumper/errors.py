"""
Exceptions raised by Stream DB Dumper.
"""

from typing import Any, Optional


class DumperError(Exception):
    """Base class for all dumper errors."""


class DumpError(DumperError):
    """The dump could not be produced (tables, structure or preamble write failed)."""


class DumpAbortedError(DumpError):
    """A worker stopped the whole dump because of unconvertible data."""

    def __init__(self, message: str, stats: Any = None):
        super().__init__(message)
        self.stats = stats


class DumpTimeoutError(DumpError):
    """Some table workers did not report completion in time."""

    def __init__(self, message: str, pending: Optional[list[str]] = None):
        super().__init__(message)
        self.pending = pending or []


class UnsupportedTypeError(DumperError):
    """A column value has a type that cannot be rendered as SQL text."""

    def __init__(self, value_type: type, column: Optional[str] = None):
        self.value_type = value_type
        self.column = column
        super().__init__(self._format())

    def _format(self) -> str:
        message = f"could not parse type '{self.value_type.__name__}'"
        if self.column is not None:
            message += f" in column '{self.column}'"
        return message

    def with_column(self, column: str) -> "UnsupportedTypeError":
        """Return a copy of this error tagged with the offending column."""
        return UnsupportedTypeError(self.value_type, column)


class StreamClosedError(DumperError):
    """A row was sent on a stream that was already closed."""


class StreamAbandonedError(DumperError):
    """The consumer of a stream stopped receiving rows."""


class StreamTimeoutError(StreamAbandonedError):
    """A row was not taken off a stream within its send timeout."""


class CloseError(DumperError):
    """The output sink could not be closed."""
