"""
Conversion of raw column values to SQL literal text.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable

from .errors import UnsupportedTypeError


class SqlNull(str):
    """Text of an absent value; the builder writes it bare, unlike a string that reads NULL."""


NULL = SqlNull("NULL")


@dataclass(frozen=True)
class Boxed:
    """Optional wrapper around a column value. ``Boxed(None)`` is an absent value."""
    value: Any = None


def _format_float(value: float) -> str:
    return repr(value)


def _format_bytes(value: bytes) -> str:
    # TODO: render BLOB columns as hex literals instead of decoded text
    return bytes(value).decode('utf-8', errors='replace')


# Exact-type lookup keeps the set of accepted kinds closed: bool must not
# fall through to int, and unknown subclasses are rejected.
_TYPE_FORMATTERS: dict[type, Callable[[Any], str]] = {
    type(None): lambda v: NULL,
    bool: lambda v: 'true' if v else 'false',
    int: str,
    float: _format_float,
    str: lambda v: v,
    bytes: _format_bytes,
    bytearray: _format_bytes,
    datetime: str,
}


def to_sql_string(value: Any) -> str:
    """
    Convert a single column value to its SQL literal text.

    Strings are returned unchanged; quoting is left to the statement builder.

    Raises:
        UnsupportedTypeError: If the value is not one of the supported kinds.
    """
    if type(value) is Boxed:
        return to_sql_string(value.value)

    formatter = _TYPE_FORMATTERS.get(type(value))
    if formatter is None:
        raise UnsupportedTypeError(type(value))
    return formatter(value)
