"""
Stream DB Dumper
================
Dumps a database as a stream of SQL text with support for:
- Schema preamble written before any data
- One INSERT statement per row, one concurrent worker per table
- Per-table data exclusion and read filters (WHERE, ORDER BY, LIMIT)
- Configurable handling of values that cannot be converted to SQL
"""

from .config import ConfigLoader
from .dumper import TextDumper
from .errors import (
    CloseError,
    DumpAbortedError,
    DumpError,
    DumperError,
    DumpTimeoutError,
    StreamAbandonedError,
    StreamClosedError,
    StreamTimeoutError,
    UnsupportedTypeError,
)
from .main import main
from .models import (
    DumpStats,
    OrderDirection,
    ReadTableOptions,
    TableConfig,
    TableResult,
    TablesConfig,
    TableStatus,
    UnsupportedTypePolicy,
)
from .reader import MySQLReader, Reader
from .serializer import InsertBuilder, to_sql_column_map
from .stream import RowStream
from .table_worker import TableWorker
from .utils import format_settings_display, open_output, print_dry_run_info, setup_logging
from .values import NULL, Boxed, SqlNull, to_sql_string

__version__ = "1.0.0"

__all__ = [
    # Main entry point
    "main",
    # Core classes
    "ConfigLoader",
    "InsertBuilder",
    "MySQLReader",
    "Reader",
    "RowStream",
    "TableWorker",
    "TextDumper",
    # Values
    "Boxed",
    "NULL",
    "SqlNull",
    "to_sql_column_map",
    "to_sql_string",
    # Models
    "DumpStats",
    "OrderDirection",
    "ReadTableOptions",
    "TableConfig",
    "TableResult",
    "TablesConfig",
    "TableStatus",
    "UnsupportedTypePolicy",
    # Errors
    "CloseError",
    "DumpAbortedError",
    "DumpError",
    "DumperError",
    "DumpTimeoutError",
    "StreamAbandonedError",
    "StreamClosedError",
    "StreamTimeoutError",
    "UnsupportedTypeError",
    # Utilities
    "format_settings_display",
    "open_output",
    "print_dry_run_info",
    "setup_logging",
]
