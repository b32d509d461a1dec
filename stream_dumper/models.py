"""
Data models and enums for Stream DB Dumper.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class OrderDirection(Enum):
    """Sort order direction."""
    ASC = "ASC"
    DESC = "DESC"


class UnsupportedTypePolicy(Enum):
    """What a table worker does with a row holding an unconvertible value."""
    SKIP_ROW = "skip_row"
    ABORT_TABLE = "abort_table"
    ABORT_DUMP = "abort_dump"


class TableStatus(Enum):
    """Final state of a table worker."""
    COMPLETED = "completed"
    FAILED = "failed"
    ABORTED = "aborted"


READ_OPTION_KEYS = ('row_limit', 'order_by', 'order_direction', 'where_clause')


@dataclass
class TableConfig:
    """Per-table overrides from the configuration file."""
    name: str
    ignore_data: bool = False
    row_limit: Optional[int] = None
    order_by: Optional[str] = None
    order_direction: str = "ASC"
    where_clause: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any], defaults: Optional[dict[str, Any]] = None) -> "TableConfig":
        """
        Create a TableConfig from a config entry, with priority: table > defaults.
        """
        settings = {}
        for key in READ_OPTION_KEYS:
            if defaults and key in defaults:
                settings[key] = defaults[key]
            if key in data:
                settings[key] = data[key]
        return cls(
            name=data['name'],
            ignore_data=bool(data.get('ignore_data', False)),
            **settings
        )


@dataclass
class TablesConfig:
    """All table configurations, looked up by table name."""
    tables: list[TableConfig] = field(default_factory=list)

    def find_by_name(self, name: str) -> Optional[TableConfig]:
        """Return the configuration for a table, or None if it has none."""
        for table in self.tables:
            if table.name == name:
                return table
        return None

    def __len__(self) -> int:
        return len(self.tables)


@dataclass
class ReadTableOptions:
    """Options handed to the reader when streaming a table's rows."""
    row_limit: Optional[int] = None
    order_by: Optional[str] = None
    order_direction: str = "ASC"
    where_clause: Optional[str] = None

    @classmethod
    def from_config(cls, table_config: Optional[TableConfig]) -> "ReadTableOptions":
        if table_config is None:
            return cls()
        return cls(
            row_limit=table_config.row_limit,
            order_by=table_config.order_by,
            order_direction=table_config.order_direction,
            where_clause=table_config.where_clause,
        )


@dataclass
class TableResult:
    """Outcome reported once by every table worker."""
    table: str
    status: TableStatus = TableStatus.COMPLETED
    rows_written: int = 0
    rows_skipped: int = 0
    write_errors: int = 0
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.status == TableStatus.COMPLETED


@dataclass
class DumpStats:
    """Overall dump statistics."""
    tables: list[TableResult] = field(default_factory=list)
    skipped_tables: list[str] = field(default_factory=list)
    total_rows: int = 0
    errors: list[dict[str, Any]] = field(default_factory=list)

    def add_result(self, result: TableResult) -> None:
        self.tables.append(result)
        self.total_rows += result.rows_written
        if not result.success:
            self.errors.append({'table': result.table, 'error': result.error})
