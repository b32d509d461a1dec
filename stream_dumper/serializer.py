"""
Row serialization and INSERT statement rendering.
"""

from typing import Any, Mapping, Protocol

from .errors import UnsupportedTypeError
from .values import SqlNull, to_sql_string


def to_sql_column_map(row: Mapping[str, Any]) -> dict[str, str]:
    """
    Convert every cell of a row to SQL literal text.

    The returned mapping has exactly the same columns as the row. Nothing is
    returned if any cell fails to convert.

    Raises:
        UnsupportedTypeError: For the first cell with an unsupported value,
            tagged with the column name.
    """
    column_map = {}
    for column, value in row.items():
        try:
            column_map[column] = to_sql_string(value)
        except UnsupportedTypeError as e:
            raise e.with_column(column) from e
    return column_map


class StatementBuilder(Protocol):
    """Renders a table name and SQL column map into an INSERT statement."""

    def build(self, table: str, column_map: Mapping[str, str]) -> str:
        ...


class InsertBuilder:
    """Builds single-row MySQL INSERT statements."""

    def build(self, table: str, column_map: Mapping[str, str]) -> str:
        columns = sorted(column_map)
        quoted_columns = ', '.join(self.quote_identifier(col) for col in columns)
        values = ', '.join(self.quote_literal(column_map[col]) for col in columns)
        return f"INSERT INTO {self.quote_identifier(table)} ({quoted_columns}) VALUES ({values});"

    @staticmethod
    def quote_identifier(name: str) -> str:
        return '`' + name.replace('`', '``') + '`'

    @staticmethod
    def quote_literal(text: str) -> str:
        """Quote literal text as a string, leaving an absent value as bare NULL."""
        if isinstance(text, SqlNull):
            return "NULL"
        escaped = text.replace("\\", "\\\\").replace("'", "\\'")
        escaped = escaped.replace("\n", "\\n").replace("\r", "\\r")
        return f"'{escaped}'"
