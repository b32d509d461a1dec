"""
Table readers feeding rows into the dumper.
"""

import logging
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any, Protocol

import mysql.connector
from mysql.connector import Error as MySQLError

from .models import OrderDirection, ReadTableOptions
from .stream import RowStream


class Reader(Protocol):
    """Source of tables, schema and rows."""

    def get_tables(self) -> list[str]:
        ...

    def get_structure(self) -> str:
        ...

    def read_table(self, table: str, stream: RowStream, options: ReadTableOptions) -> None:
        ...


def normalize_value(value: Any) -> Any:
    """Turn driver types the dumper does not know about into strings."""
    if isinstance(value, (Decimal, time, timedelta)):
        return str(value)
    if isinstance(value, date) and not isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return ','.join(sorted(value))
    return value


class MySQLReader:
    """Reads tables, structure and rows from a MySQL database."""

    DEFAULT_PORT = 3306
    DEFAULT_CHARSET = 'utf8mb4'

    def __init__(
        self,
        host: str,
        port: int,
        user: str,
        password: str,
        database: str
    ):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.database = database
        self.connection = None

    @classmethod
    def from_settings(cls, source: dict[str, Any]) -> "MySQLReader":
        """Create a reader from the ``source`` configuration section."""
        return cls(
            host=source['host'],
            port=int(source.get('port', cls.DEFAULT_PORT)),
            user=source['user'],
            password=source.get('password', ''),
            database=source['database']
        )

    def __enter__(self) -> "MySQLReader":
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.disconnect()

    def connect(self) -> None:
        """Establish database connection."""
        try:
            self.connection = mysql.connector.connect(
                host=self.host,
                port=self.port,
                user=self.user,
                password=self.password,
                database=self.database,
                charset=self.DEFAULT_CHARSET,
                use_unicode=True,
                consume_results=True
            )
            logging.info(f"Connected to {self.host}:{self.port}/{self.database}")
        except MySQLError as e:
            logging.error(f"Failed to connect to database: {e}")
            raise

    def disconnect(self) -> None:
        """Close database connection."""
        if self.connection and self.connection.is_connected():
            self.connection.close()
            logging.debug("Database connection closed")

    def _execute_query(self, query: str) -> list[tuple]:
        cursor = self.connection.cursor()
        try:
            cursor.execute(query)
            return cursor.fetchall()
        finally:
            cursor.close()

    def get_tables(self) -> list[str]:
        """Get list of all tables in the current database."""
        return [row[0] for row in self._execute_query("SHOW TABLES")]

    def get_structure(self) -> str:
        """Get DROP/CREATE statements for every table."""
        parts = [
            "-- MySQL Dump\n",
            f"-- Database: {self.database}\n",
            f"-- Generated: {datetime.now().isoformat()}\n",
            "-- -------------------------------------------------\n\n",
            "SET FOREIGN_KEY_CHECKS=0;\n\n",
        ]
        for table in self.get_tables():
            create_statement = self._execute_query(f"SHOW CREATE TABLE `{table}`")[0][1]
            parts.append(f"DROP TABLE IF EXISTS `{table}`;\n")
            parts.append(f"{create_statement};\n\n")
        return ''.join(parts)

    def read_table(self, table: str, stream: RowStream, options: ReadTableOptions) -> None:
        """
        Stream the rows of a table into ``stream`` and close it.

        Rows are read through an unbuffered cursor, so no more than one row
        is held in memory ahead of the consumer.
        """
        query = self.build_select_query(table, options)
        logging.info(f"Reading table '{table}' with query: {query[:200]}")

        cursor = self.connection.cursor(dictionary=True, buffered=False)
        try:
            cursor.execute(query)
            for row in cursor:
                stream.send({column: normalize_value(value) for column, value in row.items()})
        finally:
            cursor.close()
            stream.close()

    @staticmethod
    def build_select_query(table: str, options: ReadTableOptions) -> str:
        """Build SELECT query from read options."""
        query = f"SELECT * FROM `{table}`"

        if options.where_clause:
            query += f" WHERE {options.where_clause}"

        if options.order_by:
            direction = OrderDirection(options.order_direction.upper())
            query += f" ORDER BY `{options.order_by}` {direction.value}"
        elif options.order_direction.upper() != OrderDirection.ASC.value:
            logging.warning(
                f"Table '{table}': 'order_direction' is set to '{options.order_direction}' "
                f"but 'order_by' is not specified. The order_direction setting will be ignored."
            )

        if options.row_limit is not None and options.row_limit >= 0:
            query += f" LIMIT {int(options.row_limit)}"

        return query
