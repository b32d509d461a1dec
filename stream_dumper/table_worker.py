"""
Per-table worker: turns a stream of rows into INSERT statements.
"""

import logging
import threading
from typing import Optional, TextIO

from .errors import DumpAbortedError, DumpError, UnsupportedTypeError
from .models import TableResult, TableStatus, UnsupportedTypePolicy
from .serializer import StatementBuilder, to_sql_column_map
from .stream import RowStream


class TableWorker:
    """Drains the row stream of a single table and writes one line per row."""

    def __init__(
        self,
        table: str,
        output: TextIO,
        builder: StatementBuilder,
        policy: UnsupportedTypePolicy = UnsupportedTypePolicy.ABORT_TABLE,
        abort_event: Optional[threading.Event] = None
    ):
        self.table = table
        self.output = output
        self.builder = builder
        self.policy = policy
        self.abort_event = abort_event or threading.Event()

    def run(self, stream: RowStream) -> TableResult:
        """
        Consume rows until the stream is closed.

        Any failure ends the table with a FAILED result and abandons the
        stream, so the reader is never left blocked on ``send``.

        Returns:
            TableResult describing how the table finished. Exactly one result
            is returned per call, even when no rows were received.
        """
        result = TableResult(table=self.table)
        drained = False

        try:
            for row in stream:
                if self.abort_event.is_set():
                    logging.warning(f"Table '{self.table}': dump aborted, stopping")
                    stream.abandon(DumpAbortedError("dump aborted by another table"))
                    result.status = TableStatus.ABORTED
                    result.error = "dump aborted by another table"
                    return result

                try:
                    column_map = to_sql_column_map(row)
                except UnsupportedTypeError as e:
                    if self.policy == UnsupportedTypePolicy.SKIP_ROW:
                        logging.warning(f"Table '{self.table}': skipping row, {e}")
                        result.rows_skipped += 1
                        continue

                    logging.error(f"Table '{self.table}': could not convert value to string: {e}")
                    stream.abandon(e)
                    if self.policy == UnsupportedTypePolicy.ABORT_DUMP:
                        self.abort_event.set()
                    result.status = TableStatus.FAILED
                    result.error = str(e)
                    return result

                self._write_row(column_map, result)
            drained = True
        except Exception as e:
            logging.error(f"Table '{self.table}': worker failed: {e}")
            stream.abandon(e)
            result.status = TableStatus.FAILED
            result.error = str(e)
            return result
        finally:
            if not drained and not stream.abandoned:
                stream.abandon(DumpError(f"worker for table '{self.table}' stopped"))

        logging.debug(f"Table '{self.table}': stream closed after {result.rows_written} row(s)")
        return result

    def _write_row(self, column_map: dict[str, str], result: TableResult) -> None:
        """Write one INSERT line; I/O failures are logged and counted, anything else propagates."""
        statement = self.builder.build(self.table, column_map)
        try:
            self.output.write(statement + "\n")
        except (OSError, ValueError) as e:
            result.write_errors += 1
            logging.error(f"Table '{self.table}': could not write insert statement to output: {e}")
            return
        result.rows_written += 1
