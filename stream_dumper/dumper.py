"""
Dump orchestration: schema preamble followed by one INSERT stream per table.
"""

import logging
import threading
from concurrent.futures import Future, wait
from typing import Optional, TextIO

from .errors import (
    CloseError,
    DumpAbortedError,
    DumpError,
    DumpTimeoutError,
    StreamAbandonedError,
    StreamTimeoutError,
)
from .models import (
    DumpStats,
    ReadTableOptions,
    TablesConfig,
    TableResult,
    TableStatus,
    UnsupportedTypePolicy,
)
from .reader import Reader
from .serializer import InsertBuilder, StatementBuilder
from .stream import RowStream
from .table_worker import TableWorker


class TextDumper:
    """Writes a database dump as plain-text SQL to a single output stream."""

    DEFAULT_CONCURRENCY = 8

    def __init__(
        self,
        output: TextIO,
        reader: Reader,
        builder: Optional[StatementBuilder] = None,
        on_unsupported_type: UnsupportedTypePolicy = UnsupportedTypePolicy.ABORT_TABLE,
        wait_timeout: Optional[float] = None
    ):
        self.output = output
        self.reader = reader
        self.builder = builder or InsertBuilder()
        self.on_unsupported_type = on_unsupported_type
        self.wait_timeout = wait_timeout

    def dump(
        self,
        tables_config: Optional[TablesConfig] = None,
        concurrency: int = DEFAULT_CONCURRENCY
    ) -> DumpStats:
        """
        Run the dump.

        The structure is written first, then every table whose data is not
        ignored is streamed through its own worker. Returns once every
        started worker has reported its result.

        Raises:
            DumpError: If tables or structure cannot be read or written.
            DumpTimeoutError: If a worker stalls on a row, or is still running
                after ``wait_timeout``.
            DumpAbortedError: If a worker aborted the dump.
        """
        tables_config = tables_config or TablesConfig()

        try:
            tables = self.reader.get_tables()
        except Exception as e:
            raise DumpError(f"failed to get tables: {e}") from e

        try:
            structure = self.reader.get_structure()
        except Exception as e:
            raise DumpError(f"could not get database structure: {e}") from e

        try:
            self.output.write(structure)
        except (OSError, ValueError) as e:
            raise DumpError(f"could not write structure to output: {e}") from e

        stats = DumpStats()
        abort_event = threading.Event()
        slots = threading.BoundedSemaphore(max(1, concurrency))
        futures: dict[Future, str] = {}
        timed_out: list[str] = []

        logging.info(f"Dumping {len(tables)} table(s)")

        for table in tables:
            if abort_event.is_set():
                logging.warning(f"Table '{table}': not started, dump aborted")
                break

            table_config = tables_config.find_by_name(table)
            if table_config is None:
                logging.debug(f"Table '{table}': no configuration found for table")
            elif table_config.ignore_data:
                logging.debug(f"Table '{table}': ignoring data to dump")
                stats.skipped_tables.append(table)
                continue

            options = ReadTableOptions.from_config(table_config)
            stream = RowStream(table, send_timeout=self.wait_timeout)
            worker = TableWorker(
                table, self.output, self.builder, self.on_unsupported_type, abort_event
            )
            futures[self._start_worker(worker, stream, slots)] = table

            if not self._read_table(table, stream, options):
                timed_out.append(table)

        _, pending = wait(futures, timeout=self.wait_timeout)

        late = sorted(set(timed_out) | {futures[f] for f in pending})
        if late:
            # Stuck workers run on daemon threads and are left behind.
            abort_event.set()
            raise DumpTimeoutError(
                f"tables did not finish within {self.wait_timeout}s: {', '.join(late)}",
                pending=late
            )

        for future, table in futures.items():
            stats.add_result(self._collect_result(future, table))

        if abort_event.is_set():
            raise DumpAbortedError("dump aborted because of unconvertible data", stats=stats)

        return stats

    @staticmethod
    def _start_worker(worker: TableWorker, stream: RowStream, slots: threading.Semaphore) -> Future:
        """
        Run a worker on its own daemon thread, at most ``slots`` at a time.

        Daemon threads keep a worker that never finishes from holding the
        interpreter open at exit.
        """
        future: Future = Future()

        def run():
            with slots:
                if not future.set_running_or_notify_cancel():
                    return
                try:
                    future.set_result(worker.run(stream))
                except BaseException as e:
                    stream.abandon(e)
                    future.set_exception(e)

        thread = threading.Thread(target=run, name=f"table-worker-{worker.table}", daemon=True)
        thread.start()
        return future

    def _read_table(self, table: str, stream: RowStream, options: ReadTableOptions) -> bool:
        """
        Populate a table's stream; failures are logged and the stream is always closed.

        Returns:
            False if the worker did not take a row within ``wait_timeout``.
        """
        try:
            self.reader.read_table(table, stream, options)
        except StreamTimeoutError as e:
            logging.error(f"Table '{table}': worker stalled, {e}")
            return False
        except StreamAbandonedError as e:
            logging.debug(f"Table '{table}': reading stopped, {e}")
        except Exception as e:
            logging.error(f"Table '{table}': error while reading table: {e}")
        finally:
            stream.close()
        return True

    @staticmethod
    def _collect_result(future: Future, table: str) -> TableResult:
        try:
            return future.result()
        except Exception as e:
            logging.error(f"Table '{table}': worker crashed: {e}")
            return TableResult(table=table, status=TableStatus.FAILED, error=str(e))

    def close(self) -> None:
        """
        Close the output stream.

        Raises:
            CloseError: If the output cannot be closed or does not support closing.
        """
        close = getattr(self.output, 'close', None)
        if not callable(close):
            raise CloseError("unable to close output: wrong closer type")

        try:
            close()
        except (OSError, ValueError) as e:
            raise CloseError(f"failed to close output stream: {e}") from e
