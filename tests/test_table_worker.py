"""
Unit tests for table_worker.py
"""

import io
import logging
import threading
from unittest import mock

import pytest

from stream_dumper.errors import StreamAbandonedError
from stream_dumper.models import TableStatus, UnsupportedTypePolicy
from stream_dumper.serializer import InsertBuilder
from stream_dumper.stream import RowStream
from stream_dumper.table_worker import TableWorker


def feed(stream, rows):
    """Start a producer thread sending rows into stream; returns (thread, errors)."""
    errors = []

    def produce():
        try:
            for row in rows:
                stream.send(row)
        except StreamAbandonedError as e:
            errors.append(e)
        finally:
            stream.close()

    thread = threading.Thread(target=produce)
    thread.start()
    return thread, errors


class TestTableWorker:
    """Tests for TableWorker.run."""

    @pytest.fixture
    def output(self):
        return io.StringIO()

    def make_worker(self, output, policy=UnsupportedTypePolicy.ABORT_TABLE, abort_event=None):
        return TableWorker("users", output, InsertBuilder(), policy, abort_event)

    def test_writes_one_line_per_row(self, output):
        stream = RowStream("users")
        thread, _ = feed(stream, [{"id": 1, "name": "Ann"}, {"id": 2, "name": "Bo"}])

        result = self.make_worker(output).run(stream)
        thread.join(timeout=5)

        assert output.getvalue().splitlines() == [
            "INSERT INTO `users` (`id`, `name`) VALUES ('1', 'Ann');",
            "INSERT INTO `users` (`id`, `name`) VALUES ('2', 'Bo');",
        ]
        assert result.status == TableStatus.COMPLETED
        assert result.rows_written == 2
        assert result.success is True

    def test_empty_stream_completes(self, output):
        """A result is reported even if no rows were received."""
        stream = RowStream("users")
        stream.close()

        result = self.make_worker(output).run(stream)

        assert result.table == "users"
        assert result.status == TableStatus.COMPLETED
        assert result.rows_written == 0
        assert output.getvalue() == ""

    def test_unsupported_value_aborts_table(self, output):
        stream = RowStream("users")
        rows = [{"id": 1}, {"id": 2, "tags": ["a"]}, {"id": 3}]
        thread, errors = feed(stream, rows)

        result = self.make_worker(output).run(stream)
        thread.join(timeout=5)

        assert result.status == TableStatus.FAILED
        assert "tags" in result.error
        assert result.rows_written == 1
        assert output.getvalue().splitlines() == ["INSERT INTO `users` (`id`) VALUES ('1');"]
        # The producer is told to stop instead of blocking forever
        assert len(errors) == 1

    def test_unsupported_value_skip_row_policy(self, output):
        stream = RowStream("users")
        rows = [{"id": 1}, {"id": 2, "tags": ["a"]}, {"id": 3}]
        thread, errors = feed(stream, rows)

        result = self.make_worker(output, UnsupportedTypePolicy.SKIP_ROW).run(stream)
        thread.join(timeout=5)

        assert result.status == TableStatus.COMPLETED
        assert result.rows_written == 2
        assert result.rows_skipped == 1
        assert errors == []

    def test_abort_dump_policy_sets_event(self, output):
        abort_event = threading.Event()
        stream = RowStream("users")
        thread, _ = feed(stream, [{"id": object()}])

        result = self.make_worker(output, UnsupportedTypePolicy.ABORT_DUMP, abort_event).run(stream)
        thread.join(timeout=5)

        assert result.status == TableStatus.FAILED
        assert abort_event.is_set()

    def test_abort_table_policy_leaves_event_clear(self, output):
        abort_event = threading.Event()
        stream = RowStream("users")
        thread, _ = feed(stream, [{"id": object()}])

        self.make_worker(output, UnsupportedTypePolicy.ABORT_TABLE, abort_event).run(stream)
        thread.join(timeout=5)

        assert not abort_event.is_set()

    def test_stops_when_dump_aborted(self, output):
        abort_event = threading.Event()
        abort_event.set()
        stream = RowStream("users")
        thread, errors = feed(stream, [{"id": 1}, {"id": 2}])

        result = self.make_worker(output, abort_event=abort_event).run(stream)
        thread.join(timeout=5)

        assert result.status == TableStatus.ABORTED
        assert result.rows_written == 0
        assert len(errors) == 1

    def test_write_error_is_not_fatal(self, caplog):
        output = mock.MagicMock()
        output.write.side_effect = [OSError("disk full"), None]
        stream = RowStream("users")
        thread, _ = feed(stream, [{"id": 1}, {"id": 2}])

        with caplog.at_level(logging.ERROR):
            result = self.make_worker(output).run(stream)
        thread.join(timeout=5)

        assert result.status == TableStatus.COMPLETED
        assert result.write_errors == 1
        assert result.rows_written == 1
        assert output.write.call_count == 2
        assert "users" in caplog.text
        assert "disk full" in caplog.text

    def test_write_to_closed_output(self):
        output = io.StringIO()
        output.close()
        stream = RowStream("users")
        thread, _ = feed(stream, [{"id": 1}])

        result = self.make_worker(output).run(stream)
        thread.join(timeout=5)

        assert result.status == TableStatus.COMPLETED
        assert result.write_errors == 1

    def test_line_written_in_single_call(self):
        output = mock.MagicMock()
        stream = RowStream("users")
        thread, _ = feed(stream, [{"id": 1}])

        self.make_worker(output).run(stream)
        thread.join(timeout=5)

        output.write.assert_called_once_with("INSERT INTO `users` (`id`) VALUES ('1');\n")


class TestTableWorkerFailures:
    """Tests for failures outside value conversion and plain I/O errors."""

    def test_builder_failure_fails_table(self, caplog):
        output = io.StringIO()
        builder = mock.MagicMock()
        builder.build.side_effect = RuntimeError("template error")
        stream = RowStream("users")
        thread, errors = feed(stream, [{"id": 1}, {"id": 2}, {"id": 3}])

        with caplog.at_level(logging.ERROR):
            result = TableWorker("users", output, builder).run(stream)
        thread.join(timeout=5)

        assert not thread.is_alive()
        assert result.status == TableStatus.FAILED
        assert result.error == "template error"
        assert result.rows_written == 0
        assert len(errors) == 1
        assert stream.abandoned is True
        assert "users" in caplog.text

    def test_unexpected_write_error_fails_table(self):
        output = mock.MagicMock()
        output.write.side_effect = [None, TypeError("write() argument must be bytes")]
        stream = RowStream("users")
        thread, errors = feed(stream, [{"id": 1}, {"id": 2}, {"id": 3}])

        result = TableWorker("users", output, InsertBuilder()).run(stream)
        thread.join(timeout=5)

        assert not thread.is_alive()
        assert result.status == TableStatus.FAILED
        assert "bytes" in result.error
        assert result.rows_written == 1
        assert result.write_errors == 0
        assert len(errors) == 1

    def test_row_without_columns_fails_table(self):
        output = io.StringIO()
        stream = RowStream("users")
        thread, errors = feed(stream, [("id", 1), {"id": 2}])

        result = TableWorker("users", output, InsertBuilder()).run(stream)
        thread.join(timeout=5)

        assert not thread.is_alive()
        assert result.status == TableStatus.FAILED
        assert output.getvalue() == ""
        assert len(errors) == 1

    def test_completed_stream_is_not_abandoned(self):
        stream = RowStream("users")
        thread, _ = feed(stream, [{"id": 1}])

        TableWorker("users", io.StringIO(), InsertBuilder()).run(stream)
        thread.join(timeout=5)

        assert stream.abandoned is False
