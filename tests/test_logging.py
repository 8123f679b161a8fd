"""Tests for the structured logging system (rowbind_kernel/logging_config.py)."""

import json
import logging
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from rowbind_kernel.exceptions import ConversionError
from rowbind_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
)
from rowbind_kernel.mapping.engine import bind_table
from rowbind_sources.data_table import DataTable
from tests.support.models import Person


class _Noisy:
    """Logs from its constructor, i.e. from inside record binding."""

    id: int

    def __init__(self) -> None:
        self.id = 0
        get_logger("test").info("constructed")


def _make_handler() -> tuple[logging.Handler, StringIO]:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    return handler, stream


def _parse_log(stream: StringIO) -> dict:
    """Parse the first JSON log line from a stream."""
    line = stream.getvalue().strip().split("\n")[0]
    return json.loads(line)


def _parse_all_logs(stream: StringIO) -> list[dict]:
    lines = stream.getvalue().strip().split("\n")
    return [json.loads(line) for line in lines if line]


# ---------------------------------------------------------------------------
# StructuredFormatter tests
# ---------------------------------------------------------------------------


class TestStructuredFormatter:
    """Tests for JSON log output format."""

    def test_basic_json_output(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("hello")

        record = _parse_log(stream)
        assert record["level"] == "INFO"
        assert record["message"] == "hello"
        assert record["logger"] == "rowbind.test"
        assert "ts" in record

    def test_extra_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("bound", extra={"records": 3, "amount": Decimal("1.5")})

        record = _parse_log(stream)
        assert record["records"] == 3
        assert record["amount"] == "1.5"

    def test_context_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        LogContext.set(correlation_id="abc-123", target_type="Customer")
        get_logger("test").info("test_msg")

        record = _parse_log(stream)
        assert record["correlation_id"] == "abc-123"
        assert record["target_type"] == "Customer"

    def test_conversion_error_fields_extracted(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        try:
            raise ConversionError("abc", int, "zip", "not an integer")
        except ConversionError:
            get_logger("test").error("conversion_failed", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_code"] == "CONVERSION_ERROR"
        assert record["exc_type"] == "ConversionError"
        assert record["exc_field_name"] == "zip"
        assert record["exc_target_type"] == "int"
        assert "traceback" in record

    def test_uuid_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        uid = uuid4()
        get_logger("test").info("with_uuid", extra={"batch_id": uid})

        assert _parse_log(stream)["batch_id"] == str(uid)

    def test_valid_json_every_line(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("first")
        logger.warning("second", extra={"k": "v"})
        logger.debug("third")

        logs = _parse_all_logs(stream)
        assert len(logs) == 2  # INFO level drops the debug line
        for record in logs:
            assert {"ts", "level", "logger", "message"} <= set(record)


# ---------------------------------------------------------------------------
# LogContext tests
# ---------------------------------------------------------------------------


class TestLogContext:
    def test_set_and_get(self):
        LogContext.set(correlation_id="x", source="DataTable")
        assert LogContext.get_all() == {"correlation_id": "x", "source": "DataTable"}

    def test_clear(self):
        LogContext.set(correlation_id="x")
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_bind_restores_previous(self):
        LogContext.set(target_type="outer")
        with LogContext.bind(target_type="inner"):
            assert LogContext.get_all()["target_type"] == "inner"
        assert LogContext.get_all()["target_type"] == "outer"

    def test_bind_restores_none(self):
        with LogContext.bind(row_index=4):
            assert LogContext.get_all()["row_index"] == 4
        assert "row_index" not in LogContext.get_all()

    def test_bind_restores_on_error(self):
        with pytest.raises(RuntimeError):
            with LogContext.bind(source="CsvReader"):
                raise RuntimeError
        assert LogContext.get_all() == {}

    def test_unknown_field_rejected(self):
        with pytest.raises(TypeError):
            LogContext.set(batch_id="x")
        with pytest.raises(TypeError):
            with LogContext.bind(batch_id="x"):
                pass


# ---------------------------------------------------------------------------
# Binder log events
# ---------------------------------------------------------------------------


class TestBinderLogging:
    def test_table_bound_event(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        table = DataTable.from_records([{"Id": 1}, {"Id": 2}])
        bind_table(table, Person)

        record = _parse_log(stream)
        assert record["message"] == "table_bound"
        assert record["records"] == 2
        assert record["target_type"] == "Person"
        assert record["source"] == "DataTable"

    def test_failed_record_logged_as_warning(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        table = DataTable.from_records([{"Id": 1}, {"Id": "x"}])
        with pytest.raises(ConversionError):
            bind_table(table, Person)

        record = _parse_log(stream)
        assert record["level"] == "WARNING"
        assert record["message"] == "record_binding_failed"
        assert record["row_index"] == 1
        assert record["field_name"] == "id"
        assert record["error_code"] == "CONVERSION_ERROR"

    def test_events_inside_record_binding_carry_row_index(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        table = DataTable.from_records([{"Id": 1}, {"Id": 2}])
        bind_table(table, _Noisy)

        logs = _parse_all_logs(stream)
        constructed = [r for r in logs if r["message"] == "constructed"]
        assert [r["row_index"] for r in constructed] == [0, 1]
        assert all(r["target_type"] == "_Noisy" for r in constructed)
        summary = logs[-1]
        assert summary["message"] == "table_bound"
        assert "row_index" not in summary
        assert LogContext.get_all() == {}


# ---------------------------------------------------------------------------
# configure_logging tests
# ---------------------------------------------------------------------------


class TestConfigureLogging:
    def test_idempotent(self):
        h1, _ = _make_handler()
        configure_logging(handler=h1)
        h2, _ = _make_handler()
        configure_logging(handler=h2)  # second call is no-op
        assert len(logging.getLogger("rowbind").handlers) == 1

    def test_get_logger_returns_child(self):
        assert get_logger("mapping.engine").name == "rowbind.mapping.engine"

    def test_logger_hierarchy(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler, level=logging.DEBUG)
        get_logger("deep.nested.module").debug("hierarchy_test")

        record = _parse_log(stream)
        assert record["message"] == "hierarchy_test"
        assert record["logger"] == "rowbind.deep.nested.module"
