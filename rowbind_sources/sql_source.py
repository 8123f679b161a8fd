"""
SQLAlchemy result source.

ResultReader wraps an already-executed ``sqlalchemy.engine.Result`` as a
forward-only reader: column names come from ``result.keys()``, rows are
fetched one at a time, and SQL NULL is reported as null. Executing the
statement is the caller's business.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.engine import Result, Row

from rowbind_kernel.exceptions import (
    ColumnNotFoundError,
    NoCurrentRecordError,
    ReaderClosedError,
)

from rowbind_sources.data_table import DataTable


class ResultReader:
    """Forward-only reader over a SQLAlchemy Result."""

    def __init__(self, result: Result[Any]):
        self._result = result
        self._names = tuple(result.keys())
        self._row: Row[Any] | None = None
        self._exhausted = False
        self._closed = False

    @property
    def field_count(self) -> int:
        return len(self._names)

    @property
    def field_names(self) -> tuple[str, ...]:
        return self._names

    def get_name(self, ordinal: int) -> str:
        if not 0 <= ordinal < len(self._names):
            raise ColumnNotFoundError(ordinal)
        return self._names[ordinal]

    def get_field_type(self, ordinal: int) -> type:
        # DB-API does not expose Python types per column
        self.get_name(ordinal)
        return object

    def read(self) -> bool:
        if self._closed:
            raise ReaderClosedError()
        if self._exhausted:
            return False
        self._row = self._result.fetchone()
        if self._row is None:
            self._exhausted = True
            return False
        return True

    def get_value(self, ordinal: int) -> Any:
        if self._closed:
            raise ReaderClosedError()
        if self._row is None:
            raise NoCurrentRecordError()
        self.get_name(ordinal)
        return self._row[ordinal]

    def is_null(self, ordinal: int) -> bool:
        return self.get_value(ordinal) is None

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._result.close()

    def __enter__(self) -> "ResultReader":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()


def read_result_table(result: Result[Any], *, name: str = "") -> DataTable:
    """Materialize the remaining rows of ``result`` into an untyped DataTable."""
    with ResultReader(result) as reader:
        table = DataTable(reader.field_names, name=name)
        while reader.read():
            table.add_row([reader.get_value(i) for i in range(reader.field_count)])
    return table
