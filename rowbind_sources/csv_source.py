"""
CSV source: forward-only CsvReader and a read_csv_table() loader.

Uses csv.reader. Configurable: delimiter, encoding, has_header, columns,
quoting, skip_rows, null_values. Handles BOM via utf-8-sig when encoding is
utf-8. CsvReader streams rows; the file stays open until the reader is
exhausted or closed.

Cells equal to one of ``null_values`` (default: the empty string) are
reported as null. Short rows are padded with nulls; surplus cells are
dropped.
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Any

from rowbind_kernel.exceptions import (
    ColumnNotFoundError,
    NoCurrentRecordError,
    ReaderClosedError,
)
from rowbind_kernel.logging_config import get_logger

from rowbind_sources.data_table import DataTable

logger = get_logger("sources.csv")

_QUOTING = {
    "minimal": csv.QUOTE_MINIMAL,
    "all": csv.QUOTE_ALL,
    "nonnumeric": csv.QUOTE_NONNUMERIC,
    "none": csv.QUOTE_NONE,
}


def _get_encoding(options: dict[str, Any]) -> str:
    enc = options.get("encoding", "utf-8")
    if enc.lower() == "utf-8":
        return "utf-8-sig"  # Strip BOM if present
    return enc


def _get_quoting(options: dict[str, Any]) -> int:
    q = options.get("quoting", "minimal")
    if isinstance(q, int):
        return q
    return _QUOTING.get(str(q).lower(), csv.QUOTE_MINIMAL)


class CsvReader:
    """Read a CSV file one record at a time."""

    def __init__(self, source_path: Path | str, options: dict[str, Any] | None = None):
        options = options or {}
        self.source_path = Path(source_path)
        self._null_values = frozenset(options.get("null_values", ("",)))
        self._file = self.source_path.open("r", encoding=_get_encoding(options), newline="")
        self._current: list[str | None] | None = None
        self._pending: list[str] | None = None
        self._exhausted = False
        self._closed = False
        self.records_read = 0

        try:
            for _ in range(int(options.get("skip_rows", 0))):
                next(self._file, None)
            self._reader = csv.reader(
                self._file,
                delimiter=options.get("delimiter", ","),
                quoting=_get_quoting(options),
            )
            self._names = self._resolve_names(options)
        except BaseException:
            self._file.close()
            raise

    def _resolve_names(self, options: dict[str, Any]) -> tuple[str, ...]:
        if options.get("has_header", True):
            header = next(self._reader, None)
            return tuple(h.strip() for h in header) if header else ()
        columns = options.get("columns")
        if columns:
            return tuple(columns)
        # No header and no names: peek at the first row for the width
        first = next(self._reader, None)
        if first is None:
            return ()
        self._pending = first
        return tuple(f"field_{i}" for i in range(len(first)))

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
        self.get_name(ordinal)
        return str

    def read(self) -> bool:
        if self._closed:
            raise ReaderClosedError()
        if self._exhausted:
            return False
        row, self._pending = self._pending, None
        if row is None:
            row = next(self._reader, None)
        if row is None:
            self._exhausted = True
            self._current = None
            self._file.close()
            logger.debug("csv_exhausted", extra={"path": str(self.source_path), "records": self.records_read})
            return False
        width = len(self._names)
        cells: list[str | None] = [None if v in self._null_values else v for v in row[:width]]
        cells.extend([None] * (width - len(cells)))
        self._current = cells
        self.records_read += 1
        return True

    def get_value(self, ordinal: int) -> Any:
        if self._closed:
            raise ReaderClosedError()
        if self._current is None:
            raise NoCurrentRecordError()
        self.get_name(ordinal)
        return self._current[ordinal]

    def is_null(self, ordinal: int) -> bool:
        return self.get_value(ordinal) is None

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._file.close()

    def __enter__(self) -> "CsvReader":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()


def read_csv_table(source_path: Path | str, options: dict[str, Any] | None = None) -> DataTable:
    """Load a whole CSV file into a DataTable of text columns."""
    with CsvReader(source_path, options) as reader:
        table = DataTable(((name, str) for name in reader.field_names), name=Path(source_path).stem)
        while reader.read():
            table.add_row([reader.get_value(i) for i in range(reader.field_count)])
    return table
