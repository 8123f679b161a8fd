"""
In-memory tabular source: DataTable, DataRow, DataTableReader.

DataTable holds typed columns and materialized rows (random access).
DataTableReader is a forward-only cursor over a snapshot of a table's rows.
Column lookup by name is case-insensitive throughout.

Cell assignment converts non-null values to the column's ``data_type`` with
the kernel coercer (columns typed ``object`` store values untouched), so a
cell set to "34567" on an ``int`` column holds 34567.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Iterator, Mapping, Sequence

from rowbind_kernel.exceptions import (
    ColumnNotFoundError,
    NoCurrentRecordError,
    ReaderClosedError,
)
from rowbind_kernel.mapping.coercion import ConversionSettings, coerce_value


@dataclass(frozen=True)
class DataColumn:
    """Named, typed column."""

    name: str
    data_type: type = object


class DataTable:
    """Materialized rows sharing one column set."""

    def __init__(
        self,
        columns: Iterable[DataColumn | str | tuple[str, type]] = (),
        *,
        name: str = "",
        settings: ConversionSettings | None = None,
    ):
        self.name = name
        self.settings = settings or ConversionSettings.invariant()
        self._columns: list[DataColumn] = []
        self._ordinals: dict[str, int] = {}
        self._rows: list[DataRow] = []
        for column in columns:
            if isinstance(column, DataColumn):
                self.add_column(column.name, column.data_type)
            elif isinstance(column, str):
                self.add_column(column)
            else:
                self.add_column(*column)

    @classmethod
    def from_records(
        cls,
        records: Iterable[Mapping[str, Any]],
        *,
        name: str = "",
    ) -> "DataTable":
        """Build an untyped table from dicts; columns in first-seen key order."""
        records = list(records)
        table = cls(name=name)
        for record in records:
            for key in record:
                if not table.has_column(key):
                    table.add_column(key)
        for record in records:
            table.add_row(record)
        return table

    # -- columns ---------------------------------------------------------------

    @property
    def columns(self) -> tuple[DataColumn, ...]:
        return tuple(self._columns)

    @property
    def column_names(self) -> tuple[str, ...]:
        return tuple(c.name for c in self._columns)

    def add_column(self, name: str, data_type: type = object) -> DataColumn:
        key = name.casefold()
        if key in self._ordinals:
            raise ValueError(f"Duplicate column name: {name!r}")
        column = DataColumn(name, data_type)
        self._ordinals[key] = len(self._columns)
        self._columns.append(column)
        for row in self._rows:
            row._values.append(None)
        return column

    def has_column(self, name: str) -> bool:
        return name.casefold() in self._ordinals

    def ordinal(self, name: str) -> int:
        try:
            return self._ordinals[name.casefold()]
        except KeyError:
            raise ColumnNotFoundError(name) from None

    # -- rows ------------------------------------------------------------------

    @property
    def rows(self) -> tuple["DataRow", ...]:
        return tuple(self._rows)

    def new_row(self) -> "DataRow":
        """Detached row with every cell null; attach with add_row()."""
        return DataRow(self)

    def add_row(self, values: "DataRow | Mapping[str, Any] | Sequence[Any] | None" = None) -> "DataRow":
        if isinstance(values, DataRow):
            if values.table is not self:
                raise ValueError("Row belongs to a different table")
            row = values
        else:
            row = DataRow(self)
            if isinstance(values, Mapping):
                for key, value in values.items():
                    row[key] = value
            elif values is not None:
                if len(values) > len(self._columns):
                    raise ValueError(
                        f"Row has {len(values)} values but table has {len(self._columns)} columns"
                    )
                for ordinal, value in enumerate(values):
                    row[ordinal] = value
        self._rows.append(row)
        return row

    def select(self, predicate: Callable[["DataRow"], bool]) -> list["DataRow"]:
        return [row for row in self._rows if predicate(row)]

    def create_reader(self) -> "DataTableReader":
        return DataTableReader(self)

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator["DataRow"]:
        return iter(self._rows)

    def __repr__(self) -> str:
        return f"DataTable(name={self.name!r}, columns={len(self._columns)}, rows={len(self._rows)})"


class DataRow:
    """One row of a DataTable; cells by column name or ordinal."""

    def __init__(self, table: DataTable):
        self._table = table
        self._values: list[Any] = [None] * len(table.columns)

    @property
    def table(self) -> DataTable:
        return self._table

    @property
    def field_names(self) -> tuple[str, ...]:
        return self._table.column_names

    def _sync_width(self) -> list[Any]:
        # Columns added while this row was detached have no cell yet
        missing = len(self._table.columns) - len(self._values)
        if missing > 0:
            self._values.extend([None] * missing)
        return self._values

    def _ordinal(self, key: str | int) -> int:
        values = self._sync_width()
        if isinstance(key, int):
            if not 0 <= key < len(values):
                raise ColumnNotFoundError(key)
            return key
        return self._table.ordinal(key)

    def __getitem__(self, key: str | int) -> Any:
        return self._values[self._ordinal(key)]

    def __setitem__(self, key: str | int, value: Any) -> None:
        ordinal = self._ordinal(key)
        column = self._table.columns[ordinal]
        if value is not None and column.data_type is not object:
            value = coerce_value(value, column.data_type, self._table.settings, field_name=column.name)
        self._values[ordinal] = value

    def get_value(self, name: str) -> Any:
        return self[name]

    def is_null(self, name: str | int) -> bool:
        return self[name] is None

    def as_dict(self) -> dict[str, Any]:
        return dict(zip(self.field_names, self._sync_width()))

    def __repr__(self) -> str:
        return f"DataRow({self.as_dict()!r})"


class DataTableReader:
    """Forward-only reader over the rows a table held when it was created."""

    def __init__(self, table: DataTable):
        self._columns = table.columns
        self._rows = table.rows
        self._position = -1
        self._closed = False

    @property
    def field_count(self) -> int:
        return len(self._columns)

    @property
    def is_closed(self) -> bool:
        return self._closed

    def get_name(self, ordinal: int) -> str:
        return self._column(ordinal).name

    def get_field_type(self, ordinal: int) -> type:
        return self._column(ordinal).data_type

    def get_ordinal(self, name: str) -> int:
        for ordinal, column in enumerate(self._columns):
            if column.name.casefold() == name.casefold():
                return ordinal
        raise ColumnNotFoundError(name)

    def read(self) -> bool:
        if self._closed:
            raise ReaderClosedError()
        if self._position < len(self._rows):
            self._position += 1
        return self._position < len(self._rows)

    def get_value(self, ordinal: int) -> Any:
        return self._current()[ordinal]

    def is_null(self, ordinal: int) -> bool:
        return self.get_value(ordinal) is None

    def close(self) -> None:
        self._closed = True

    def _column(self, ordinal: int) -> DataColumn:
        if not 0 <= ordinal < len(self._columns):
            raise ColumnNotFoundError(ordinal)
        return self._columns[ordinal]

    def _current(self) -> DataRow:
        if self._closed:
            raise ReaderClosedError()
        if not 0 <= self._position < len(self._rows):
            raise NoCurrentRecordError()
        return self._rows[self._position]

    def __enter__(self) -> "DataTableReader":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()
