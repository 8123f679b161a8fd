"""
Tabular source capability protocols.

Contract:
    SourceRecord: one row, values looked up by column name (case-insensitive),
        with a per-cell null indicator.
    SourceTable: materialized rows plus column metadata; random access.
    SourceReader: forward-only cursor; read() advances, values by ordinal.

The kernel only consumes these surfaces. Concrete sources live in
``rowbind_sources``.
"""

from __future__ import annotations

from typing import Any, Protocol, Sequence, runtime_checkable


@runtime_checkable
class SourceColumn(Protocol):
    """Column metadata: name and the Python type of its cells."""

    name: str
    data_type: type


@runtime_checkable
class SourceRecord(Protocol):
    """One row of named cells."""

    @property
    def field_names(self) -> Sequence[str]:
        """Column names available on this record, in source order."""
        ...

    def get_value(self, name: str) -> Any:
        """Cell value by column name (case-insensitive)."""
        ...

    def is_null(self, name: str) -> bool:
        """True if the cell holds no value."""
        ...


@runtime_checkable
class SourceTable(Protocol):
    """Materialized rows sharing one column set."""

    @property
    def columns(self) -> Sequence[SourceColumn]:
        ...

    @property
    def rows(self) -> Sequence[SourceRecord]:
        ...

    def __len__(self) -> int:
        ...


@runtime_checkable
class SourceReader(Protocol):
    """Forward-only, single-pass record cursor."""

    @property
    def field_count(self) -> int:
        ...

    def get_name(self, ordinal: int) -> str:
        ...

    def get_field_type(self, ordinal: int) -> type:
        ...

    def read(self) -> bool:
        """Advance to the next record. False once exhausted."""
        ...

    def get_value(self, ordinal: int) -> Any:
        ...

    def is_null(self, ordinal: int) -> bool:
        ...
