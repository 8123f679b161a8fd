"""
Mapping engine: bind tabular records onto instances of a target type.

Per record:
    1. Working instance = clone of the template (or a default instance).
    2. Field selection: a declared field is overwritten only when its column
       exists in the source (case-insensitive) and the cell is non-null.
    3. Coercion of each selected cell to the field's declared type.
    4. Null-string normalization (optional, last): string fields still None
       become "".

The caller's template is never mutated. ConversionError, ConstructionError and
UnresolvedAnnotationError propagate; for tables and readers the first failure
aborts the whole sequence. While a table or reader record is being bound its
0-based position is in the log context as ``row_index``.
"""

from __future__ import annotations

from typing import Any, Iterable, Sequence

from rowbind_kernel.domain.accessor import FieldDescriptor, TypeAccessor
from rowbind_kernel.domain.construction import new_instance, zero_value
from rowbind_kernel.domain.sources import SourceReader, SourceRecord, SourceTable
from rowbind_kernel.exceptions import ConversionError, UnresolvedAnnotationError
from rowbind_kernel.logging_config import LogContext, get_logger
from rowbind_kernel.mapping.coercion import ConversionSettings, coerce_value

logger = get_logger("mapping.engine")

_MISSING: Any = object()


# -----------------------------------------------------------------------------
# Field selection
# -----------------------------------------------------------------------------


def resolve_columns(field_names: Iterable[str]) -> dict[str, str]:
    """Case-insensitive lookup: folded name -> source name. First name wins."""
    columns: dict[str, str] = {}
    for name in field_names:
        columns.setdefault(name.casefold(), name)
    return columns


def source_column(
    descriptor: FieldDescriptor,
    columns: dict[str, str],
) -> str | None:
    return columns.get(descriptor.column.casefold())


def is_assignable(
    record: SourceRecord,
    descriptor: FieldDescriptor,
    columns: dict[str, str] | None = None,
) -> bool:
    """True if the field's column is present in the record and non-null."""
    if columns is None:
        columns = resolve_columns(record.field_names)
    name = source_column(descriptor, columns)
    return name is not None and not record.is_null(name)


# -----------------------------------------------------------------------------
# Template cloning
# -----------------------------------------------------------------------------


def clone_template(template: Any, accessor: TypeAccessor | None = None) -> Any:
    """Fresh instance of type(template) with every declared field copied 1:1."""
    accessor = accessor or TypeAccessor.for_type(type(template))
    clone = new_instance(type(template), accessor)
    for descriptor in accessor.list_fields():
        if accessor.has_value(template, descriptor.name):
            value = accessor.get(template, descriptor.name)
        else:
            value = zero_value(descriptor)
        accessor.set(clone, descriptor.name, value)
    return clone


# -----------------------------------------------------------------------------
# Null-string normalization
# -----------------------------------------------------------------------------


def normalize_null_strings(instance: Any, accessor: TypeAccessor | None = None) -> Any:
    """Set string fields that are still None to "". In place; returns instance."""
    accessor = accessor or TypeAccessor.for_type(type(instance))
    for descriptor in accessor.list_fields():
        if descriptor.is_string and accessor.get(instance, descriptor.name) is None:
            accessor.set(instance, descriptor.name, "")
    return instance


# -----------------------------------------------------------------------------
# Reader adaptation
# -----------------------------------------------------------------------------


class _ReaderRecord:
    """Presents a reader's current row as a SourceRecord via a fixed lookup."""

    def __init__(self, reader: SourceReader):
        self._reader = reader
        self._names = tuple(reader.get_name(i) for i in range(reader.field_count))
        self._ordinals: dict[str, int] = {}
        for ordinal, name in enumerate(self._names):
            self._ordinals.setdefault(name.casefold(), ordinal)

    @property
    def field_names(self) -> Sequence[str]:
        return self._names

    def get_value(self, name: str) -> Any:
        return self._reader.get_value(self._ordinals[name.casefold()])

    def is_null(self, name: str) -> bool:
        return self._reader.is_null(self._ordinals[name.casefold()])


# -----------------------------------------------------------------------------
# Record binding
# -----------------------------------------------------------------------------


class RecordBinder:
    """
    Binds rows, tables and readers onto ``target_type``.

    ``settings`` controls text conversion (default: invariant conventions);
    ``normalize_nulls`` is the default for every call and can be overridden
    per call.
    """

    def __init__(
        self,
        target_type: type,
        *,
        settings: ConversionSettings | None = None,
        normalize_nulls: bool = True,
    ):
        self.target_type = target_type
        self.settings = settings or ConversionSettings.invariant()
        self.normalize_nulls = normalize_nulls
        self._accessor = TypeAccessor.for_type(target_type)

    def _working_instance(self, template: Any) -> Any:
        if template is None:
            return new_instance(self.target_type, self._accessor)
        if not isinstance(template, self.target_type):
            raise TypeError(
                f"Template must be an instance of {self.target_type.__qualname__}, "
                f"got {type(template).__qualname__}"
            )
        return clone_template(template, self._accessor)

    def _bind(
        self,
        record: SourceRecord,
        template: Any,
        columns: dict[str, str],
        normalize_nulls: bool | None,
    ) -> Any:
        instance = self._working_instance(template)
        for descriptor in self._accessor.list_fields():
            if not is_assignable(record, descriptor, columns):
                continue
            if not descriptor.resolved:
                raise UnresolvedAnnotationError(descriptor.declared_type, descriptor.name, self.target_type)
            value = coerce_value(
                record.get_value(source_column(descriptor, columns)),
                descriptor.declared_type,
                self.settings,
                field_name=descriptor.name,
            )
            self._accessor.set(instance, descriptor.name, value)

        if normalize_nulls is None:
            normalize_nulls = self.normalize_nulls
        if normalize_nulls:
            normalize_null_strings(instance, self._accessor)
        return instance

    def bind_row(
        self,
        record: SourceRecord,
        template: Any = None,
        *,
        normalize_nulls: bool | None = None,
    ) -> Any:
        """Bind one record. Never returns None."""
        columns = resolve_columns(record.field_names)
        return self._bind(record, template, columns, normalize_nulls)

    def _bind_all(
        self,
        records: Iterable[SourceRecord],
        template: Any,
        columns: dict[str, str],
        normalize_nulls: bool | None,
    ) -> list[Any]:
        bound: list[Any] = []
        for index, record in enumerate(records):
            with LogContext.bind(row_index=index):
                try:
                    bound.append(self._bind(record, template, columns, normalize_nulls))
                except ConversionError as exc:
                    exc.row_index = index
                    logger.warning(
                        "record_binding_failed",
                        extra={"field_name": exc.field_name, "error_code": exc.code},
                    )
                    raise
        return bound

    def bind_table(
        self,
        table: SourceTable,
        template: Any = None,
        *,
        normalize_nulls: bool | None = None,
    ) -> list[Any]:
        """Bind every row of ``table`` in row order, one template clone per row."""
        columns = resolve_columns(column.name for column in table.columns)
        with LogContext.bind(target_type=self.target_type.__qualname__, source=type(table).__name__):
            bound = self._bind_all(table.rows, template, columns, normalize_nulls)
            logger.info("table_bound", extra={"records": len(bound)})
        return bound

    def bind_reader(
        self,
        reader: SourceReader,
        template: Any = None,
        *,
        normalize_nulls: bool | None = None,
    ) -> list[Any]:
        """Bind every remaining record of ``reader`` in one forward pass."""
        current = _ReaderRecord(reader)
        columns = resolve_columns(current.field_names)

        def _records() -> Iterable[SourceRecord]:
            while reader.read():
                yield current

        with LogContext.bind(target_type=self.target_type.__qualname__, source=type(reader).__name__):
            bound = self._bind_all(_records(), template, columns, normalize_nulls)
            logger.info("reader_bound", extra={"records": len(bound)})
        return bound

    def convert_cell(self, record: SourceRecord, field_name: str, as_type: Any, default: Any = _MISSING) -> Any:
        return convert_cell(record, field_name, as_type, default, settings=self.settings)


def bind_row(
    record: SourceRecord,
    target_type: type,
    template: Any = None,
    *,
    normalize_nulls: bool = True,
    settings: ConversionSettings | None = None,
) -> Any:
    return RecordBinder(target_type, settings=settings, normalize_nulls=normalize_nulls).bind_row(record, template)


def bind_table(
    table: SourceTable,
    target_type: type,
    template: Any = None,
    *,
    normalize_nulls: bool = True,
    settings: ConversionSettings | None = None,
) -> list[Any]:
    return RecordBinder(target_type, settings=settings, normalize_nulls=normalize_nulls).bind_table(table, template)


def bind_reader(
    reader: SourceReader,
    target_type: type,
    template: Any = None,
    *,
    normalize_nulls: bool = True,
    settings: ConversionSettings | None = None,
) -> list[Any]:
    return RecordBinder(target_type, settings=settings, normalize_nulls=normalize_nulls).bind_reader(reader, template)


def convert_cell(
    record: SourceRecord,
    field_name: str,
    as_type: Any,
    default: Any = _MISSING,
    *,
    settings: ConversionSettings | None = None,
) -> Any:
    """
    Convert a single cell to ``as_type``.

    With ``default``, a null cell returns ``default`` without conversion.
    Without it, a null cell yields None for optional types and raises
    ConversionError otherwise.
    """
    if default is not _MISSING and record.is_null(field_name):
        return default
    value = None if record.is_null(field_name) else record.get_value(field_name)
    return coerce_value(value, as_type, settings, field_name=field_name)
