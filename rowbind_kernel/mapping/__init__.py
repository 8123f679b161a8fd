"""Mapping engine: field selection, coercion, template cloning, record binding."""

from rowbind_kernel.mapping.coercion import ConversionSettings, coerce_value
from rowbind_kernel.mapping.engine import (
    RecordBinder,
    bind_reader,
    bind_row,
    bind_table,
    clone_template,
    convert_cell,
    is_assignable,
    normalize_null_strings,
    resolve_columns,
)

__all__ = [
    "ConversionSettings",
    "coerce_value",
    "RecordBinder",
    "bind_reader",
    "bind_row",
    "bind_table",
    "clone_template",
    "convert_cell",
    "is_assignable",
    "normalize_null_strings",
    "resolve_columns",
]
