"""
rowbind kernel

Binds tabular records (rows, tables, forward-only readers) onto instances of a
target type:
- Case-insensitive column-to-field matching; extra columns ignored
- Null and missing cells fall back to a template or the type default
- Explicit, locale-independent value coercion
- Null-string normalization (on by default)
"""

from rowbind_kernel.exceptions import (
    ConstructionError,
    ConversionError,
    UnresolvedAnnotationError,
)
from rowbind_kernel.mapping import (
    ConversionSettings,
    RecordBinder,
    bind_reader,
    bind_row,
    bind_table,
    convert_cell,
)

__version__ = "0.1.0"

__all__ = [
    "ConstructionError",
    "ConversionError",
    "ConversionSettings",
    "RecordBinder",
    "UnresolvedAnnotationError",
    "bind_reader",
    "bind_row",
    "bind_table",
    "convert_cell",
]
