"""
Pure domain layer: field inspection, default construction, source protocols.

No I/O and no dependency on concrete sources.
"""

from rowbind_kernel.domain.accessor import (
    FieldDescriptor,
    TypeAccessor,
    describe_fields,
    unwrap_optional,
)
from rowbind_kernel.domain.construction import (
    has_default_constructor,
    new_instance,
    zero_value,
)
from rowbind_kernel.domain.sources import (
    SourceColumn,
    SourceReader,
    SourceRecord,
    SourceTable,
)

__all__ = [
    "FieldDescriptor",
    "TypeAccessor",
    "describe_fields",
    "unwrap_optional",
    "has_default_constructor",
    "new_instance",
    "zero_value",
    "SourceColumn",
    "SourceReader",
    "SourceRecord",
    "SourceTable",
]
