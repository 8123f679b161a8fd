"""
Typed Exception Hierarchy for the rowbind kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Binding failures must be distinguishable by type, not by message text:

    try:
        customers = bind_table(table, Customer)
    except ConversionError as e:           # Typed catch
        report(e.row_index, e.field_name)   # Structured data
    except ConstructionError as e:
        report_type(e.target_type)

Every exception has a CODE class attribute (machine-readable) and carries its
context as attributes so it survives structured logging.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from RowBindError:

    RowBindError (base)
    |
    +-- BindingError
    |   +-- ConversionError
    |   +-- ConstructionError
    |   +-- UnresolvedAnnotationError
    |
    +-- SourceError
    |   +-- ColumnNotFoundError
    |   +-- ReaderClosedError
    |   +-- NoCurrentRecordError
    |
    +-- ConfigError
        +-- InvalidConfigError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                 | When Raised
----------------|----------------------|------------------------------------------
Binding         | CONVERSION_ERROR     | Cell value cannot become the field's type
                | CONSTRUCTION_ERROR   | Target type cannot be instantiated
                | UNRESOLVED_ANNOTATION| Value bound to a field whose annotation
                |                      | names something not importable at runtime
----------------|----------------------|------------------------------------------
Source          | COLUMN_NOT_FOUND     | Lookup of a column the source lacks
                | READER_CLOSED        | Reader used after close()
                | NO_CURRENT_RECORD    | Value read before read() / after the end
----------------|----------------------|------------------------------------------
Config          | INVALID_CONFIG       | Configuration key has an unusable value

Absent or null cells are NOT errors. They are handled by the fallback rules of
the mapping engine.
"""

from __future__ import annotations

from typing import Any


class RowBindError(Exception):
    """
    Base exception for all rowbind errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "ROWBIND_ERROR"


# Binding exceptions


class BindingError(RowBindError):
    """Base exception for errors raised while building bound instances."""

    code: str = "BINDING_ERROR"


def _type_name(target_type: Any) -> str:
    return getattr(target_type, "__qualname__", None) or repr(target_type)


class ConversionError(BindingError):
    """
    A raw cell value cannot be converted to a field's declared type.

    Propagates to the caller of the bind/convert operation. When raised while
    binding a table or reader, ``row_index`` is filled in with the 0-based
    position of the failing record.
    """

    code: str = "CONVERSION_ERROR"

    def __init__(
        self,
        value: Any,
        target_type: Any,
        field_name: str | None = None,
        reason: str | None = None,
    ):
        self.value = value
        self.target_type = _type_name(target_type)
        self.field_name = field_name
        self.reason = reason
        self.row_index: int | None = None
        where = f" for field '{field_name}'" if field_name else ""
        detail = f": {reason}" if reason else ""
        super().__init__(
            f"Cannot convert {value!r} to {self.target_type}{where}{detail}"
        )


class ConstructionError(BindingError):
    """Target type cannot be instantiated by any available strategy."""

    code: str = "CONSTRUCTION_ERROR"

    def __init__(self, target_type: Any, reason: str):
        self.target_type = _type_name(target_type)
        self.reason = reason
        super().__init__(f"Cannot construct {self.target_type}: {reason}")


class UnresolvedAnnotationError(BindingError):
    """
    A field's annotation could not be evaluated at runtime.

    Typically a name imported only under ``TYPE_CHECKING``. Raised when a
    value would be bound to that field; the declared type is unknown, so the
    value is neither coerced nor assigned.
    """

    code: str = "UNRESOLVED_ANNOTATION"

    def __init__(
        self,
        annotation: Any,
        field_name: str | None = None,
        target_type: Any = None,
    ):
        self.annotation = str(annotation)
        self.field_name = field_name
        self.target_type = _type_name(target_type) if target_type is not None else None
        where = f" for field '{field_name}'" if field_name else ""
        owner = f" of {self.target_type}" if self.target_type else ""
        super().__init__(
            f"Cannot resolve annotation {self.annotation!r}{where}{owner}"
        )


# Source exceptions


class SourceError(RowBindError):
    """Base exception for tabular source misuse."""

    code: str = "SOURCE_ERROR"


class ColumnNotFoundError(SourceError):
    """Column lookup by name or ordinal failed."""

    code: str = "COLUMN_NOT_FOUND"

    def __init__(self, column: str | int):
        self.column = column
        super().__init__(f"Column not found: {column!r}")


class ReaderClosedError(SourceError):
    """Reader was used after it was closed."""

    code: str = "READER_CLOSED"

    def __init__(self) -> None:
        super().__init__("Reader is closed")


class NoCurrentRecordError(SourceError):
    """Reader values were requested with no current record."""

    code: str = "NO_CURRENT_RECORD"

    def __init__(self) -> None:
        super().__init__("No current record; call read() first")


# Configuration exceptions


class ConfigError(RowBindError):
    """Base exception for configuration errors."""

    code: str = "CONFIG_ERROR"


class InvalidConfigError(ConfigError):
    """A configuration key holds a value that cannot be used."""

    code: str = "INVALID_CONFIG"

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid configuration for '{key}': {reason}")
