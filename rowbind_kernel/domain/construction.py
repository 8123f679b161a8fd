"""
Default instance construction.

``new_instance(target_type)`` produces an instance whose declared fields hold
their type defaults. Two strategies, tried in order:

1. Default construction: every constructor parameter has a default, so
   ``target_type()`` is called. Declared fields the constructor left unset are
   filled with their zero default.
2. Raw allocation: ``target_type.__new__(target_type)`` without running
   ``__init__``, then every declared field is set to its zero default.
   Invariants enforced only inside ``__init__`` are NOT established on this
   path.

When neither strategy works, ``ConstructionError`` is raised; no partial
instance escapes.
"""

from __future__ import annotations

import inspect
from decimal import Decimal
from typing import Any

from rowbind_kernel.domain.accessor import FieldDescriptor, TypeAccessor
from rowbind_kernel.exceptions import ConstructionError

_ZERO_VALUES: dict[type, Any] = {
    bool: False,
    int: 0,
    float: 0.0,
    complex: 0j,
    Decimal: Decimal(0),
}


def zero_value(descriptor: FieldDescriptor) -> Any:
    """Type default for a field: numeric zero, False, or None."""
    if descriptor.optional:
        return None
    return _ZERO_VALUES.get(descriptor.declared_type)


def has_default_constructor(target_type: type) -> bool:
    """True if ``target_type()`` needs no arguments."""
    try:
        signature = inspect.signature(target_type)
    except (TypeError, ValueError):
        return False
    for param in signature.parameters.values():
        if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            continue
        if param.default is param.empty:
            return False
    return True


def _fill_unset(instance: Any, accessor: TypeAccessor) -> None:
    for descriptor in accessor.list_fields():
        if not accessor.has_value(instance, descriptor.name):
            accessor.set(instance, descriptor.name, zero_value(descriptor))


def new_instance(target_type: type, accessor: TypeAccessor | None = None) -> Any:
    """Create a default instance of ``target_type``."""
    accessor = accessor or TypeAccessor.for_type(target_type)

    if has_default_constructor(target_type):
        try:
            instance = target_type()
        except Exception as exc:
            raise ConstructionError(target_type, f"constructor raised {type(exc).__name__}: {exc}") from exc
        _fill_unset(instance, accessor)
        return instance

    try:
        instance = target_type.__new__(target_type)
    except TypeError as exc:
        raise ConstructionError(target_type, f"raw allocation failed: {exc}") from exc

    try:
        for descriptor in accessor.list_fields():
            accessor.set(instance, descriptor.name, zero_value(descriptor))
    except (AttributeError, TypeError) as exc:
        raise ConstructionError(target_type, f"fields cannot be zero-initialized: {exc}") from exc
    return instance
