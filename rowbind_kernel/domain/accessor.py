"""
Field inspection for target types.

A ``TypeAccessor`` enumerates the named fields of a target type as
``FieldDescriptor`` values and reads/writes them on instances. Descriptors are
derived once per type and memoized; the memo is write-once / read-many, so an
accessor can be shared across concurrent binding calls.

Supported target types:
    - dataclasses (``dataclasses.fields``; frozen dataclasses are written with
      ``object.__setattr__``)
    - plain classes with annotated attributes (``ClassVar`` excluded)

A dataclass field can read from a differently named source column through
``field(metadata={"column": "CustomerId"})``.
"""

from __future__ import annotations

import dataclasses
import inspect
import sys
import types
import typing
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, ClassVar, Iterator, Union

COLUMN_METADATA_KEY = "column"


@dataclass(frozen=True)
class FieldDescriptor:
    """One settable field of a target type."""

    name: str
    declared_type: Any  # Unwrapped: ``int`` for ``int | None``
    optional: bool = False
    column: str = ""
    resolved: bool = True  # False: annotation text names something not importable at runtime

    def __post_init__(self) -> None:
        if not self.column:
            object.__setattr__(self, "column", self.name)

    @property
    def is_string(self) -> bool:
        return self.declared_type is str


def unwrap_optional(annotation: Any) -> tuple[Any, bool]:
    """
    Split ``X | None`` / ``Optional[X]`` into ``(X, True)``.

    Unions of several non-None members are left as declared; they have no
    single conversion target and are treated as pass-through.
    """
    origin = typing.get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = typing.get_args(annotation)
        members = tuple(a for a in args if a is not type(None))
        if len(members) < len(args):
            if len(members) == 1:
                return members[0], True
            return Any, True
    return annotation, False


def _is_classvar(annotation: Any) -> bool:
    if isinstance(annotation, str):
        return annotation.startswith(("ClassVar", "typing.ClassVar"))
    return annotation is ClassVar or typing.get_origin(annotation) is ClassVar


def _resolve_hints(target_type: type) -> tuple[dict[str, Any], frozenset[str]]:
    """
    Resolve the annotations of ``target_type`` and its bases.

    Returns ``(hints, unresolved)``. Each string annotation is evaluated on
    its own against the globals of the module that declared it, so one name
    imported only under ``TYPE_CHECKING`` leaves just that field unresolved.
    Unresolved fields keep their annotation text in ``hints``.
    """
    try:
        return typing.get_type_hints(target_type), frozenset()
    except (NameError, TypeError, AttributeError):
        pass

    hints: dict[str, Any] = {}
    unresolved: set[str] = set()
    for klass in reversed(target_type.__mro__):
        module = sys.modules.get(klass.__module__)
        # Module names take precedence over class attributes (a field named
        # "date" must not hide datetime.date)
        classns = dict(vars(klass))
        modulens = vars(module) if module is not None else {}
        for name, annotation in inspect.get_annotations(klass).items():
            if isinstance(annotation, str):
                try:
                    annotation = eval(annotation, classns, modulens)
                except (NameError, AttributeError, SyntaxError, TypeError):
                    hints[name] = annotation
                    unresolved.add(name)
                    continue
            hints[name] = annotation
            unresolved.discard(name)
    return hints, frozenset(unresolved)


@lru_cache(maxsize=None)
def describe_fields(target_type: type) -> tuple[FieldDescriptor, ...]:
    """Return the field descriptors of ``target_type`` (memoized)."""
    if not isinstance(target_type, type):
        raise TypeError(f"Target type must be a class, got {target_type!r}")

    hints, unresolved = _resolve_hints(target_type)
    descriptors: list[FieldDescriptor] = []

    if dataclasses.is_dataclass(target_type):
        for f in dataclasses.fields(target_type):
            declared, optional = unwrap_optional(hints.get(f.name, f.type))
            descriptors.append(FieldDescriptor(
                name=f.name,
                declared_type=declared,
                optional=optional,
                column=f.metadata.get(COLUMN_METADATA_KEY, ""),
                resolved=f.name not in unresolved,
            ))
        return tuple(descriptors)

    for name, annotation in hints.items():
        if name.startswith("_") or _is_classvar(annotation):
            continue
        declared, optional = unwrap_optional(annotation)
        descriptors.append(FieldDescriptor(
            name=name,
            declared_type=declared,
            optional=optional,
            resolved=name not in unresolved,
        ))
    return tuple(descriptors)


class TypeAccessor:
    """Get/set access to the declared fields of one target type."""

    def __init__(self, target_type: type):
        self.target_type = target_type
        self._fields = describe_fields(target_type)
        self._frozen = (
            dataclasses.is_dataclass(target_type)
            and target_type.__dataclass_params__.frozen
        )

    @classmethod
    def for_type(cls, target_type: type) -> "TypeAccessor":
        return _accessor_for(target_type)

    def list_fields(self) -> tuple[FieldDescriptor, ...]:
        return self._fields

    def __iter__(self) -> Iterator[FieldDescriptor]:
        return iter(self._fields)

    def get(self, instance: Any, name: str) -> Any:
        return getattr(instance, name)

    def has_value(self, instance: Any, name: str) -> bool:
        return hasattr(instance, name)

    def set(self, instance: Any, name: str, value: Any) -> None:
        if self._frozen:
            object.__setattr__(instance, name, value)
        else:
            setattr(instance, name, value)


@lru_cache(maxsize=None)
def _accessor_for(target_type: type) -> TypeAccessor:
    return TypeAccessor(target_type)
