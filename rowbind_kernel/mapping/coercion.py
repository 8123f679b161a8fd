"""
Value coercion: raw cell value + declared field type -> assignable value.

Pure functions, ZERO I/O. Culture-sensitive parsing (decimal and group
separators, boolean tokens, date formats) is driven by an explicit
``ConversionSettings`` value instead of process-global locale state. The
default is ``ConversionSettings.invariant()``; ``ConversionSettings.from_locale()``
snapshots the current process locale for callers that want it.

Failures raise ``ConversionError``. They are never caught here.
"""

from __future__ import annotations

import locale
import re
import typing
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import ROUND_HALF_EVEN, Decimal
from enum import Enum
from typing import Any, Callable
from uuid import UUID

from rowbind_kernel.domain.accessor import unwrap_optional
from rowbind_kernel.exceptions import ConversionError, UnresolvedAnnotationError


# -----------------------------------------------------------------------------
# Settings
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class ConversionSettings:
    """Formatting conventions used when text has to become a typed value."""

    decimal_separator: str = "."
    group_separator: str = ","
    true_values: tuple[str, ...] = ("true", "yes", "1", "on")
    false_values: tuple[str, ...] = ("false", "no", "0", "off")
    date_formats: tuple[str, ...] = ("%Y-%m-%d", "%Y/%m/%d", "%m/%d/%Y")
    datetime_formats: tuple[str, ...] = ("%Y-%m-%d %H:%M:%S", "%m/%d/%Y %H:%M:%S")
    strip_whitespace: bool = True

    def __post_init__(self) -> None:
        if not self.decimal_separator:
            raise ValueError("decimal_separator must not be empty")
        if self.decimal_separator == self.group_separator:
            raise ValueError("decimal_separator and group_separator must differ")

    @classmethod
    def invariant(cls) -> "ConversionSettings":
        return _INVARIANT

    @classmethod
    def from_locale(cls) -> "ConversionSettings":
        """Snapshot the numeric conventions of the current process locale."""
        conv = locale.localeconv()
        decimal_point = conv.get("decimal_point") or "."
        thousands = conv.get("thousands_sep") or ""
        if thousands == decimal_point:
            thousands = ""
        return cls(decimal_separator=decimal_point, group_separator=thousands)

    def normalize_number(self, text: str) -> str:
        """Rewrite culture-formatted number text into Python literal form."""
        s = text.strip() if self.strip_whitespace else text
        if self.group_separator:
            s = s.replace(self.group_separator, "")
        if self.decimal_separator != ".":
            s = s.replace(self.decimal_separator, ".")
        return s

    def format_number(self, value: Any) -> str:
        s = str(value)
        if self.decimal_separator != ".":
            s = s.replace(".", self.decimal_separator)
        return s


_INVARIANT = ConversionSettings()


# -----------------------------------------------------------------------------
# Per-type converters
# -----------------------------------------------------------------------------


# Normalized numeric text: ASCII digits only, no "_" separators, no nan/inf
_INTEGER_TEXT = re.compile(r"[+-]?[0-9]+")
_NUMBER_TEXT = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


def _text(raw: Any, settings: ConversionSettings) -> str:
    return raw.strip() if settings.strip_whitespace else raw


def _number_text(raw: str, settings: ConversionSettings, pattern: re.Pattern[str]) -> str:
    s = settings.normalize_number(raw)
    if not pattern.fullmatch(s):
        raise ValueError("not a number")
    return s


def _finite(value: Decimal) -> Decimal:
    if not value.is_finite():
        raise ValueError("not a finite number")
    return value


def _to_decimal(raw: Any, settings: ConversionSettings) -> Decimal:
    if isinstance(raw, bool):
        return Decimal(int(raw))
    if isinstance(raw, Decimal):
        return _finite(raw)
    if isinstance(raw, int):
        return Decimal(raw)
    if isinstance(raw, float):
        # Via repr to avoid binary expansion (23.3 -> 23.3, not 23.29999...)
        return _finite(Decimal(repr(raw)))
    if isinstance(raw, str):
        return Decimal(_number_text(raw, settings, _NUMBER_TEXT))
    raise TypeError


def _to_int(raw: Any, settings: ConversionSettings) -> int:
    if isinstance(raw, bool):
        return int(raw)
    if isinstance(raw, int):
        return raw
    if isinstance(raw, (float, Decimal)):
        d = _to_decimal(raw, settings)
        return int(d.to_integral_value(rounding=ROUND_HALF_EVEN))
    if isinstance(raw, str):
        s = settings.normalize_number(raw)
        if not _INTEGER_TEXT.fullmatch(s):
            raise ValueError("not an integer")
        return int(s)
    raise TypeError


def _to_float(raw: Any, settings: ConversionSettings) -> float:
    if isinstance(raw, (bool, int, float, Decimal)):
        return float(raw)
    if isinstance(raw, str):
        return float(_number_text(raw, settings, _NUMBER_TEXT))
    raise TypeError


def _to_bool(raw: Any, settings: ConversionSettings) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, (int, float, Decimal)):
        return raw != 0
    if isinstance(raw, str):
        token = raw.strip().lower()
        if token in settings.true_values:
            return True
        if token in settings.false_values:
            return False
        raise ValueError("not a boolean token")
    raise TypeError


def _to_str(raw: Any, settings: ConversionSettings) -> str:
    if isinstance(raw, str):
        return raw
    if isinstance(raw, (float, Decimal)):
        return settings.format_number(raw)
    if isinstance(raw, (datetime, date, time)):
        return raw.isoformat()
    if isinstance(raw, (bytes, bytearray, memoryview)):
        raise TypeError
    return str(raw)


def _parse_with_formats(text: str, formats: tuple[str, ...]) -> datetime:
    for fmt in formats:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    raise ValueError("no matching format")


def _to_date(raw: Any, settings: ConversionSettings) -> date:
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    if isinstance(raw, str):
        s = _text(raw, settings)
        try:
            return date.fromisoformat(s)
        except ValueError:
            return _parse_with_formats(s, settings.date_formats).date()
    raise TypeError


def _to_datetime(raw: Any, settings: ConversionSettings) -> datetime:
    if isinstance(raw, datetime):
        return raw
    if isinstance(raw, date):
        return datetime.combine(raw, time())
    if isinstance(raw, str):
        s = _text(raw, settings)
        try:
            return datetime.fromisoformat(s.replace("Z", "+00:00"))
        except ValueError:
            return _parse_with_formats(s, settings.datetime_formats + settings.date_formats)
    raise TypeError


def _to_time(raw: Any, settings: ConversionSettings) -> time:
    if isinstance(raw, datetime):
        return raw.time()
    if isinstance(raw, time):
        return raw
    if isinstance(raw, str):
        return time.fromisoformat(_text(raw, settings))
    raise TypeError


def _to_uuid(raw: Any, settings: ConversionSettings) -> UUID:
    if isinstance(raw, UUID):
        return raw
    if isinstance(raw, str):
        return UUID(_text(raw, settings))
    if isinstance(raw, (bytes, bytearray)) and len(raw) == 16:
        return UUID(bytes=bytes(raw))
    raise TypeError


def _to_bytes(raw: Any, settings: ConversionSettings) -> bytes:
    if isinstance(raw, (bytes, bytearray, memoryview)):
        return bytes(raw)
    raise TypeError


_CONVERTERS: dict[type, Callable[[Any, ConversionSettings], Any]] = {
    str: _to_str,
    bool: _to_bool,
    int: _to_int,
    float: _to_float,
    Decimal: _to_decimal,
    datetime: _to_datetime,
    date: _to_date,
    time: _to_time,
    UUID: _to_uuid,
    bytes: _to_bytes,
}


def _to_enum(raw: Any, target: type[Enum], settings: ConversionSettings) -> Enum:
    if isinstance(raw, target):
        return raw
    if isinstance(raw, str):
        key = _text(raw, settings)
        for member in target:
            if member.name.lower() == key.lower():
                return member
    return target(raw)


# -----------------------------------------------------------------------------
# Entry point
# -----------------------------------------------------------------------------


def coerce_value(
    raw_value: Any,
    declared_type: Any,
    settings: ConversionSettings | None = None,
    *,
    field_name: str | None = None,
) -> Any:
    """
    Convert ``raw_value`` to ``declared_type``. Pure function.

    Optional wrappers are unwrapped first (``Decimal | None`` -> ``Decimal``).
    ``Any``/``object`` and non-class annotations pass the value through.
    Annotation text (string or ForwardRef) is never guessed at.

    Raises:
        ConversionError: the value's runtime representation cannot become
            the declared type.
        UnresolvedAnnotationError: ``declared_type`` is unevaluated
            annotation text.
    """
    settings = settings or _INVARIANT
    target, optional = unwrap_optional(declared_type)

    if isinstance(target, (str, typing.ForwardRef)):
        raise UnresolvedAnnotationError(getattr(target, "__forward_arg__", target), field_name)
    if target is Any or target is object or not isinstance(target, type):
        return raw_value
    if raw_value is None:
        if optional:
            return None
        raise ConversionError(raw_value, target, field_name, "null value for non-optional type")

    converter = _CONVERTERS.get(target)
    try:
        if converter is not None:
            return converter(raw_value, settings)
        if issubclass(target, Enum):
            return _to_enum(raw_value, target, settings)
        if isinstance(raw_value, target):
            return raw_value
        return target(raw_value)
    except (TypeError, ValueError, OverflowError, ArithmeticError) as exc:
        reason = str(exc) or f"unsupported source type {type(raw_value).__name__}"
        raise ConversionError(raw_value, target, field_name, reason) from exc
