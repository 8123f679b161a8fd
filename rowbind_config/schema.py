"""
Binding configuration schema.

Human-authored YAML is parsed by the loader into these frozen dataclasses,
which are then turned into runtime objects (``ConversionSettings``,
``RecordBinder``). No executable logic lives here.

Example::

    normalize_nulls: true
    conversion:
      culture: invariant        # or "locale"
      decimal_separator: ","
      group_separator: "."
      true_values: ["true", "yes", "ja"]   # quoted: YAML reads bare yes/no as booleans
      false_values: ["false", "no", "nein"]
      date_formats: ["%d.%m.%Y"]
    sources:
      csv:
        delimiter: ";"
        null_values: ["", "NULL"]
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

CULTURE_INVARIANT = "invariant"
CULTURE_LOCALE = "locale"
CULTURES = frozenset({CULTURE_INVARIANT, CULTURE_LOCALE})


@dataclass(frozen=True)
class ConversionDef:
    """Text conversion conventions. None means "use the culture's value"."""

    culture: str = CULTURE_INVARIANT
    decimal_separator: str | None = None
    group_separator: str | None = None
    true_values: tuple[str, ...] | None = None
    false_values: tuple[str, ...] | None = None
    date_formats: tuple[str, ...] | None = None
    datetime_formats: tuple[str, ...] | None = None
    strip_whitespace: bool = True


@dataclass(frozen=True)
class BindingConfig:
    """Top-level binding configuration."""

    normalize_nulls: bool = True
    conversion: ConversionDef = field(default_factory=ConversionDef)
    sources: dict[str, dict[str, Any]] = field(default_factory=dict)  # e.g. {"csv": {...}}

    def source_options(self, kind: str) -> dict[str, Any]:
        """Options for one source kind ("csv", "xlsx"); empty if not configured."""
        return dict(self.sources.get(kind, {}))
