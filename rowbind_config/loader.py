"""
Configuration Loader (``rowbind_config.loader``).

Responsibility
--------------
Loads a YAML binding configuration and parses it into the frozen dataclasses
of ``rowbind_config.schema``, then builds the runtime objects the kernel
consumes (``ConversionSettings``, ``RecordBinder``).

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown keys, unknown culture, wrong value types  -> ``InvalidConfigError``.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Any

import yaml

from rowbind_kernel.exceptions import InvalidConfigError
from rowbind_kernel.logging_config import get_logger
from rowbind_kernel.mapping.coercion import ConversionSettings
from rowbind_kernel.mapping.engine import RecordBinder

from rowbind_config.schema import (
    CULTURE_LOCALE,
    CULTURES,
    BindingConfig,
    ConversionDef,
)

logger = get_logger("config.loader")

_TOP_LEVEL_KEYS = frozenset({"normalize_nulls", "conversion", "sources"})
_CONVERSION_KEYS = frozenset({
    "culture",
    "decimal_separator",
    "group_separator",
    "true_values",
    "false_values",
    "date_formats",
    "datetime_formats",
    "strip_whitespace",
})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _check_keys(data: dict[str, Any], allowed: frozenset[str], prefix: str) -> None:
    unknown = sorted(set(data) - allowed)
    if unknown:
        raise InvalidConfigError(f"{prefix}{unknown[0]}", "unknown key")


def _parse_bool(value: Any, key: str) -> bool:
    if not isinstance(value, bool):
        raise InvalidConfigError(key, f"expected true/false, got {value!r}")
    return value


def _parse_separator(value: Any, key: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str) or len(value) > 1:
        raise InvalidConfigError(key, f"expected a single character or empty string, got {value!r}")
    return value


def _parse_strings(value: Any, key: str) -> tuple[str, ...] | None:
    if value is None:
        return None
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise InvalidConfigError(key, "expected a list of quoted strings")
    return tuple(value)


def parse_conversion(data: dict[str, Any]) -> ConversionDef:
    """Parse a ConversionDef from a dict."""
    if not isinstance(data, dict):
        raise InvalidConfigError("conversion", "expected a mapping")
    _check_keys(data, _CONVERSION_KEYS, "conversion.")

    culture = str(data.get("culture", "invariant")).lower()
    if culture not in CULTURES:
        raise InvalidConfigError("conversion.culture", f"unknown culture {culture!r}")

    def tokens(key: str) -> tuple[str, ...] | None:
        parsed = _parse_strings(data.get(key), f"conversion.{key}")
        return tuple(t.lower() for t in parsed) if parsed is not None else None

    return ConversionDef(
        culture=culture,
        decimal_separator=_parse_separator(data.get("decimal_separator"), "conversion.decimal_separator"),
        group_separator=_parse_separator(data.get("group_separator"), "conversion.group_separator"),
        true_values=tokens("true_values"),
        false_values=tokens("false_values"),
        date_formats=_parse_strings(data.get("date_formats"), "conversion.date_formats"),
        datetime_formats=_parse_strings(data.get("datetime_formats"), "conversion.datetime_formats"),
        strip_whitespace=_parse_bool(data.get("strip_whitespace", True), "conversion.strip_whitespace"),
    )


def parse_binding_config(data: dict[str, Any]) -> BindingConfig:
    """Parse a BindingConfig from a dict (the loaded YAML document)."""
    if not isinstance(data, dict):
        raise InvalidConfigError("<root>", "expected a mapping")
    _check_keys(data, _TOP_LEVEL_KEYS, "")

    sources = data.get("sources") or {}
    if not isinstance(sources, dict) or not all(isinstance(v, dict) for v in sources.values()):
        raise InvalidConfigError("sources", "expected a mapping of source kind -> options")

    return BindingConfig(
        normalize_nulls=_parse_bool(data.get("normalize_nulls", True), "normalize_nulls"),
        conversion=parse_conversion(data.get("conversion") or {}),
        sources={str(kind): dict(options) for kind, options in sources.items()},
    )


def load_binding_config(path: Path | str) -> BindingConfig:
    """Load and parse a YAML binding configuration file."""
    config = parse_binding_config(load_yaml_file(Path(path)))
    logger.info(
        "binding_config_loaded",
        extra={
            "path": str(path),
            "culture": config.conversion.culture,
            "normalize_nulls": config.normalize_nulls,
        },
    )
    return config


def build_settings(config: BindingConfig | ConversionDef) -> ConversionSettings:
    """Turn a parsed config into the kernel's ConversionSettings."""
    conversion = config.conversion if isinstance(config, BindingConfig) else config
    if conversion.culture == CULTURE_LOCALE:
        base = ConversionSettings.from_locale()
    else:
        base = ConversionSettings.invariant()

    overrides: dict[str, Any] = {
        key: getattr(conversion, key)
        for key in (
            "decimal_separator",
            "group_separator",
            "true_values",
            "false_values",
            "date_formats",
            "datetime_formats",
        )
        if getattr(conversion, key) is not None
    }
    overrides["strip_whitespace"] = conversion.strip_whitespace

    try:
        return replace(base, **overrides)
    except ValueError as exc:
        raise InvalidConfigError("conversion", str(exc)) from exc


def build_binder(config: BindingConfig, target_type: type) -> RecordBinder:
    """A RecordBinder for ``target_type`` configured from ``config``."""
    return RecordBinder(
        target_type,
        settings=build_settings(config),
        normalize_nulls=config.normalize_nulls,
    )
