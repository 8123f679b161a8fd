"""
rowbind_config -- YAML configuration for record binding.

Loads a binding configuration (null-string normalization default, text
conversion culture and overrides, per-source options) and builds the
kernel's runtime objects from it. The kernel never imports this package.
"""

from rowbind_config.loader import (
    build_binder,
    build_settings,
    load_binding_config,
    load_yaml_file,
    parse_binding_config,
    parse_conversion,
)
from rowbind_config.schema import BindingConfig, ConversionDef

__all__ = [
    "BindingConfig",
    "ConversionDef",
    "build_binder",
    "build_settings",
    "load_binding_config",
    "load_yaml_file",
    "parse_binding_config",
    "parse_conversion",
]
