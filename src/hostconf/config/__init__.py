"""Typed extraction of hierarchical configuration into Python objects.

Maps ``:``-delimited, case-insensitive key/value trees onto plain classes,
dataclasses, and pydantic models, keeping defaults for anything missing or
malformed.
"""

from ._binder import bind, default_instance
from ._casters import Csv, parse_duration
from ._extract import (
    SECTION_SUFFIX,
    extract_config,
    extract_from_factory,
    extract_section,
    has_section,
    resolve_section,
)
from ._source import (
    KEY_DELIMITER,
    ConfigSection,
    ConfigSource,
    LayeredConfigSource,
    MemoryConfigSource,
    config_path,
)
from ._types import ConfigError, ConstructionError, Secret

__all__ = [
    # Core
    "extract_config",
    "extract_from_factory",
    "extract_section",
    "resolve_section",
    "has_section",
    "bind",
    "default_instance",
    "ConfigError",
    "ConstructionError",
    # Sources
    "ConfigSource",
    "ConfigSection",
    "MemoryConfigSource",
    "LayeredConfigSource",
    "config_path",
    "KEY_DELIMITER",
    "SECTION_SUFFIX",
    # Helpers
    "Csv",
    "Secret",
    "parse_duration",
]
