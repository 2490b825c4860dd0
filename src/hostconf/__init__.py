from ._version import __version__
from .config import (
    ConfigSection,
    ConstructionError,
    MemoryConfigSource,
    extract_config,
    extract_from_factory,
    extract_section,
)
from .hosting import BaseExtension, HostedService

__all__ = [
    "__version__",
    "extract_config",
    "extract_from_factory",
    "extract_section",
    "ConfigSection",
    "ConstructionError",
    "MemoryConfigSource",
    "BaseExtension",
    "HostedService",
]
