"""Discovery of configured extensions.

Modules named under ``<root>:Using`` are imported first so their
``BaseExtension`` subclasses register. An extension is then active when its
module was listed, or when it has a config section: ``Commands`` for
``CommandsExtension``, falling back to ``CommandsConfiguration``.
"""

from __future__ import annotations

import importlib
import logging
from dataclasses import dataclass
from typing import Type

from ..config import ConfigSection, ConfigSource, config_path, resolve_section
from ..config._casters import cast_collection
from ..config._types import UNDEFINED
from ._extension import BaseExtension, registered_extensions

EXTENSION_SUFFIX = "Extension"
USING_KEY = "Using"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExtensionInfo:
    implementation_type: Type[BaseExtension]
    config_type: type | None
    section: ConfigSection


def extension_section_name(extension: Type[BaseExtension]) -> str:
    """``CommandsExtension`` -> ``Commands``."""
    name = extension.__name__
    if name.endswith(EXTENSION_SUFFIX) and len(name) > len(EXTENSION_SUFFIX):
        return name[: -len(EXTENSION_SUFFIX)]
    return name


def using_modules(source: ConfigSource, root: str | None = None) -> list[str]:
    """Module names listed under ``<root>:Using`` as indexed keys or a comma list."""
    section = ConfigSection(source, config_path(root, USING_KEY))
    modules = cast_collection(section.value, section.child_values(), list[str])
    return [] if modules is UNDEFINED else modules


def find_implemented_extensions(
    source: ConfigSource,
    root: str | None = None,
) -> dict[str, ExtensionInfo]:
    """Return active extensions keyed by class name."""
    modules = using_modules(source, root)
    for module in modules:
        try:
            importlib.import_module(module)
        except ImportError as exc:
            logger.error("Unable to import extension module '%s': %s", module, exc)

    found: dict[str, ExtensionInfo] = {}
    for extension in registered_extensions():
        section = resolve_section(source, extension_section_name(extension), root=root)
        if not (section.exists() or extension.__module__ in modules):
            continue
        found[extension.__name__] = ExtensionInfo(
            implementation_type=extension,
            config_type=extension.config_type,
            section=section,
        )
    return found
